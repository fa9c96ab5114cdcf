"""``forgeledger log BUILD_ID ACTION_TYPE DESCRIPTION``: append an action.

The content hash is either passed as hex (``--hash``) or computed here
from a file (``--file``).  The ledger itself binds whatever digest it is
given.
"""

from __future__ import annotations

from pathlib import Path

import typer

from forgeledger.cli.commands._common import LEDGER_OPTION, console, ledger_errors, open_ledger
from forgeledger.core.hasher import content_digest
from forgeledger.models.actions import ActionType


def log_cmd(
    build_id: str = typer.Argument(..., help="Build to append to."),
    action_type: ActionType = typer.Argument(..., help="Kind of action performed."),
    description: str = typer.Argument("", help="What the step did (max 200 chars)."),
    content_hash: str = typer.Option(
        None, "--hash", "-H", help="Hex-encoded 32-byte digest of the step's content."
    ),
    content_file: Path = typer.Option(
        None,
        "--file",
        "-f",
        exists=True,
        dir_okay=False,
        help="File whose SHA-256 becomes the content hash.",
    ),
    caller_id: str = typer.Option(
        None, "--caller", "-c", help="Caller identity, checked against the build authority."
    ),
    idempotency_key: str = typer.Option(
        None, "--idempotency-key", "-k", help="Retry-safe key; replays return the same step."
    ),
    ledger_db: str = LEDGER_OPTION,
) -> None:
    """Append an action to an in-progress build and print its step number."""
    if (content_hash is None) == (content_file is None):
        console.print("[bold red]Pass exactly one of --hash or --file.[/bold red]")
        raise typer.Exit(code=2)

    digest: bytes | str = (
        content_digest(content_file.read_bytes()) if content_file else content_hash
    )

    ledger = open_ledger(ledger_db)
    with ledger_errors():
        step = ledger.append_action(
            build_id,
            action_type,
            description,
            digest,
            caller_id=caller_id,
            idempotency_key=idempotency_key,
        )

    console.print(
        f"[green]Logged[/green] {action_type.value} on [cyan]{build_id}[/cyan] "
        f"as step [bold]{step}[/bold]"
    )
