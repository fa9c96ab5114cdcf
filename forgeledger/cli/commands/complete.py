"""``forgeledger complete BUILD_ID``: mark a build completed or failed."""

from __future__ import annotations

import typer

from forgeledger.cli.commands._common import LEDGER_OPTION, console, ledger_errors, open_ledger


def complete_cmd(
    build_id: str = typer.Argument(..., help="Build to finish."),
    caller_id: str = typer.Option(
        ..., "--caller", "-c", help="Caller identity; must be the build authority."
    ),
    failed: bool = typer.Option(
        False, "--failed", help="Record the build as failed instead of completed."
    ),
    artifact_id: str = typer.Option(
        None, "--artifact", "-a", help="Identifier of the produced artifact (max 100 chars)."
    ),
    ledger_db: str = LEDGER_OPTION,
) -> None:
    """Move an in-progress build to its terminal state.  One-shot."""
    ledger = open_ledger(ledger_db)
    with ledger_errors():
        build = ledger.complete_build(build_id, not failed, artifact_id, caller_id)

    style = "green" if not failed else "red"
    console.print(
        f"[{style}]Build {build.build_id} {build.status.value}[/{style}] "
        f"after [bold]{build.step_count}[/bold] steps"
    )
