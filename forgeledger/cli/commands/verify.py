"""``forgeledger verify BUILD_ID``: check a build's hash chain.

Optionally writes an anchor for external witnessing, or checks the
chain against a previously written anchor.
"""

from __future__ import annotations

import json
from pathlib import Path

import typer

from forgeledger.cli.commands._common import LEDGER_OPTION, console, ledger_errors, open_ledger


def verify_cmd(
    build_id: str = typer.Argument(..., help="Build whose chain to verify."),
    export_anchor: Path = typer.Option(
        None, "--export-anchor", "-e", help="Write the current chain anchor to this JSON file."
    ),
    anchor: Path = typer.Option(
        None,
        "--anchor",
        "-A",
        exists=True,
        dir_okay=False,
        help="Verify against an anchor JSON file written earlier.",
    ),
    ledger_db: str = LEDGER_OPTION,
) -> None:
    """Verify step contiguity and the hash chain of a build."""
    ledger = open_ledger(ledger_db)
    with ledger_errors():
        if anchor is not None:
            ledger.verify_against_anchor(build_id, json.loads(anchor.read_text("utf-8")))
            console.print(f"[green]Chain for {build_id} matches anchor {anchor}[/green]")
        else:
            ledger.verify_chain(build_id)
            console.print(f"[green]Chain for {build_id} is intact[/green]")

        if export_anchor is not None:
            payload = ledger.export_anchor(build_id)
            export_anchor.parent.mkdir(parents=True, exist_ok=True)
            export_anchor.write_text(json.dumps(payload, indent=2, sort_keys=True), "utf-8")
            console.print(f"Anchor written to [cyan]{export_anchor}[/cyan]")
