"""Read-only commands: ``show``, ``list`` and ``stats``."""

from __future__ import annotations

import typer

from forgeledger.cli.commands._common import LEDGER_OPTION, console, ledger_errors, open_ledger
from forgeledger.models.builds import BuildStatus
from forgeledger.monitor.renderer import BuildRenderer


def show_cmd(
    build_id: str = typer.Argument(..., help="Build to display."),
    ledger_db: str = LEDGER_OPTION,
) -> None:
    """Show a build and its full action ledger."""
    ledger = open_ledger(ledger_db)
    with ledger_errors():
        build = ledger.get_build(build_id)
        actions = ledger.get_actions(build_id)
    BuildRenderer(console=console).print_build(build, actions)


def list_cmd(
    authority: str = typer.Option(None, "--authority", "-a", help="Only builds owned by this identity."),
    status: BuildStatus = typer.Option(None, "--status", "-s", help="Only builds in this status."),
    ledger_db: str = LEDGER_OPTION,
) -> None:
    """List builds, newest first."""
    ledger = open_ledger(ledger_db)
    builds = ledger.list_builds(authority=authority, status=status)
    if not builds:
        console.print("[dim]No builds recorded.[/dim]")
        return
    console.print(BuildRenderer.builds_table(builds))


def stats_cmd(ledger_db: str = LEDGER_OPTION) -> None:
    """Show aggregate build statistics."""
    ledger = open_ledger(ledger_db)
    console.print(BuildRenderer.stats_panel(ledger.get_stats()))
