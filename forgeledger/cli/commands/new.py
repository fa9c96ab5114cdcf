"""``forgeledger new BUILD_ID``: start a new build."""

from __future__ import annotations

import typer
from rich.panel import Panel

from forgeledger.cli.commands._common import LEDGER_OPTION, console, ledger_errors, open_ledger


def new_cmd(
    build_id: str = typer.Argument(..., help="Unique build identifier (1-50 chars)."),
    project_name: str = typer.Option(
        ..., "--project", "-p", help="Project name for this build (1-100 chars)."
    ),
    authority: str = typer.Option(
        ..., "--authority", "-a", help="Identity that owns and may complete the build."
    ),
    ledger_db: str = LEDGER_OPTION,
) -> None:
    """Create a new in-progress build and print its ID."""
    ledger = open_ledger(ledger_db)
    with ledger_errors():
        build = ledger.create_build(build_id, project_name, authority)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Build started![/bold green]",
                "",
                f"[bold]Build ID:[/bold]   {build.build_id}",
                f"[bold]Project:[/bold]    {build.project_name}",
                f"[bold]Authority:[/bold]  {build.authority}",
                f"[bold]Ledger DB:[/bold]  {ledger.settings.ledger_path}",
            ]),
            title="[bold]forgeledger[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )
    # Print the build_id plainly for scripting
    console.print(f"[bold]{build.build_id}[/bold]")
