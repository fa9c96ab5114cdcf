"""Rich terminal renderer for builds and their action ledgers.

Color scheme
------------
- yellow    : IN_PROGRESS
- green     : COMPLETED
- bold red  : FAILED
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from forgeledger.models.actions import BuildAction
from forgeledger.models.builds import Build, BuildStats, BuildStatus

_STATUS_ICONS: dict[BuildStatus, str] = {
    BuildStatus.IN_PROGRESS: "[yellow]IN PROGRESS[/yellow]",
    BuildStatus.COMPLETED: "[green]COMPLETED[/green]",
    BuildStatus.FAILED: "[bold red]FAILED[/bold red]",
}


class BuildRenderer:
    """Renders builds, action tables and ledger stats as Rich output.

    Parameters
    ----------
    console:
        Rich Console instance.  A new one is created if not provided.
    """

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def render_build(self, build: Build, actions: list[BuildAction]) -> Panel:
        """Render a build header plus its action ledger as a Panel."""
        lines = [
            f"[bold]Build:[/bold]     {build.build_id}",
            f"[bold]Project:[/bold]   {build.project_name}",
            f"[bold]Authority:[/bold] {build.authority}",
            f"[bold]Status:[/bold]    {_STATUS_ICONS[build.status]}",
            f"[bold]Steps:[/bold]     {build.step_count}",
            f"[bold]Started:[/bold]   {build.started_at.isoformat()}",
        ]
        if build.completed_at is not None:
            lines.append(f"[bold]Finished:[/bold]  {build.completed_at.isoformat()}")
        if build.artifact_id:
            lines.append(f"[bold]Artifact:[/bold]  {build.artifact_id}")

        table = self.action_table(actions)
        body = Table.grid()
        body.add_row("\n".join(lines))
        body.add_row("")
        body.add_row(table)
        return Panel(body, title=f"[bold]{build.build_id}[/bold]", border_style="cyan")

    @staticmethod
    def action_table(actions: list[BuildAction]) -> Table:
        table = Table(title="Actions", show_lines=False)
        table.add_column("#", justify="right", style="bold")
        table.add_column("Type", style="cyan")
        table.add_column("Description")
        table.add_column("Content Hash", style="dim")
        table.add_column("Entry Hash", style="dim")
        table.add_column("Timestamp")
        for action in actions:
            table.add_row(
                str(action.step_number),
                action.action_type.value,
                action.description,
                action.content_hash.hex()[:16],
                action.entry_hash[:16],
                action.timestamp.isoformat(),
            )
        return table

    @staticmethod
    def builds_table(builds: list[Build]) -> Table:
        table = Table(title="Builds")
        table.add_column("Build ID", style="cyan")
        table.add_column("Project")
        table.add_column("Authority")
        table.add_column("Status", justify="center")
        table.add_column("Steps", justify="right")
        table.add_column("Started")
        for build in builds:
            table.add_row(
                build.build_id,
                build.project_name,
                build.authority,
                _STATUS_ICONS[build.status],
                str(build.step_count),
                build.started_at.isoformat(),
            )
        return table

    @staticmethod
    def stats_panel(stats: BuildStats) -> Panel:
        rate = (stats.completed / stats.total_builds * 100) if stats.total_builds else 0.0
        return Panel(
            "\n".join([
                f"[bold]Total builds:[/bold]  {stats.total_builds}",
                f"[bold]In progress:[/bold]   {stats.in_progress}",
                f"[bold]Completed:[/bold]     [green]{stats.completed}[/green]",
                f"[bold]Failed:[/bold]        [red]{stats.failed}[/red]",
                f"[bold]Success rate:[/bold]  {rate:.1f}%",
                f"[bold]Actions logged:[/bold] {stats.total_actions}",
            ]),
            title="[bold]Ledger Stats[/bold]",
            border_style="green",
            padding=(1, 2),
        )

    def print_build(self, build: Build, actions: list[BuildAction]) -> None:
        self.console.print(self.render_build(build, actions))
