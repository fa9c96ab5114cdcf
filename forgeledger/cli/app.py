"""Main Typer application: imports and registers all CLI commands.

Entry point: ``forgeledger`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

import typer

from forgeledger.cli.commands.complete import complete_cmd
from forgeledger.cli.commands.log_action import log_cmd
from forgeledger.cli.commands.new import new_cmd
from forgeledger.cli.commands.show import list_cmd, show_cmd, stats_cmd
from forgeledger.cli.commands.verify import verify_cmd
from forgeledger.config import LedgerSettings
from forgeledger.logging_config import configure_logging

app = typer.Typer(
    name="forgeledger",
    help="forgeledger: tamper-evident provenance ledger for build pipelines.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)


@app.callback()
def main_callback(
    log_level: str = typer.Option(
        None, "--log-level", help="Override FORGELEDGER_LOG_LEVEL for this invocation."
    ),
) -> None:
    """Configure logging before any command runs."""
    configure_logging(log_level or LedgerSettings().log_level)


# Register subcommands
app.command(name="new", help="Start a new build.")(new_cmd)
app.command(name="log", help="Append an action to an in-progress build.")(log_cmd)
app.command(name="complete", help="Mark a build completed or failed.")(complete_cmd)
app.command(name="show", help="Show a build and its actions.")(show_cmd)
app.command(name="list", help="List builds.")(list_cmd)
app.command(name="stats", help="Show ledger statistics.")(stats_cmd)
app.command(name="verify", help="Verify a build's hash chain.")(verify_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
