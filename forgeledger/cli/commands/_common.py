"""Helpers shared by the CLI commands."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import typer
from rich.console import Console

from forgeledger.config import LedgerSettings
from forgeledger.core.errors import LedgerError
from forgeledger.core.provenance import ProvenanceLedger

console = Console()


def open_ledger(ledger_db: str | None) -> ProvenanceLedger:
    """Open the ledger at *ledger_db*, or at the configured path when None."""
    settings = LedgerSettings()
    if ledger_db:
        settings = settings.model_copy(update={"ledger_path": Path(ledger_db)})
    return ProvenanceLedger(settings)


@contextmanager
def ledger_errors() -> Iterator[None]:
    """Turn domain errors into a red message and exit code 1."""
    try:
        yield
    except LedgerError as exc:
        console.print(f"[bold red]{type(exc).__name__}:[/bold red] {exc}")
        raise typer.Exit(code=1) from exc


LEDGER_OPTION = typer.Option(
    None,
    "--ledger",
    "-l",
    help="Path to the ledger SQLite database (default: FORGELEDGER_LEDGER_PATH).",
)
