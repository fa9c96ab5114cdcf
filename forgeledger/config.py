"""Runtime configuration: env-driven via pydantic-settings.

Reads from a .env file and FORGELEDGER_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export FORGELEDGER_LOG_LEVEL=DEBUG
        export FORGELEDGER_LEDGER_PATH=/data/ledger.db
        export FORGELEDGER_REQUIRE_APPEND_AUTHORITY=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FORGELEDGER_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Storage
    ledger_path: Path = Path(".forgeledger/ledger.db")
    busy_timeout_ms: int = 5000

    # Events
    events_path: Path = Path(".forgeledger/events")
    enable_file_events: bool = True

    # When true, append_action requires a caller_id matching the build authority
    require_append_authority: bool = False

