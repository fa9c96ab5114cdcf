"""Logging sink: reports each event through the ``logging`` module."""

from __future__ import annotations

import logging

from forgeledger.models.events import LedgerEvent
from forgeledger.routing.sinks._formatting import summarize_event


class LoggingSink:
    """Emits one log record per event on the ``forgeledger.events`` logger."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._logger = logging.getLogger("forgeledger.events")
        self._level = level

    @property
    def sink_name(self) -> str:
        return "logging"

    def accept(self, event: LedgerEvent) -> None:
        self._logger.log(self._level, "%s", summarize_event(event))
