"""EventDispatcher: fans each ledger event out to every registered sink.

Events are dispatched synchronously after the mutation that produced
them is committed.  Sink failures are logged and never propagate back
into the ledger operation: delivery is informational only.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from forgeledger.models.events import LedgerEvent

if TYPE_CHECKING:
    from forgeledger.routing.sinks import BaseSink

logger = logging.getLogger(__name__)


class EventDispatcher:
    """Routes ledger events to ALL configured sinks.

    Usage
    -----
    >>> dispatcher = EventDispatcher()
    >>> dispatcher.register_sink(InMemorySink())
    >>> dispatcher.dispatch(event)
    """

    def __init__(self, sinks: list[BaseSink] | None = None) -> None:
        self._sinks: list[BaseSink] = []
        for sink in sinks or []:
            self.register_sink(sink)

    # ------------------------------------------------------------------
    # Sink management
    # ------------------------------------------------------------------

    def register_sink(self, sink: BaseSink) -> None:
        """Register a sink.  Registering the same instance twice is a no-op."""
        if sink not in self._sinks:
            self._sinks.append(sink)
            logger.info("Registered sink: %s", sink.sink_name)

    def unregister_sink(self, sink: BaseSink) -> None:
        """Remove a previously registered sink."""
        if sink in self._sinks:
            self._sinks.remove(sink)
            logger.info("Unregistered sink: %s", sink.sink_name)

    @property
    def registered_sinks(self) -> list[BaseSink]:
        """Return a copy of the registered sink list."""
        return list(self._sinks)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def dispatch(self, event: LedgerEvent) -> list[str]:
        """Deliver *event* to every registered sink.

        Returns the names of the sinks that accepted it.  Never raises.
        """
        if not self._sinks:
            logger.debug("No sinks registered: event %s not delivered", event.event_id)
            return []

        succeeded: list[str] = []
        failed: list[str] = []

        for sink in self._sinks:
            try:
                sink.accept(event)
                succeeded.append(sink.sink_name)
            except Exception:  # noqa: BLE001
                logger.exception(
                    "Sink %s failed for %s event %s",
                    sink.sink_name,
                    event.event_kind.value,
                    event.event_id,
                )
                failed.append(sink.sink_name)

        if failed:
            logger.warning(
                "Event %s: %d/%d sinks succeeded, failed: %s",
                event.event_id,
                len(succeeded),
                len(self._sinks),
                ", ".join(failed),
            )

        return succeeded
