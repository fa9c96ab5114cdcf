"""In-memory sink: a bounded buffer of recent events."""

from __future__ import annotations

import threading
from collections import deque

from forgeledger.models.events import EventKind, LedgerEvent


class InMemorySink:
    """Keeps the most recent events in a bounded deque.

    Parameters
    ----------
    max_events:
        Maximum number of events retained; older events are discarded.
    """

    def __init__(self, max_events: int = 1024) -> None:
        self._events: deque[LedgerEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    @property
    def sink_name(self) -> str:
        return "memory"

    def accept(self, event: LedgerEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> list[LedgerEvent]:
        with self._lock:
            return list(self._events)

    def of_kind(self, kind: EventKind, build_id: str | None = None) -> list[LedgerEvent]:
        """Return buffered events of *kind*, optionally for one build."""
        return [
            e
            for e in self.events
            if e.event_kind == kind and (build_id is None or e.build_id == build_id)
        ]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
