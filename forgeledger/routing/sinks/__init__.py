"""Sink protocol for ledger event routing.

All sinks implement the ``BaseSink`` protocol: a ``sink_name`` property
and an ``accept(event)`` method.  The dispatcher calls ``accept`` on
every registered sink for every committed mutation.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from forgeledger.models.events import LedgerEvent


@runtime_checkable
class BaseSink(Protocol):
    """Protocol that every event sink must implement.

    Attributes
    ----------
    sink_name : str
        A unique human-readable identifier for this sink instance
        (e.g. ``"memory"``, ``"local_file"``).
    """

    @property
    def sink_name(self) -> str:
        """Return the unique name of this sink."""
        ...

    def accept(self, event: LedgerEvent) -> None:
        """Accept and process an event.

        Sinks may raise; the dispatcher logs the failure and moves on to
        the next sink.  The mutation that produced the event is already
        committed either way.
        """
        ...
