"""Shared test fixtures for forgeledger."""

from __future__ import annotations

import hashlib
import threading
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from forgeledger.config import LedgerSettings
from forgeledger.core.action_ledger import ActionLedger
from forgeledger.core.build_registry import BuildRegistry
from forgeledger.core.provenance import ProvenanceLedger
from forgeledger.core.store import LedgerStore
from forgeledger.routing.dispatcher import EventDispatcher
from forgeledger.routing.sinks.memory import InMemorySink


class TickingClock:
    """Deterministic clock: every call advances one second."""

    def __init__(self, start: datetime | None = None) -> None:
        self._now = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            current = self._now
            self._now = current + timedelta(seconds=1)
            return current


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test databases and event files."""
    return tmp_path


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store(tmp_dir: Path) -> LedgerStore:
    """Provide a fresh LedgerStore backed by a temp SQLite database."""
    return LedgerStore(tmp_dir / "test_ledger.db")


@pytest.fixture
def sink() -> InMemorySink:
    return InMemorySink()


@pytest.fixture
def dispatcher(sink: InMemorySink) -> EventDispatcher:
    """Provide a dispatcher wired to the in-memory sink."""
    return EventDispatcher([sink])


@pytest.fixture
def registry(
    store: LedgerStore, dispatcher: EventDispatcher, clock: TickingClock
) -> BuildRegistry:
    return BuildRegistry(store, dispatcher, clock=clock)


@pytest.fixture
def action_ledger(
    store: LedgerStore, dispatcher: EventDispatcher, clock: TickingClock
) -> ActionLedger:
    return ActionLedger(store, dispatcher, clock=clock)


@pytest.fixture
def settings(tmp_dir: Path) -> LedgerSettings:
    """Settings pointing every path into the temp directory."""
    return LedgerSettings(
        ledger_path=tmp_dir / "ledger.db",
        events_path=tmp_dir / "events",
    )


@pytest.fixture
def ledger(
    settings: LedgerSettings, dispatcher: EventDispatcher, clock: TickingClock
) -> ProvenanceLedger:
    """Provide a ProvenanceLedger whose events land in the in-memory sink."""
    return ProvenanceLedger(settings, dispatcher=dispatcher, clock=clock)


@pytest.fixture
def make_hash() -> Callable[[str], bytes]:
    """Factory fixture: a 32-byte digest derived from a label."""

    def _factory(label: str) -> bytes:
        return hashlib.sha256(label.encode("utf-8")).digest()

    return _factory


@pytest.fixture
def build_id() -> str:
    """Provide a deterministic test build ID."""
    return "b1"


@pytest.fixture
def authority() -> str:
    return "agent-A"
