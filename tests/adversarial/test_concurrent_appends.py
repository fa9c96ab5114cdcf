"""Adversarial tests: concurrent writers against one ledger.

Simultaneous appends to one build must receive distinct, gap-free step
numbers; simultaneous creates of one build_id must have a single winner.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

import pytest

from forgeledger.core.action_ledger import ActionLedger
from forgeledger.core.errors import DuplicateBuildIdError
from forgeledger.core.provenance import ProvenanceLedger
from forgeledger.core.store import LedgerStore
from forgeledger.models.actions import ActionType
from forgeledger.models.events import EventKind


def _run_concurrently(workers: int, fn: Callable[[int], object]) -> tuple[list, list]:
    barrier = threading.Barrier(workers)
    results: list = []
    errors: list = []
    lock = threading.Lock()

    def _target(i: int) -> None:
        barrier.wait()
        try:
            value = fn(i)
        except Exception as exc:  # noqa: BLE001
            with lock:
                errors.append(exc)
        else:
            with lock:
                results.append(value)

    threads = [threading.Thread(target=_target, args=(i,)) for i in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results, errors


class TestConcurrentAppends:
    def test_ten_appends_get_steps_one_to_ten(self, ledger: ProvenanceLedger, sink, make_hash):
        ledger.create_build("b1", "demo", "agent-A")
        steps, errors = _run_concurrently(
            10,
            lambda i: ledger.append_action(
                "b1", ActionType.GENERATE_CODE, f"worker {i}", make_hash(str(i))
            ),
        )
        assert errors == []
        assert sorted(steps) == list(range(1, 11))
        assert ledger.get_build("b1").step_count == 10
        assert len(sink.of_kind(EventKind.ACTION_LOGGED, build_id="b1")) == 10
        assert ledger.verify_chain("b1") is True

    def test_separate_store_instances_share_one_sequence(self, ledger, make_hash):
        """Two stores on one file coordinate through the database lock."""
        ledger.create_build("b1", "demo", "agent-A")
        other = ActionLedger(LedgerStore(ledger.store.db_path))
        ledgers = (ledger.actions, other)
        steps, errors = _run_concurrently(
            8,
            lambda i: ledgers[i % 2].append_action(
                "b1", ActionType.RUN_TESTS, "", make_hash(str(i))
            ),
        )
        assert errors == []
        assert sorted(steps) == list(range(1, 9))
        assert ledger.verify_chain("b1") is True

    def test_retried_key_under_concurrency(self, ledger: ProvenanceLedger, make_hash):
        """Racing retries of one idempotency key produce one record."""
        ledger.create_build("b1", "demo", "agent-A")
        steps, errors = _run_concurrently(
            6,
            lambda i: ledger.append_action(
                "b1", ActionType.DEPLOY, "ship", make_hash("same"), idempotency_key="retry"
            ),
        )
        assert errors == []
        assert set(steps) == {1}
        assert len(ledger.get_actions("b1")) == 1


class TestConcurrentCreates:
    @pytest.mark.parametrize("workers", [2, 8])
    def test_single_winner(self, ledger: ProvenanceLedger, sink, workers: int):
        builds, errors = _run_concurrently(
            workers, lambda i: ledger.create_build("b1", f"project-{i}", f"agent-{i}")
        )
        assert len(builds) == 1
        assert len(errors) == workers - 1
        assert all(isinstance(e, DuplicateBuildIdError) for e in errors)
        assert ledger.get_build("b1") == builds[0]
        assert len(sink.of_kind(EventKind.BUILD_STARTED)) == 1
