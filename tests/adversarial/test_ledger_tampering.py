"""Adversarial tests: ledger tampering and chain integrity.

These tests verify that the action ledger detects:
1. Edited action fields (description, content hash)
2. Corrupted entry hashes and broken links
3. Deleted or renumbered steps
4. Retroactive rewrites with recomputed hashes (caught by an external anchor)
5. Altered anchors
"""

from __future__ import annotations

import sqlite3

import pytest

from forgeledger.core.errors import LedgerIntegrityError
from forgeledger.core.hasher import compute_entry_hash
from forgeledger.core.provenance import ProvenanceLedger
from forgeledger.models.actions import ActionType


def _tamper(ledger: ProvenanceLedger, sql: str, params: tuple = ()) -> None:
    """Run a raw write against the database, bypassing the ledger API."""
    conn = sqlite3.connect(str(ledger.store.db_path))
    try:
        conn.execute(sql, params)
        conn.commit()
    finally:
        conn.close()


class TestLedgerTamperDetection:
    """Direct SQLite manipulation to simulate an attacker with DB access."""

    @pytest.fixture
    def seeded(self, ledger: ProvenanceLedger, make_hash) -> ProvenanceLedger:
        """Seed one build with three actions."""
        ledger.create_build("b1", "demo", "agent-A")
        for i, kind in enumerate(
            (ActionType.ANALYZE, ActionType.GENERATE_CODE, ActionType.RUN_TESTS)
        ):
            ledger.append_action("b1", kind, f"step {i}", make_hash(str(i)))
        assert ledger.verify_chain("b1") is True
        return ledger

    def test_edited_description_detected(self, seeded):
        _tamper(
            seeded,
            "UPDATE build_actions SET description = 'forged' "
            "WHERE build_id = 'b1' AND step_number = 2",
        )
        with pytest.raises(LedgerIntegrityError, match="Tampered action at step 2"):
            seeded.verify_chain("b1")

    def test_swapped_content_hash_detected(self, seeded):
        _tamper(
            seeded,
            "UPDATE build_actions SET content_hash = ? "
            "WHERE build_id = 'b1' AND step_number = 1",
            (bytes(32),),
        )
        with pytest.raises(LedgerIntegrityError, match="Tampered"):
            seeded.verify_chain("b1")

    def test_corrupted_entry_hash_detected(self, seeded):
        _tamper(
            seeded,
            "UPDATE build_actions SET entry_hash = 'TAMPERED' "
            "WHERE build_id = 'b1' AND step_number = 2",
        )
        with pytest.raises(LedgerIntegrityError, match="(Chain broken|Tampered)"):
            seeded.verify_chain("b1")

    def test_broken_link_detected(self, seeded):
        _tamper(
            seeded,
            "UPDATE build_actions SET previous_entry_hash = '' "
            "WHERE build_id = 'b1' AND step_number = 3",
        )
        with pytest.raises(LedgerIntegrityError, match="Chain broken at step 3"):
            seeded.verify_chain("b1")

    def test_deleted_step_detected(self, seeded):
        _tamper(seeded, "DELETE FROM build_actions WHERE build_id = 'b1' AND step_number = 2")
        with pytest.raises(LedgerIntegrityError, match="3 steps"):
            seeded.verify_chain("b1")

    def test_renumbered_step_detected(self, seeded):
        _tamper(
            seeded,
            "UPDATE build_actions SET step_number = 7 "
            "WHERE build_id = 'b1' AND step_number = 3",
        )
        with pytest.raises(LedgerIntegrityError, match="Step gap"):
            seeded.verify_chain("b1")

    def test_append_refuses_when_head_is_missing(self, seeded, make_hash):
        """A build whose last step vanished cannot be extended."""
        _tamper(seeded, "DELETE FROM build_actions WHERE build_id = 'b1' AND step_number = 3")
        with pytest.raises(LedgerIntegrityError, match="step 3 is missing"):
            seeded.append_action("b1", ActionType.DOCUMENT, "", make_hash("x"))


class TestAnchorDivergence:
    """Rewrites that keep the chain self-consistent are caught by an anchor."""

    @pytest.fixture
    def anchored(self, ledger: ProvenanceLedger, make_hash):
        ledger.create_build("b1", "demo", "agent-A")
        ledger.append_action("b1", ActionType.ANALYZE, "scan", make_hash("1"))
        ledger.append_action("b1", ActionType.COMPILE_PROGRAM, "build", make_hash("2"))
        return ledger, ledger.export_anchor("b1")

    def test_truncation_detected(self, anchored):
        ledger, anchor = anchored
        _tamper(ledger, "DELETE FROM build_actions WHERE build_id = 'b1' AND step_number = 2")
        _tamper(ledger, "UPDATE builds SET step_count = 1 WHERE build_id = 'b1'")
        assert ledger.verify_chain("b1") is True
        with pytest.raises(LedgerIntegrityError, match="anchor expects at least 2"):
            ledger.verify_against_anchor("b1", anchor)

    def test_full_rewrite_detected(self, anchored):
        """Recompute every hash after forging step 1; only the anchor notices."""
        ledger, anchor = anchored
        prev_hash = ""
        forged = []
        for action in ledger.get_actions("b1"):
            update = {"previous_entry_hash": prev_hash}
            if action.step_number == 1:
                update["description"] = "forged"
            rewritten = action.model_copy(update=update)
            rewritten = rewritten.model_copy(
                update={"entry_hash": compute_entry_hash(rewritten.model_dump(mode="json"))}
            )
            forged.append(rewritten)
            prev_hash = rewritten.entry_hash
        for action in forged:
            _tamper(
                ledger,
                "UPDATE build_actions SET description = ?, previous_entry_hash = ?, "
                "entry_hash = ? WHERE build_id = 'b1' AND step_number = ?",
                (
                    action.description,
                    action.previous_entry_hash,
                    action.entry_hash,
                    action.step_number,
                ),
            )

        assert ledger.verify_chain("b1") is True
        with pytest.raises(LedgerIntegrityError, match="First action hash mismatch"):
            ledger.verify_against_anchor("b1", anchor)

    def test_altered_anchor_detected(self, anchored):
        ledger, anchor = anchored
        forged = dict(anchor, step_count=1)
        with pytest.raises(LedgerIntegrityError, match="altered"):
            ledger.verify_against_anchor("b1", forged)

    @pytest.mark.parametrize("step_count", ["2", None, -1, True, 2.0])
    def test_malformed_step_count_rejected(self, anchored, step_count):
        """A step_count that is not a non-negative int fails as an integrity error."""
        ledger, anchor = anchored
        forged = dict(anchor, step_count=step_count)
        with pytest.raises(LedgerIntegrityError, match="malformed step_count"):
            ledger.verify_against_anchor("b1", forged)

    def test_untouched_chain_matches(self, anchored):
        ledger, anchor = anchored
        assert ledger.verify_against_anchor("b1", anchor) is True
