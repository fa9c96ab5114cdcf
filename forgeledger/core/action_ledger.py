"""Append-only, hash-chained action ledger scoped per build.

Design:
- Append-only: ``append_action()`` is the only write; no update, no delete.
- Gap-free: the step number is read, incremented and written inside one
  serialized transaction, so concurrent appends on a build always get
  distinct, contiguous steps.
- Hash-chained: each action seals its own fields in ``entry_hash`` and
  records the ``entry_hash`` of the previous step.
- The content hash is bound as supplied; it is never recomputed here.
"""

from __future__ import annotations

import logging
from typing import Any

from forgeledger.core.authority import require_authority
from forgeledger.core.build_registry import Clock, utc_now
from forgeledger.core.errors import (
    ActionNotFoundError,
    BuildNotFoundError,
    BuildNotInProgressError,
    IdempotencyConflictError,
    LedgerIntegrityError,
)
from forgeledger.core.hasher import canonical_json_bytes, compute_entry_hash, sha256_hex
from forgeledger.core.store import LedgerStore
from forgeledger.core.validation import validate_request
from forgeledger.models.actions import ActionType, AppendActionRequest, BuildAction
from forgeledger.models.builds import Build, BuildStatus
from forgeledger.models.events import ActionLogged
from forgeledger.routing.dispatcher import EventDispatcher

logger = logging.getLogger(__name__)


class ActionLedger:
    """Owns ``BuildAction`` records.

    Parameters
    ----------
    store:
        The store that persists builds and actions.
    dispatcher:
        Receives one ``ActionLogged`` event per successful append.  Optional.
    clock:
        Source of timestamps.  Defaults to the current UTC time.
    require_append_authority:
        When True, every append must present the build's authority as
        ``caller_id``.  When False, ``caller_id`` is checked only if given.
    """

    def __init__(
        self,
        store: LedgerStore,
        dispatcher: EventDispatcher | None = None,
        *,
        clock: Clock | None = None,
        require_append_authority: bool = False,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._clock = clock or utc_now
        self._require_append_authority = require_append_authority

    # ------------------------------------------------------------------
    # Core: append-only write
    # ------------------------------------------------------------------

    def append_action(
        self,
        build_id: str,
        action_type: ActionType | str,
        description: str,
        content_hash: bytes | str,
        *,
        caller_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> int:
        """Append an action to an in-progress build and return its step number.

        A repeated call carrying the same *idempotency_key* and the same
        arguments returns the originally assigned step without writing a
        new record or emitting a second event.  The replay is answered even
        after the build has completed or failed; a new key on a closed build
        still raises ``BuildNotInProgressError``.
        """
        request = validate_request(
            AppendActionRequest,
            build_id=build_id,
            action_type=action_type,
            description=description,
            content_hash=content_hash,
            caller_id=caller_id,
            idempotency_key=idempotency_key,
        )

        with self._store.write_transaction(request.build_id) as conn:
            build = self._store.fetch_build(conn, request.build_id)
            if build is None:
                raise BuildNotFoundError(request.build_id)

            if request.idempotency_key is not None:
                existing = self._store.fetch_action_by_key(
                    conn, build.build_id, request.idempotency_key
                )
                if existing is not None:
                    self._check_caller(request, build)
                    return self._replay(existing, request)

            if build.status is not BuildStatus.IN_PROGRESS:
                logger.warning(
                    "Rejected append to build %s: status is %s",
                    build.build_id,
                    build.status.value,
                )
                raise BuildNotInProgressError(build.build_id, build.status.value)
            self._check_caller(request, build)

            previous_hash = ""
            if build.step_count:
                previous = self._store.fetch_action(conn, build.build_id, build.step_count)
                if previous is None:
                    raise LedgerIntegrityError(
                        f"Build {build.build_id!r} records {build.step_count} steps "
                        f"but step {build.step_count} is missing"
                    )
                previous_hash = previous.entry_hash

            action = self._seal(
                BuildAction(
                    build_id=build.build_id,
                    step_number=build.step_count + 1,
                    action_type=request.action_type,
                    description=request.description,
                    content_hash=request.content_hash,
                    timestamp=self._clock(),
                    idempotency_key=request.idempotency_key,
                    previous_entry_hash=previous_hash,
                )
            )
            self._store.insert_action(conn, action)
            self._store.advance_step_count(conn, build.build_id, build.step_count)

        logger.info(
            "Build %s step %d logged: %s",
            action.build_id,
            action.step_number,
            action.action_type.value,
        )
        if self._dispatcher is not None:
            self._dispatcher.dispatch(
                ActionLogged(
                    build_id=action.build_id,
                    step_number=action.step_number,
                    action_type=action.action_type,
                    description=action.description,
                    content_hash=action.content_hash,
                    timestamp=action.timestamp,
                )
            )
        return action.step_number

    def _check_caller(self, request: AppendActionRequest, build: Build) -> None:
        if request.caller_id is not None or self._require_append_authority:
            require_authority(request.caller_id, build)

    @staticmethod
    def _replay(existing: BuildAction, request: AppendActionRequest) -> int:
        same = (
            existing.action_type == request.action_type
            and existing.description == request.description
            and existing.content_hash == request.content_hash
        )
        if not same:
            raise IdempotencyConflictError(
                existing.build_id, request.idempotency_key or "", existing.step_number
            )
        logger.info(
            "Build %s: idempotency key %r replayed, returning step %d",
            existing.build_id,
            request.idempotency_key,
            existing.step_number,
        )
        return existing.step_number

    @staticmethod
    def _seal(action: BuildAction) -> BuildAction:
        entry_hash = compute_entry_hash(action.model_dump(mode="json"))
        return action.model_copy(update={"entry_hash": entry_hash})

    # ------------------------------------------------------------------
    # Query methods (read-only)
    # ------------------------------------------------------------------

    def get_action(self, build_id: str, step_number: int) -> BuildAction:
        """Return the action recorded at *step_number* of *build_id*."""
        with self._store.reader() as conn:
            if self._store.fetch_build(conn, build_id) is None:
                raise BuildNotFoundError(build_id)
            action = self._store.fetch_action(conn, build_id, step_number)
        if action is None:
            raise ActionNotFoundError(build_id, step_number)
        return action

    def get_actions(self, build_id: str) -> list[BuildAction]:
        """Return all actions of *build_id* ordered by step number."""
        with self._store.reader() as conn:
            if self._store.fetch_build(conn, build_id) is None:
                raise BuildNotFoundError(build_id)
            return self._store.fetch_actions(conn, build_id)

    # ------------------------------------------------------------------
    # Chain verification
    # ------------------------------------------------------------------

    def verify_chain(self, build_id: str) -> bool:
        """Verify step contiguity and hash-chain integrity for a build.

        Returns True if the chain is valid, raises LedgerIntegrityError otherwise.
        """
        with self._store.reader() as conn:
            build = self._store.fetch_build(conn, build_id)
            if build is None:
                raise BuildNotFoundError(build_id)
            actions = self._store.fetch_actions(conn, build_id)

        if len(actions) != build.step_count:
            raise LedgerIntegrityError(
                f"Build {build_id!r} records {build.step_count} steps "
                f"but {len(actions)} actions are stored"
            )

        prev_hash = ""
        for expected_step, action in enumerate(actions, start=1):
            if action.step_number != expected_step:
                raise LedgerIntegrityError(
                    f"Step gap in build {build_id!r}: expected {expected_step}, "
                    f"found {action.step_number}"
                )
            if action.previous_entry_hash != prev_hash:
                raise LedgerIntegrityError(
                    f"Chain broken at step {action.step_number}: "
                    f"expected previous_hash={prev_hash!r}, "
                    f"got {action.previous_entry_hash!r}"
                )
            expected_hash = compute_entry_hash(action.model_dump(mode="json"))
            if action.entry_hash != expected_hash:
                raise LedgerIntegrityError(
                    f"Tampered action at step {action.step_number}: "
                    f"expected hash={expected_hash!r}, got {action.entry_hash!r}"
                )
            prev_hash = action.entry_hash

        return True

    # ------------------------------------------------------------------
    # External anchoring
    # ------------------------------------------------------------------

    def export_anchor(self, build_id: str) -> dict[str, Any]:
        """Export a tamper-evident anchor of the chain head for external witnessing.

        Returns
        -------
        dict[str, Any]
            Keys: ``build_id``, ``step_count``, ``status``, ``root_hash``
            (hash of the last action), ``first_entry_hash``,
            ``timestamp_utc``, ``anchor_hash`` (SHA-256 of the anchor
            payload itself, ``""`` when the build has no actions).
        """
        with self._store.reader() as conn:
            build = self._store.fetch_build(conn, build_id)
            if build is None:
                raise BuildNotFoundError(build_id)
            actions = self._store.fetch_actions(conn, build_id)

        payload: dict[str, Any] = {
            "build_id": build_id,
            "step_count": len(actions),
            "status": build.status.value,
            "root_hash": actions[-1].entry_hash if actions else "",
            "first_entry_hash": actions[0].entry_hash if actions else "",
            "timestamp_utc": self._clock().isoformat(),
        }
        payload["anchor_hash"] = (
            sha256_hex(canonical_json_bytes(payload)) if actions else ""
        )
        return payload

    def verify_against_anchor(self, build_id: str, anchor: dict[str, Any]) -> bool:
        """Verify the current chain against a previously exported anchor.

        Returns ``True`` if the chain still contains the anchored prefix
        unchanged.  Raises ``LedgerIntegrityError`` if it has diverged.
        """
        actions = self.get_actions(build_id)

        expected_count = anchor.get("step_count", 0)
        if (
            not isinstance(expected_count, int)
            or isinstance(expected_count, bool)
            or expected_count < 0
        ):
            raise LedgerIntegrityError(
                f"Anchor for {build_id!r} has a malformed step_count: {expected_count!r}"
            )
        if len(actions) < expected_count:
            raise LedgerIntegrityError(
                f"Build {build_id!r} has {len(actions)} actions but "
                f"anchor expects at least {expected_count}."
            )
        if expected_count == 0:
            return True

        anchor_payload = {k: v for k, v in anchor.items() if k != "anchor_hash"}
        if sha256_hex(canonical_json_bytes(anchor_payload)) != anchor.get("anchor_hash"):
            raise LedgerIntegrityError(f"Anchor for {build_id!r} has been altered.")

        if actions[0].entry_hash != anchor.get("first_entry_hash"):
            raise LedgerIntegrityError(
                f"First action hash mismatch for {build_id!r}: chain may have "
                f"been rewritten from the beginning."
            )
        if actions[expected_count - 1].entry_hash != anchor.get("root_hash"):
            raise LedgerIntegrityError(
                f"Root hash mismatch at step {expected_count} for {build_id!r}: "
                f"chain may have been retroactively modified."
            )

        self.verify_chain(build_id)
        return True
