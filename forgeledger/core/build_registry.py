"""Build registry: creation, completion and lookup of builds.

Enforces:
- build_id uniqueness (atomic insert on the primary key)
- the one-shot IN_PROGRESS -> COMPLETED / FAILED transition
- ownership on completion, checked inside the same transaction
- one BuildStarted / BuildCompleted event per successful mutation
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timezone

from forgeledger.core.authority import require_authority
from forgeledger.core.errors import BuildNotFoundError, BuildNotInProgressError
from forgeledger.core.store import LedgerStore
from forgeledger.core.validation import validate_request
from forgeledger.models.builds import (
    VALID_TRANSITIONS,
    Build,
    BuildStats,
    BuildStatus,
    CompleteBuildRequest,
    CreateBuildRequest,
)
from forgeledger.models.events import BuildCompleted, BuildStarted, LedgerEvent
from forgeledger.routing.dispatcher import EventDispatcher

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BuildRegistry:
    """Owns ``Build`` records and their state machine.

    Parameters
    ----------
    store:
        The store that persists builds.
    dispatcher:
        Receives one event per successful mutation.  Optional.
    clock:
        Source of timestamps.  Defaults to the current UTC time.
    """

    def __init__(
        self,
        store: LedgerStore,
        dispatcher: EventDispatcher | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._clock = clock or utc_now

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_build(self, build_id: str, project_name: str, authority: str) -> Build:
        """Create a new in-progress build owned by *authority*.

        Raises ``DuplicateBuildIdError`` if *build_id* is already taken.
        """
        request = validate_request(
            CreateBuildRequest,
            build_id=build_id,
            project_name=project_name,
            authority=authority,
        )
        build = Build(
            build_id=request.build_id,
            authority=request.authority,
            project_name=request.project_name,
            started_at=self._clock(),
        )
        with self._store.write_transaction(build.build_id) as conn:
            self._store.insert_build(conn, build)

        logger.info("Build %s started for project %s", build.build_id, build.project_name)
        self._emit(
            BuildStarted(
                build_id=build.build_id,
                project_name=build.project_name,
                timestamp=build.started_at,
            )
        )
        return build

    def complete_build(
        self,
        build_id: str,
        success: bool,
        artifact_id: str | None,
        caller_id: str | None,
    ) -> Build:
        """Move an in-progress build to COMPLETED or FAILED.

        Checks, in order: the build exists, it is still in progress, and
        *caller_id* is its authority.  Returns the terminal build.
        """
        request = validate_request(
            CompleteBuildRequest,
            build_id=build_id,
            success=success,
            artifact_id=artifact_id,
            caller_id=caller_id,
        )
        target = BuildStatus.COMPLETED if request.success else BuildStatus.FAILED

        with self._store.write_transaction(request.build_id) as conn:
            build = self._store.fetch_build(conn, request.build_id)
            if build is None:
                raise BuildNotFoundError(request.build_id)
            if target not in VALID_TRANSITIONS[build.status]:
                logger.warning(
                    "Rejected completion of build %s: status is %s",
                    build.build_id,
                    build.status.value,
                )
                raise BuildNotInProgressError(build.build_id, build.status.value)
            require_authority(request.caller_id, build)

            finished = build.model_copy(
                update={
                    "status": target,
                    "completed_at": self._clock(),
                    "artifact_id": request.artifact_id,
                }
            )
            self._store.finalize_build(conn, finished)

        logger.info(
            "Build %s %s after %d steps",
            finished.build_id,
            finished.status.value,
            finished.step_count,
        )
        self._emit(
            BuildCompleted(
                build_id=finished.build_id,
                success=request.success,
                artifact_id=finished.artifact_id,
                timestamp=finished.completed_at,
                total_steps=finished.step_count,
            )
        )
        return finished

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_build(self, build_id: str) -> Build:
        """Return the build recorded under *build_id*."""
        with self._store.reader() as conn:
            build = self._store.fetch_build(conn, build_id)
        if build is None:
            raise BuildNotFoundError(build_id)
        return build

    def list_builds(
        self,
        *,
        authority: str | None = None,
        status: BuildStatus | None = None,
    ) -> list[Build]:
        """Return builds newest first, optionally filtered by owner or status."""
        with self._store.reader() as conn:
            return self._store.list_builds(conn, authority=authority, status=status)

    def get_stats(self) -> BuildStats:
        with self._store.reader() as conn:
            return self._store.stats(conn)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _emit(self, event: LedgerEvent) -> None:
        if self._dispatcher is not None:
            self._dispatcher.dispatch(event)
