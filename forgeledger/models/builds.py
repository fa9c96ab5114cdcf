"""Build records and the per-build state machine.

A Build is one logged pipeline run.  It starts IN_PROGRESS and moves
exactly once to a terminal state (COMPLETED or FAILED).  Terminal builds
accept no further mutation.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

BUILD_ID_MAX_LEN = 50
PROJECT_NAME_MAX_LEN = 100
ARTIFACT_ID_MAX_LEN = 100


class BuildStatus(str, Enum):
    """Lifecycle state of a build."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


# Terminal states (COMPLETED, FAILED) have no outgoing transitions.
VALID_TRANSITIONS: dict[BuildStatus, set[BuildStatus]] = {
    BuildStatus.IN_PROGRESS: {BuildStatus.COMPLETED, BuildStatus.FAILED},
    BuildStatus.COMPLETED: set(),
    BuildStatus.FAILED: set(),
}


class Build(BaseModel):
    """A single build owned by the authority that created it."""

    model_config = ConfigDict(frozen=True)

    build_id: str = Field(min_length=1, max_length=BUILD_ID_MAX_LEN)
    authority: str = Field(min_length=1)
    project_name: str = Field(min_length=1, max_length=PROJECT_NAME_MAX_LEN)
    step_count: int = Field(default=0, ge=0)
    started_at: datetime
    completed_at: datetime | None = None
    status: BuildStatus = BuildStatus.IN_PROGRESS
    artifact_id: str | None = Field(default=None, max_length=ARTIFACT_ID_MAX_LEN)

    @property
    def is_terminal(self) -> bool:
        return not VALID_TRANSITIONS[self.status]


class BuildStats(BaseModel):
    """Aggregate counts across every build in the ledger."""

    model_config = ConfigDict(frozen=True)

    total_builds: int = 0
    in_progress: int = 0
    completed: int = 0
    failed: int = 0
    total_actions: int = 0


class CreateBuildRequest(BaseModel):
    """Validated arguments for ``BuildRegistry.create_build``."""

    model_config = ConfigDict(frozen=True)

    build_id: str = Field(min_length=1, max_length=BUILD_ID_MAX_LEN)
    project_name: str = Field(min_length=1, max_length=PROJECT_NAME_MAX_LEN)
    authority: str = Field(min_length=1)


class CompleteBuildRequest(BaseModel):
    """Validated arguments for ``BuildRegistry.complete_build``."""

    model_config = ConfigDict(frozen=True)

    build_id: str = Field(min_length=1, max_length=BUILD_ID_MAX_LEN)
    success: bool
    artifact_id: str | None = Field(default=None, max_length=ARTIFACT_ID_MAX_LEN)
    caller_id: str | None = None  # checked against the authority, not here
