"""forgeledger data models: all Pydantic v2, all frozen (immutable)."""

from forgeledger.models.actions import (
    ActionType,
    AppendActionRequest,
    BuildAction,
    ContentHash,
)
from forgeledger.models.builds import (
    VALID_TRANSITIONS,
    Build,
    BuildStats,
    BuildStatus,
    CompleteBuildRequest,
    CreateBuildRequest,
)
from forgeledger.models.events import (
    EVENT_TYPE_MAP,
    ActionLogged,
    BuildCompleted,
    BuildStarted,
    EventKind,
    LedgerEvent,
    parse_event,
)

__all__ = [
    # builds
    "Build",
    "BuildStats",
    "BuildStatus",
    "VALID_TRANSITIONS",
    "CreateBuildRequest",
    "CompleteBuildRequest",
    # actions
    "ActionType",
    "BuildAction",
    "AppendActionRequest",
    "ContentHash",
    # events
    "EventKind",
    "LedgerEvent",
    "BuildStarted",
    "ActionLogged",
    "BuildCompleted",
    "EVENT_TYPE_MAP",
    "parse_event",
]
