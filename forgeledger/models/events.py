"""Notification records emitted after each committed mutation.

Events are flat, frozen records.  They are informational only: the
ledger's consistency never depends on a sink observing them.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from forgeledger.models.actions import ActionType, ContentHash


class EventKind(str, Enum):
    """The three notification kinds."""

    BUILD_STARTED = "build_started"
    ACTION_LOGGED = "action_logged"
    BUILD_COMPLETED = "build_completed"


class LedgerEvent(BaseModel):
    """Fields shared by every event."""

    model_config = ConfigDict(frozen=True)

    event_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    event_kind: EventKind
    build_id: str
    timestamp: datetime


class BuildStarted(LedgerEvent):
    event_kind: EventKind = EventKind.BUILD_STARTED
    project_name: str


class ActionLogged(LedgerEvent):
    event_kind: EventKind = EventKind.ACTION_LOGGED
    step_number: int
    action_type: ActionType
    description: str
    content_hash: ContentHash


class BuildCompleted(LedgerEvent):
    event_kind: EventKind = EventKind.BUILD_COMPLETED
    success: bool
    artifact_id: str | None = None
    total_steps: int


# Registry for deserialization by event_kind
EVENT_TYPE_MAP: dict[EventKind, type[LedgerEvent]] = {
    EventKind.BUILD_STARTED: BuildStarted,
    EventKind.ACTION_LOGGED: ActionLogged,
    EventKind.BUILD_COMPLETED: BuildCompleted,
}


def parse_event(data: dict[str, Any]) -> LedgerEvent:
    """Rebuild the concrete event model from its JSON form.

    Raises ``ValueError`` if ``event_kind`` is missing or unknown.
    """
    kind_str = data.get("event_kind")
    if not kind_str:
        raise ValueError("Missing event_kind field")
    try:
        kind = EventKind(kind_str)
    except ValueError as exc:
        raise ValueError(f"Unknown event_kind: {kind_str!r}") from exc
    return EVENT_TYPE_MAP[kind].model_validate(data)
