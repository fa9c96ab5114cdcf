"""Shared formatting helpers for human-readable sinks."""

from __future__ import annotations

from forgeledger.models.events import (
    ActionLogged,
    BuildCompleted,
    BuildStarted,
    LedgerEvent,
)


def summarize_event(event: LedgerEvent) -> str:
    """Return a one-line summary of *event*."""
    if isinstance(event, BuildStarted):
        return f"build {event.build_id} started (project={event.project_name})"
    if isinstance(event, ActionLogged):
        return (
            f"build {event.build_id} step {event.step_number} "
            f"{event.action_type.value} hash={event.content_hash.hex()[:16]}"
        )
    if isinstance(event, BuildCompleted):
        outcome = "completed" if event.success else "failed"
        artifact = f" artifact={event.artifact_id}" if event.artifact_id else ""
        return f"build {event.build_id} {outcome} after {event.total_steps} steps{artifact}"
    return f"build {event.build_id} {event.event_kind.value}"
