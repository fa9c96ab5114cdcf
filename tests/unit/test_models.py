"""Tests for the data models and their hex-serialized digests."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from forgeledger.models.actions import ActionType, BuildAction
from forgeledger.models.builds import VALID_TRANSITIONS, Build, BuildStatus
from forgeledger.models.events import (
    ActionLogged,
    BuildCompleted,
    BuildStarted,
    EventKind,
    parse_event,
)

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)
DIGEST = bytes(range(32))


class TestBuild:
    def test_defaults(self):
        build = Build(build_id="b1", authority="A", project_name="demo", started_at=NOW)
        assert build.status == BuildStatus.IN_PROGRESS
        assert build.step_count == 0
        assert build.completed_at is None
        assert build.artifact_id is None
        assert build.is_terminal is False

    def test_frozen(self):
        build = Build(build_id="b1", authority="A", project_name="demo", started_at=NOW)
        with pytest.raises(ValidationError):
            build.step_count = 5

    @pytest.mark.parametrize(
        "field,value",
        [
            ("build_id", ""),
            ("build_id", "x" * 51),
            ("project_name", ""),
            ("project_name", "p" * 101),
            ("artifact_id", "a" * 101),
        ],
    )
    def test_length_bounds(self, field, value):
        fields = {"build_id": "b1", "authority": "A", "project_name": "demo", "started_at": NOW}
        fields[field] = value
        with pytest.raises(ValidationError):
            Build(**fields)

    def test_terminal_states_have_no_transitions(self):
        assert VALID_TRANSITIONS[BuildStatus.COMPLETED] == set()
        assert VALID_TRANSITIONS[BuildStatus.FAILED] == set()
        assert VALID_TRANSITIONS[BuildStatus.IN_PROGRESS] == {
            BuildStatus.COMPLETED,
            BuildStatus.FAILED,
        }


class TestBuildAction:
    def _action(self, **overrides):
        fields = {
            "build_id": "b1",
            "step_number": 1,
            "action_type": ActionType.ANALYZE,
            "description": "scan repo",
            "content_hash": DIGEST,
            "timestamp": NOW,
        }
        fields.update(overrides)
        return BuildAction(**fields)

    def test_accepts_hex_digest(self):
        action = self._action(content_hash=DIGEST.hex())
        assert action.content_hash == DIGEST

    def test_json_dump_uses_hex(self):
        dumped = self._action().model_dump(mode="json")
        assert dumped["content_hash"] == DIGEST.hex()
        assert dumped["action_type"] == "analyze"

    def test_python_dump_keeps_bytes(self):
        assert self._action().model_dump()["content_hash"] == DIGEST

    @pytest.mark.parametrize("bad", [b"\x00" * 31, b"\x00" * 33, "zz" * 32, ""])
    def test_rejects_wrong_digest(self, bad):
        with pytest.raises(ValidationError):
            self._action(content_hash=bad)

    def test_description_limit(self):
        self._action(description="d" * 200)
        with pytest.raises(ValidationError):
            self._action(description="d" * 201)

    def test_step_number_is_one_based(self):
        with pytest.raises(ValidationError):
            self._action(step_number=0)

    def test_all_action_types(self):
        assert {t.name for t in ActionType} == {
            "ANALYZE",
            "GENERATE_CODE",
            "COMPILE_PROGRAM",
            "RUN_TESTS",
            "DEPLOY",
            "GENERATE_SDK",
            "GENERATE_FRONTEND",
            "DOCUMENT",
        }


class TestEvents:
    def test_kinds_are_fixed(self):
        assert BuildStarted(build_id="b1", project_name="p", timestamp=NOW).event_kind == (
            EventKind.BUILD_STARTED
        )
        completed = BuildCompleted(
            build_id="b1", success=True, timestamp=NOW, total_steps=2
        )
        assert completed.event_kind == EventKind.BUILD_COMPLETED

    def test_parse_event_restores_concrete_type(self):
        event = ActionLogged(
            build_id="b1",
            step_number=3,
            action_type=ActionType.DEPLOY,
            description="ship",
            content_hash=DIGEST,
            timestamp=NOW,
        )
        restored = parse_event(event.model_dump(mode="json"))
        assert isinstance(restored, ActionLogged)
        assert restored == event

    def test_parse_event_rejects_unknown_kind(self):
        with pytest.raises(ValueError, match="Unknown event_kind"):
            parse_event({"event_kind": "bogus"})

    def test_parse_event_requires_kind(self):
        with pytest.raises(ValueError, match="Missing"):
            parse_event({"build_id": "b1"})
