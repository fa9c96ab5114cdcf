"""Build action records: immutable, step-numbered, hash-chained.

Each action binds a caller-computed 32-byte content digest to a step
number within its build.  The ledger seals every action with
``entry_hash`` and links it to its predecessor via ``previous_entry_hash``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, PlainSerializer

from forgeledger.models.builds import BUILD_ID_MAX_LEN

DESCRIPTION_MAX_LEN = 200
IDEMPOTENCY_KEY_MAX_LEN = 100
CONTENT_HASH_LEN = 32


class ActionType(str, Enum):
    """Kinds of work a pipeline step can record."""

    ANALYZE = "analyze"
    GENERATE_CODE = "generate_code"
    COMPILE_PROGRAM = "compile_program"
    RUN_TESTS = "run_tests"
    DEPLOY = "deploy"
    GENERATE_SDK = "generate_sdk"
    GENERATE_FRONTEND = "generate_frontend"
    DOCUMENT = "document"


def _coerce_digest(value: Any) -> Any:
    """Accept a 64-char hex string wherever raw digest bytes are expected."""
    if isinstance(value, str):
        try:
            return bytes.fromhex(value)
        except ValueError as exc:
            raise ValueError(f"content hash is not valid hex: {exc}") from exc
    if isinstance(value, bytearray):
        return bytes(value)
    return value


ContentHash = Annotated[
    bytes,
    BeforeValidator(_coerce_digest),
    Field(min_length=CONTENT_HASH_LEN, max_length=CONTENT_HASH_LEN),
    PlainSerializer(lambda b: b.hex(), return_type=str, when_used="json"),
]


class BuildAction(BaseModel):
    """A single immutable entry in a build's action ledger."""

    model_config = ConfigDict(frozen=True)

    build_id: str = Field(min_length=1, max_length=BUILD_ID_MAX_LEN)
    step_number: int = Field(ge=1)
    action_type: ActionType
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LEN)
    content_hash: ContentHash
    timestamp: datetime
    idempotency_key: str | None = Field(default=None, max_length=IDEMPOTENCY_KEY_MAX_LEN)
    previous_entry_hash: str = ""  # entry_hash of step_number - 1, "" for step 1
    entry_hash: str = ""  # computed on append, seals this action


class AppendActionRequest(BaseModel):
    """Validated arguments for ``ActionLedger.append_action``."""

    model_config = ConfigDict(frozen=True)

    build_id: str = Field(min_length=1, max_length=BUILD_ID_MAX_LEN)
    action_type: ActionType
    description: str = Field(default="", max_length=DESCRIPTION_MAX_LEN)
    content_hash: ContentHash
    caller_id: str | None = None
    idempotency_key: str | None = Field(
        default=None, min_length=1, max_length=IDEMPOTENCY_KEY_MAX_LEN
    )
