"""Canonical hashing helpers for action sealing and anchoring."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: deterministic, sorted, compact.

    - sorted keys
    - no whitespace separators (",", ":")
    - ensure_ascii=True
    - UTF-8 encoding
    """
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def content_digest(data: bytes) -> bytes:
    """Return the raw 32-byte SHA-256 digest of *data*.

    Callers use this to compute the content hash they bind to an action.
    The ledger itself never recomputes it.
    """
    return hashlib.sha256(data).digest()


def compute_entry_hash(entry_dict: dict[str, Any]) -> str:
    """SHA-256 of an action record (excluding the entry_hash field itself).

    This is the seal that makes each action tamper-evident.
    """
    d = {k: v for k, v in entry_dict.items() if k != "entry_hash"}
    return sha256_hex(canonical_json_bytes(d))
