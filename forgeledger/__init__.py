"""forgeledger: tamper-evident provenance ledger for build pipelines.

Records an authenticated, strictly ordered sequence of build actions,
each bound to a caller-supplied 32-byte content digest, under a
per-build state machine (in_progress -> completed / failed):
  - Gap-free, duplicate-free step numbering under concurrent writers
  - Hash-chained action records with exportable anchors
  - Ownership check on completion, optional on append
  - One event per committed mutation, fanned out to pluggable sinks
"""

__version__ = "0.1.0"
__description__ = "Tamper-evident provenance ledger for automated build pipelines"

from forgeledger.core.errors import (
    ActionNotFoundError,
    BuildNotFoundError,
    BuildNotInProgressError,
    BuildValidationError,
    DuplicateBuildIdError,
    IdempotencyConflictError,
    LedgerError,
    LedgerIntegrityError,
    StoreContentionError,
    UnauthorizedError,
)
from forgeledger.core.provenance import ProvenanceLedger

__all__ = [
    "ProvenanceLedger",
    "LedgerError",
    "BuildValidationError",
    "DuplicateBuildIdError",
    "BuildNotFoundError",
    "ActionNotFoundError",
    "BuildNotInProgressError",
    "UnauthorizedError",
    "IdempotencyConflictError",
    "StoreContentionError",
    "LedgerIntegrityError",
    "__version__",
]
