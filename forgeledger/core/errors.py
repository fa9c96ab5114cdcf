"""Error taxonomy shared by the registry and the action ledger.

Every error is raised synchronously to the caller.  A failed
precondition leaves no state change behind and emits no event.
"""

from __future__ import annotations


class LedgerError(RuntimeError):
    """Base class for all forgeledger domain errors."""


class BuildValidationError(LedgerError, ValueError):
    """A field violates its length or format constraint."""


class DuplicateBuildIdError(LedgerError):
    """A build with this build_id already exists."""

    def __init__(self, build_id: str) -> None:
        super().__init__(f"Build {build_id!r} already exists")
        self.build_id = build_id


class BuildNotFoundError(LedgerError, LookupError):
    """No build is recorded under this build_id."""

    def __init__(self, build_id: str) -> None:
        super().__init__(f"Build {build_id!r} not found")
        self.build_id = build_id


class ActionNotFoundError(BuildNotFoundError):
    """The build exists but has no action at this step."""

    def __init__(self, build_id: str, step_number: int) -> None:
        LedgerError.__init__(
            self, f"Build {build_id!r} has no action at step {step_number}"
        )
        self.build_id = build_id
        self.step_number = step_number


class BuildNotInProgressError(LedgerError):
    """The operation requires an in-progress build."""

    def __init__(self, build_id: str, status: str) -> None:
        super().__init__(f"Build {build_id!r} is not in progress (status={status})")
        self.build_id = build_id
        self.status = status


class UnauthorizedError(LedgerError, PermissionError):
    """The caller identity does not match the build's recorded authority."""

    def __init__(self, build_id: str, caller_id: str | None) -> None:
        super().__init__(f"Caller {caller_id!r} is not the authority of build {build_id!r}")
        self.build_id = build_id
        self.caller_id = caller_id


class IdempotencyConflictError(LedgerError):
    """An idempotency key was reused with different append arguments."""

    def __init__(self, build_id: str, idempotency_key: str, step_number: int) -> None:
        super().__init__(
            f"Idempotency key {idempotency_key!r} on build {build_id!r} already "
            f"bound to step {step_number} with different content"
        )
        self.build_id = build_id
        self.idempotency_key = idempotency_key
        self.step_number = step_number


class StoreContentionError(LedgerError):
    """The store could not acquire its write lock in time.  Retry the call."""


class LedgerIntegrityError(LedgerError):
    """Raised when a build's action hash chain is broken."""
