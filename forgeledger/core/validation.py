"""Request validation: turns pydantic failures into ledger errors."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from forgeledger.core.errors import BuildValidationError

RequestT = TypeVar("RequestT", bound=BaseModel)


def validate_request(model_cls: type[RequestT], **fields: Any) -> RequestT:
    """Validate *fields* against *model_cls* before any storage access.

    Raises
    ------
    BuildValidationError
        If any field violates its length or format constraint.
    """
    try:
        return model_cls.model_validate(fields)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise BuildValidationError(
            f"Invalid {model_cls.__name__}: {problems}"
        ) from exc
