"""Shared parameter validation for every executor.

Executors never hand-write validation: each ``ToolCapability`` carries a
pydantic ``params_schema`` and ``validate_params`` is the single place that
turns a raw parameter mapping into a ``ValidationOutcome``.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from ..schemas.domain import ToolCapability, ValidationOutcome


class ToolParams(BaseModel):
    """Base class for capability parameter schemas.

    Unknown keys are dropped rather than rejected, and string values are
    stripped of surrounding whitespace.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class NoParams(ToolParams):
    pass


def format_validation_errors(exc: ValidationError) -> list[str]:
    errors: list[str] = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err.get("loc", ())) or "params"
        errors.append(f"{field}: {err.get('msg', 'invalid value')}")
    return errors


def validate_params(capability: ToolCapability, params: Optional[Mapping[str, Any]]) -> ValidationOutcome:
    """
    Validate raw parameters against a capability's schema.

    Args:
        capability: The capability whose ``params_schema`` drives validation.
        params: The raw parameters (typically straight from the model).

    Returns:
        A ``ValidationOutcome``. When valid, ``sanitized_params`` holds the
        coerced and defaulted values, which validate again unchanged.
    """
    try:
        model = capability.params_schema.model_validate(dict(params or {}))
    except ValidationError as exc:
        return ValidationOutcome(valid=False, errors=format_validation_errors(exc))
    return ValidationOutcome(valid=True, sanitized_params=model.model_dump(exclude_none=True))
