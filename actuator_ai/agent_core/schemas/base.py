"""Pydantic base schemas shared by every actuator domain model."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BaseSchema(BaseModel):
    """
    Base Pydantic model for all domain schemas.

    - ``populate_by_name=True``: fields accept either their name or their alias.
    - ``extra="forbid"``: unknown fields are rejected instead of silently kept.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
    )


class FrozenSchema(BaseSchema):
    """Immutable variant used for values that must not change once built
    (capabilities, side effects, execution results)."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="forbid",
        frozen=True,
        arbitrary_types_allowed=True,
    )
