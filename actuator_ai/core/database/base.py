"""
Base database model.

All SQLModel entities in ``actuator_ai.core.database.entities`` derive from
``Base`` so they share one metadata object.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ConfigDict
from sqlmodel import SQLModel


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)


def dump_json(value: Any, *, empty: str = "{}") -> str:
    return json.dumps(value, default=str, sort_keys=True) if value else empty


def load_json(raw: str | None, *, default: Any) -> Any:
    try:
        return json.loads(raw) if raw else default
    except (json.JSONDecodeError, TypeError):
        return default
