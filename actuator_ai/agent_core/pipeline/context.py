"""Situational context construction for one pipeline call."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from ..schemas.context import SituationalContext, TimeOfDay


def time_of_day(hour: int) -> TimeOfDay:
    """Bucket a local hour: morning [5,12), afternoon [12,17), evening [17,21), night otherwise."""
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def build_situational_context(
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
) -> SituationalContext:
    """
    Build the default context for ``now`` (local time) and merge caller overrides.

    Overrides are merged shallowly per section: ``{"user": {"mode": "sleep"}}``
    replaces the user's mode but keeps the rest of the ``user`` section.

    Raises:
        pydantic.ValidationError: If the merged context is invalid.
    """
    at = now or datetime.now()
    merged: Dict[str, Any] = {
        "time": {
            "current": at.strftime("%H:%M"),
            "day_of_week": at.strftime("%A"),
            "time_of_day": time_of_day(at.hour),
        },
        "user": {"mode": "normal"},
    }
    for section, value in (overrides or {}).items():
        base = merged.get(section)
        if isinstance(base, dict) and isinstance(value, Mapping):
            merged[section] = {**base, **value}
        else:
            merged[section] = value
    return SituationalContext.model_validate(merged)
