"""Situational context ("world state") handed to the model and the policy.

The context is rebuilt for every pipeline call and snapshotted into pending
confirmations so a later approval can be attributed to the situation in which
it was requested.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field

from .base import BaseSchema

TimeOfDay = Literal["morning", "afternoon", "evening", "night"]


class UserMode(str, Enum):
    normal = "normal"
    focus = "focus"
    dnd = "dnd"
    sleep = "sleep"
    away = "away"
    guest = "guest"


class TimeContext(BaseSchema):
    current: str
    day_of_week: str
    time_of_day: TimeOfDay


class UserContext(BaseSchema):
    name: Optional[str] = None
    mode: UserMode = UserMode.normal


class DesktopContext(BaseSchema):
    active_app: Optional[str] = None
    active_window: Optional[str] = None


class HomeContext(BaseSchema):
    active_devices: Optional[List[str]] = None
    current_scene: Optional[str] = None


class MusicContext(BaseSchema):
    is_playing: Optional[bool] = None
    current_track: Optional[str] = None


class SituationalContext(BaseSchema):
    time: TimeContext
    user: UserContext = Field(default_factory=UserContext)
    desktop: Optional[DesktopContext] = None
    home: Optional[HomeContext] = None
    music: Optional[MusicContext] = None
