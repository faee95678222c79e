"""Countdown timers backed by asyncio tasks."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import Field, model_validator

from ...errors import ToolExecutionError
from ...schemas.base import utc_now
from ...schemas.domain import BlastRadius, ErrorCode, RiskLevel, SideEffectType, SimulationResult, ToolCapability
from ..base import BaseToolExecutor, ToolHandler, ToolOutcome
from ..side_effects import create_side_effect
from ..validation import NoParams, ToolParams

logger = logging.getLogger(__name__)


class SetTimerParams(ToolParams):
    duration: int = Field(ge=1, le=86_400, description="Duration in seconds")
    label: Optional[str] = Field(default=None, max_length=100)


class CancelTimerParams(ToolParams):
    timer_id: Optional[str] = Field(default=None, max_length=64)
    label: Optional[str] = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def _needs_reference(self) -> "CancelTimerParams":
        if not self.timer_id and not self.label:
            raise ValueError("either timer_id or label is required")
        return self


@dataclass
class ActiveTimer:
    id: str
    label: str
    duration: int
    ends_at: datetime
    status: Literal["running", "completed", "cancelled"] = "running"

    def remaining_seconds(self, now: datetime) -> int:
        return max(0, int((self.ends_at - now).total_seconds()))


TimerCallback = Callable[[ActiveTimer], Awaitable[None]]


def format_duration(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds} seconds"
    if seconds < 3600:
        mins, secs = divmod(seconds, 60)
        return f"{mins} minutes and {secs} seconds" if secs else f"{mins} minutes"
    hours, rest = divmod(seconds, 3600)
    mins = rest // 60
    return f"{hours} hours and {mins} minutes" if mins else f"{hours} hours"


class TimerExecutor(BaseToolExecutor):
    id = "timers"
    name = "Timers"
    category = "productivity"

    def __init__(self, *, on_complete: Optional[TimerCallback] = None) -> None:
        self._on_complete = on_complete
        self._timers: Dict[str, ActiveTimer] = {}
        self._tasks: Dict[str, asyncio.Task[None]] = {}

    def get_capabilities(self) -> List[ToolCapability]:
        return [
            ToolCapability(
                name="setTimer",
                description="Set a countdown timer (duration in seconds)",
                params_schema=SetTimerParams,
                risk_level=RiskLevel.low,
                reversible=True,
                blast_radius=BlastRadius.local,
                supports_simulation=True,
            ),
            ToolCapability(
                name="cancelTimer",
                description="Cancel a running timer by id or label",
                params_schema=CancelTimerParams,
                risk_level=RiskLevel.low,
                reversible=False,
                blast_radius=BlastRadius.local,
                supports_simulation=True,
            ),
            ToolCapability(
                name="getTimers",
                description="List running timers",
                params_schema=NoParams,
                risk_level=RiskLevel.none,
                reversible=True,
                blast_radius=BlastRadius.local,
                supports_simulation=True,
            ),
        ]

    def handlers(self) -> Dict[str, ToolHandler]:
        return {
            "setTimer": self._set_timer,
            "cancelTimer": self._cancel_timer,
            "getTimers": self._get_timers,
        }

    @property
    def active_timers(self) -> List[ActiveTimer]:
        return [t for t in self._timers.values() if t.status == "running"]

    async def predict(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        if tool_name == "setTimer":
            effects = [create_side_effect(SideEffectType.timer_created, "timers", "Would create a timer")]
            return SimulationResult(would_succeed=True, predicted_output={"simulated": True}, predicted_side_effects=effects)
        if tool_name == "cancelTimer":
            found = self._find(params) is not None
            return SimulationResult(
                would_succeed=found,
                predicted_output={"simulated": True},
                predicted_side_effects=[
                    create_side_effect(SideEffectType.timer_cancelled, "timers", "Would cancel a timer", reversible=False)
                ]
                if found
                else [],
                warnings=[] if found else ["Timer not found"],
            )
        return SimulationResult(would_succeed=True, predicted_output={"simulated": True})

    async def _run_timer(self, timer: ActiveTimer) -> None:
        await asyncio.sleep(timer.duration)
        timer.status = "completed"
        self._tasks.pop(timer.id, None)
        self._timers.pop(timer.id, None)
        logger.info("Timer %s (%s) completed", timer.id, timer.label)
        if self._on_complete is not None:
            try:
                await self._on_complete(timer)
            except Exception:
                logger.exception("Timer completion callback failed for %s", timer.id)

    def _find(self, params: Dict[str, Any]) -> Optional[ActiveTimer]:
        timer_id = params.get("timer_id")
        if timer_id and timer_id in self._timers:
            return self._timers[timer_id]
        label = (params.get("label") or "").lower()
        for timer in self.active_timers:
            if label and timer.label.lower() == label:
                return timer
        return None

    async def _set_timer(self, params: Dict[str, Any]) -> ToolOutcome:
        duration = params["duration"]
        timer = ActiveTimer(
            id=f"timer_{uuid4().hex[:8]}",
            label=params.get("label") or f"Timer {len(self.active_timers) + 1}",
            duration=duration,
            ends_at=utc_now() + timedelta(seconds=duration),
        )
        self._timers[timer.id] = timer
        self._tasks[timer.id] = asyncio.create_task(self._run_timer(timer))
        message = f'Timer "{timer.label}" set for {format_duration(duration)}'
        return ToolOutcome(
            output={"id": timer.id, "label": timer.label, "duration": duration},
            message=message,
            side_effects=[
                create_side_effect(
                    SideEffectType.timer_created,
                    "timers",
                    f"Created timer {timer.id}",
                    reversible=True,
                    rollback_action=f"cancelTimer:{timer.id}",
                )
            ],
        )

    async def _cancel_timer(self, params: Dict[str, Any]) -> ToolOutcome:
        timer = self._find(params)
        if timer is None:
            raise ToolExecutionError(ErrorCode.EXECUTION_ERROR, "Timer not found")
        timer.status = "cancelled"
        task = self._tasks.pop(timer.id, None)
        if task is not None:
            task.cancel()
        self._timers.pop(timer.id, None)
        return ToolOutcome(
            output={"cancelled": timer.id},
            message=f'Timer "{timer.label}" cancelled',
            side_effects=[
                create_side_effect(
                    SideEffectType.timer_cancelled, "timers", f"Cancelled timer {timer.id}", reversible=False
                )
            ],
        )

    async def _get_timers(self, params: Dict[str, Any]) -> ToolOutcome:
        now = utc_now()
        timers = [
            {"id": t.id, "label": t.label, "remaining": t.remaining_seconds(now), "status": t.status}
            for t in self.active_timers
        ]
        message = "No active timers" if not timers else f"{len(timers)} active timer(s)"
        return ToolOutcome(output={"timers": timers}, message=message)

    async def shutdown(self) -> None:
        """Cancel every pending countdown."""
        tasks = list(self._tasks.values())
        self._tasks.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for timer in self._timers.values():
            timer.status = "cancelled"
        self._timers.clear()
