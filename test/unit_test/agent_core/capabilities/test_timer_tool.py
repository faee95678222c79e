from __future__ import annotations

import asyncio
from typing import List

import pytest
import pytest_asyncio

from actuator_ai.agent_core.capabilities.builtin.timers import ActiveTimer, TimerExecutor, format_duration
from actuator_ai.agent_core.schemas.domain import SideEffectType


@pytest_asyncio.fixture
async def timers():
    executor = TimerExecutor()
    yield executor
    await executor.shutdown()


@pytest.mark.parametrize(
    ("seconds", "expected"),
    [
        (45, "45 seconds"),
        (300, "5 minutes"),
        (90, "1 minutes and 30 seconds"),
        (7200, "2 hours"),
        (5400, "1 hours and 30 minutes"),
    ],
)
def test_format_duration(seconds: int, expected: str) -> None:
    assert format_duration(seconds) == expected


@pytest.mark.asyncio
async def test_set_timer_creates_running_timer(timers: TimerExecutor) -> None:
    result = await timers.execute("setTimer", {"duration": 300, "label": "tea"})

    assert result.success is True
    assert result.message == 'Timer "tea" set for 5 minutes'
    assert [t.label for t in timers.active_timers] == ["tea"]
    (effect,) = result.side_effects
    assert effect.type == SideEffectType.timer_created
    assert effect.rollback_action == f"cancelTimer:{result.output['id']}"


@pytest.mark.asyncio
async def test_unlabelled_timers_get_numbered_labels(timers: TimerExecutor) -> None:
    first = await timers.execute("setTimer", {"duration": 60})
    second = await timers.execute("setTimer", {"duration": 60})
    assert (first.output["label"], second.output["label"]) == ("Timer 1", "Timer 2")


@pytest.mark.asyncio
async def test_cancel_timer_by_label_is_case_insensitive(timers: TimerExecutor) -> None:
    await timers.execute("setTimer", {"duration": 300, "label": "Pasta"})

    result = await timers.execute("cancelTimer", {"label": "pasta"})

    assert result.success is True
    assert result.side_effects[0].type == SideEffectType.timer_cancelled
    assert result.side_effects[0].reversible is False
    assert timers.active_timers == []


@pytest.mark.asyncio
async def test_cancel_unknown_timer_fails(timers: TimerExecutor) -> None:
    result = await timers.execute("cancelTimer", {"timer_id": "timer_nope"})
    assert result.success is False
    assert result.message == "Timer not found"


@pytest.mark.asyncio
async def test_get_timers_lists_remaining_time(timers: TimerExecutor) -> None:
    empty = await timers.execute("getTimers", {})
    await timers.execute("setTimer", {"duration": 600, "label": "laundry"})
    listed = await timers.execute("getTimers", {})

    assert empty.message == "No active timers"
    assert listed.message == "1 active timer(s)"
    (entry,) = listed.output["timers"]
    assert entry["label"] == "laundry"
    assert 0 < entry["remaining"] <= 600


@pytest.mark.asyncio
async def test_simulate_cancel_warns_when_timer_missing(timers: TimerExecutor) -> None:
    sim = await timers.simulate("cancelTimer", {"label": "ghost"})
    assert sim.would_succeed is False
    assert sim.warnings == ["Timer not found"]


@pytest.mark.asyncio
async def test_completion_callback_fires() -> None:
    done: List[ActiveTimer] = []
    fired = asyncio.Event()

    async def on_complete(timer: ActiveTimer) -> None:
        done.append(timer)
        fired.set()

    executor = TimerExecutor(on_complete=on_complete)
    try:
        await executor.execute("setTimer", {"duration": 1, "label": "quick"})
        await asyncio.wait_for(fired.wait(), timeout=5)
    finally:
        await executor.shutdown()

    assert [t.label for t in done] == ["quick"]
    assert done[0].status == "completed"
    assert executor.active_timers == []


@pytest.mark.asyncio
async def test_shutdown_cancels_everything() -> None:
    executor = TimerExecutor()
    await executor.execute("setTimer", {"duration": 3600})
    await executor.execute("setTimer", {"duration": 3600})

    await executor.shutdown()

    assert executor.active_timers == []
