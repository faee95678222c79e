from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any, List, Sequence, Tuple

import pytest

from actuator_ai.agent_core.capabilities.builtin.app_launcher import AppLauncherExecutor, resolve_app
from actuator_ai.agent_core.capabilities.builtin.info import InfoExecutor, safe_evaluate
from actuator_ai.agent_core.capabilities.registry import ExecutorRegistry
from actuator_ai.agent_core.errors import ToolExecutionError
from actuator_ai.agent_core.schemas.domain import ErrorCode, SideEffectSeverity, SideEffectType


def _fixed_clock() -> datetime:
    return datetime(2024, 3, 5, 14, 7, tzinfo=timezone.utc)


class _RecordingLauncher:
    def __init__(self, fail: bool = False) -> None:
        self.calls: List[Tuple[Any, ...]] = []
        self._fail = fail

    async def open_url(self, url: str) -> None:
        if self._fail:
            raise ToolExecutionError(ErrorCode.LAUNCHER_ERROR, "xdg-open exited with code 3")
        self.calls.append(("open_url", url))

    async def launch(self, app: str, args: Sequence[str]) -> None:
        self.calls.append(("launch", app, list(args)))

    async def close(self, app: str, *, force: bool) -> None:
        self.calls.append(("close", app, force))


@pytest.fixture
def info_registry() -> ExecutorRegistry:
    reg = ExecutorRegistry()
    reg.register(InfoExecutor(clock=_fixed_clock))
    return reg


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("params", "expected"),
    [
        ({"format": "24h"}, "14:07"),
        ({}, "2:07 PM"),
    ],
)
async def test_get_time_formats(info_registry: ExecutorRegistry, params, expected: str) -> None:
    result = await info_registry.execute("getTime", params)
    assert result.success is True
    assert result.output["time"] == expected
    assert result.message == f"It's {expected}"


@pytest.mark.asyncio
async def test_get_time_ignores_unknown_timezone(info_registry: ExecutorRegistry) -> None:
    result = await info_registry.execute("getTime", {"timezone": "Mars/Olympus", "format": "24h"})
    assert result.success is True
    assert result.output["timezone"] is None
    assert result.output["time"] == "14:07"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("fmt", "expected"),
    [
        ("iso", "2024-03-05"),
        ("short", "3/5/2024"),
        ("long", "Tuesday, March 5, 2024"),
    ],
)
async def test_get_date_formats(info_registry: ExecutorRegistry, fmt: str, expected: str) -> None:
    result = await info_registry.execute("getDate", {"format": fmt})
    assert result.output["date"] == expected
    assert result.output["day_of_week"] == "Tuesday"


@pytest.mark.asyncio
async def test_calculate_has_no_side_effects(info_registry: ExecutorRegistry) -> None:
    result = await info_registry.execute("calculate", {"expression": "(1 + 2) ^ 2 * 4"})
    assert result.success is True
    assert result.output["result"] == 36
    assert result.side_effects == []


@pytest.mark.asyncio
async def test_calculate_division_by_zero_is_structured_failure(info_registry: ExecutorRegistry) -> None:
    result = await info_registry.execute("calculate", {"expression": "1/0"})
    assert result.success is False
    assert result.error is not None
    assert (result.error.code, result.message) == ("EXECUTION_ERROR", "Division by zero")


def test_safe_evaluate_arithmetic() -> None:
    assert safe_evaluate("2 + 3 * 4") == 14
    assert safe_evaluate("10 / 4") == 2.5
    assert safe_evaluate("10 / 5") == 2
    assert safe_evaluate("-3 % 2") == 1


@pytest.mark.parametrize("expression", ["__import__('os')", "a + 1", "2 ** 1000", "1 +"])
def test_safe_evaluate_rejects_non_arithmetic(expression: str) -> None:
    with pytest.raises(ToolExecutionError):
        safe_evaluate(expression)


@pytest.mark.parametrize(
    "expression",
    [
        "(((9**99)**99)**99)**20",
        "(10**100)**50",
        "(3**99)**99",
        "(10**99 * 10**99) * (10**99 * 10**99) ** 50",
        "1e300**2",
        "1e300 * 1e300",
    ],
)
def test_safe_evaluate_rejects_oversized_results(expression: str) -> None:
    with pytest.raises(ToolExecutionError) as exc_info:
        safe_evaluate(expression)
    assert exc_info.value.message == "Result too large"


def test_safe_evaluate_allows_moderate_integers() -> None:
    assert safe_evaluate("2**64") == 18446744073709551616
    assert safe_evaluate("(2**50)**2") == 2**100


@pytest.mark.asyncio
async def test_oversized_calculation_does_not_block_the_loop(info_registry: ExecutorRegistry) -> None:
    loop = asyncio.get_running_loop()
    started = loop.time()
    sleeper = asyncio.create_task(asyncio.sleep(0.05))

    result = await info_registry.execute("calculate", {"expression": "(((9**99)**99)**99)**20"})
    await sleeper

    assert loop.time() - started < 2
    assert result.success is False
    assert result.error is not None
    assert (result.error.code, result.message) == ("EXECUTION_ERROR", "Result too large")


def test_resolve_app_aliases() -> None:
    assert resolve_app(" VS Code ") == "code"
    assert resolve_app("gimp") == "gimp"


@pytest.mark.asyncio
async def test_open_url_spawns_browser() -> None:
    launcher = _RecordingLauncher()
    executor = AppLauncherExecutor(launcher)

    result = await executor.execute("openUrl", {"url": "https://example.com"})

    assert result.success is True
    assert launcher.calls == [("open_url", "https://example.com")]
    (effect,) = result.side_effects
    assert effect.type == SideEffectType.process_spawn
    assert effect.severity == SideEffectSeverity.major
    assert effect.reversible is True


def test_open_url_rejects_non_http_schemes() -> None:
    outcome = AppLauncherExecutor(_RecordingLauncher()).validate("openUrl", {"url": "file:///etc/passwd"})
    assert outcome.valid is False
    assert "http" in outcome.errors[0]


@pytest.mark.asyncio
async def test_launch_app_resolves_alias_and_splits_args() -> None:
    launcher = _RecordingLauncher()
    result = await AppLauncherExecutor(launcher).execute("launchApp", {"app": "VS Code", "args": "--new-window notes"})

    assert result.success is True
    assert launcher.calls == [("launch", "code", ["--new-window", "notes"])]
    assert result.side_effects[0].rollback_action == "closeApp"


@pytest.mark.asyncio
async def test_close_app_is_irreversible_and_critical() -> None:
    launcher = _RecordingLauncher()
    result = await AppLauncherExecutor(launcher).execute("closeApp", {"app": "firefox", "force": True})

    assert launcher.calls == [("close", "firefox", True)]
    (effect,) = result.side_effects
    assert effect.type == SideEffectType.process_kill
    assert effect.severity == SideEffectSeverity.critical
    assert effect.reversible is False


@pytest.mark.asyncio
async def test_launcher_failure_becomes_failed_result() -> None:
    result = await AppLauncherExecutor(_RecordingLauncher(fail=True)).execute("openUrl", {"url": "https://x.org"})
    assert result.success is False
    assert result.error is not None
    assert result.error.code == "LAUNCHER_ERROR"
    assert result.side_effects == []


@pytest.mark.asyncio
async def test_simulate_close_app_warns_on_force() -> None:
    launcher = _RecordingLauncher()
    sim = await AppLauncherExecutor(launcher).simulate("closeApp", {"app": "slack", "force": True})

    assert sim.would_succeed is True
    assert sim.warnings == ["Force close may cause data loss"]
    assert sim.predicted_side_effects[0].type == SideEffectType.process_kill
    assert launcher.calls == []
