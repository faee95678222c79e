from __future__ import annotations

from typing import List, Tuple

import pytest

from actuator_ai.agent_core.capabilities.builtin.sandboxed import SandboxToolExecutor
from actuator_ai.agent_core.sandbox import SandboxResult
from actuator_ai.agent_core.schemas.domain import SideEffectType


class _FakeScripts:
    def __init__(self, result: SandboxResult) -> None:
        self.result = result
        self.calls: List[Tuple[str, str, int]] = []

    async def execute_python(self, script: str, timeout_ms: int = 10_000) -> SandboxResult:
        self.calls.append(("python", script, timeout_ms))
        return self.result

    async def execute_js(self, script: str, timeout_ms: int = 10_000) -> SandboxResult:
        self.calls.append(("javascript", script, timeout_ms))
        return self.result

    async def execute_shell(self, command: str, timeout_ms: int = 10_000) -> SandboxResult:
        self.calls.append(("shell", command, timeout_ms))
        return self.result


@pytest.mark.asyncio
async def test_run_script_dispatches_by_language() -> None:
    scripts = _FakeScripts(SandboxResult(success=True, exit_code=0, stdout="42\n", duration_ms=12))
    executor = SandboxToolExecutor(scripts)  # type: ignore[arg-type]

    result = await executor.execute("runScript", {"language": "python", "code": "print(42)", "timeout_ms": 2000})

    assert scripts.calls == [("python", "print(42)", 2000)]
    assert result.success is True
    assert result.message == "42"
    assert result.output["exit_code"] == 0
    assert result.meta.sandboxed is True
    (effect,) = result.side_effects
    assert effect.type == SideEffectType.process_spawn
    assert effect.target == "sandbox:python"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("sandbox_result", "code", "recoverable"),
    [
        (SandboxResult(success=False, exit_code=-9, timed_out=True), "TIMEOUT", True),
        (SandboxResult(success=False, exit_code=-9, killed_by_limit=True), "RESOURCE_LIMIT_EXCEEDED", False),
        (SandboxResult(success=False, exit_code=2, stderr="boom"), "EXECUTION_ERROR", True),
    ],
)
async def test_run_script_failures(sandbox_result: SandboxResult, code: str, recoverable: bool) -> None:
    executor = SandboxToolExecutor(_FakeScripts(sandbox_result))  # type: ignore[arg-type]

    result = await executor.execute("runScript", {"language": "shell", "code": "true", "timeout_ms": 500})

    assert result.success is False
    assert result.error is not None
    assert result.error.code == code
    assert result.error.recoverable is recoverable
    assert result.side_effects == []
    assert result.meta.sandboxed is True


def test_run_script_is_high_risk_and_irreversible() -> None:
    cap = SandboxToolExecutor(_FakeScripts(SandboxResult(success=True, exit_code=0))).capability("runScript")  # type: ignore[arg-type]
    assert cap is not None
    assert cap.risk_level.value == "high"
    assert cap.reversible is False


def test_run_script_rejects_unknown_language() -> None:
    executor = SandboxToolExecutor(_FakeScripts(SandboxResult(success=True, exit_code=0)))  # type: ignore[arg-type]
    assert executor.validate("runScript", {"language": "ruby", "code": "puts 1"}).valid is False
