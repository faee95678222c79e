"""Script execution tool backed by the sandbox."""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import Field

from ...errors import ToolExecutionError
from ...sandbox import ScriptExecutor
from ...schemas.domain import BlastRadius, ErrorCode, RiskLevel, SideEffectType, SimulationResult, ToolCapability
from ..base import BaseToolExecutor, ToolHandler, ToolOutcome
from ..side_effects import create_side_effect
from ..validation import ToolParams


class RunScriptParams(ToolParams):
    language: Literal["python", "shell", "javascript"]
    code: str = Field(min_length=1, max_length=20_000)
    timeout_ms: int = Field(default=10_000, ge=100, le=60_000)


class SandboxToolExecutor(BaseToolExecutor):
    id = "sandbox"
    name = "Sandbox"
    category = "system"
    sandboxed = True

    def __init__(self, scripts: ScriptExecutor) -> None:
        self._scripts = scripts

    def get_capabilities(self) -> List[ToolCapability]:
        return [
            ToolCapability(
                name="runScript",
                description="Run a short python, shell or javascript snippet in an isolated sandbox",
                params_schema=RunScriptParams,
                risk_level=RiskLevel.high,
                reversible=False,
                blast_radius=BlastRadius.local,
                required_permissions=frozenset({"sandbox.execute"}),
                supports_simulation=True,
            )
        ]

    def handlers(self) -> Dict[str, ToolHandler]:
        return {"runScript": self._run_script}

    async def predict(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        return SimulationResult(
            would_succeed=True,
            predicted_output={"simulated": True},
            predicted_side_effects=[
                create_side_effect(
                    SideEffectType.process_spawn, f"sandbox:{params['language']}", "Would run a sandboxed script"
                )
            ],
            warnings=["Script output cannot be predicted"],
        )

    async def _run_script(self, params: Dict[str, Any]) -> ToolOutcome:
        language, code, timeout_ms = params["language"], params["code"], params["timeout_ms"]
        if language == "python":
            result = await self._scripts.execute_python(code, timeout_ms)
        elif language == "javascript":
            result = await self._scripts.execute_js(code, timeout_ms)
        else:
            result = await self._scripts.execute_shell(code, timeout_ms)

        if result.timed_out:
            raise ToolExecutionError(ErrorCode.TIMEOUT, f"Script timed out after {timeout_ms} ms")
        if result.killed_by_limit:
            raise ToolExecutionError(
                ErrorCode.RESOURCE_LIMIT_EXCEEDED, "Script produced too much output", recoverable=False
            )
        if not result.success:
            raise ToolExecutionError(
                ErrorCode.EXECUTION_ERROR,
                f"Script exited with code {result.exit_code}: {result.stderr.strip()[:500]}",
            )
        return ToolOutcome(
            output={"stdout": result.stdout, "stderr": result.stderr, "exit_code": result.exit_code},
            message=result.stdout.strip()[:500] or "Script finished",
            side_effects=[
                create_side_effect(
                    SideEffectType.process_spawn,
                    f"sandbox:{language}",
                    f"Ran {language} script in sandbox ({result.duration_ms} ms)",
                    reversible=False,
                )
            ],
        )
