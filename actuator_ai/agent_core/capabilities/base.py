"""Executor protocol and shared executor behaviour.

A tool executor owns a family of related tools (capabilities) and is the only
place where real-world effects happen.

Executors should:

- declare every tool as a ``ToolCapability`` with a pydantic params schema,
- report every externally visible effect as an ``ExecutionSideEffect``,
- avoid performing policy decisions themselves (autonomy is decided by the
  pipeline before invocation),
- never raise out of ``execute``: failures are returned as a failed
  ``ExecutionResult``.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, runtime_checkable

from ..errors import ToolExecutionError
from ..schemas.base import utc_now
from ..schemas.domain import (
    ErrorCode,
    ExecutionMeta,
    ExecutionResult,
    ExecutionSideEffect,
    RollbackResult,
    SimulationResult,
    ToolCapability,
    ValidationOutcome,
)
from .validation import validate_params

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolOutcome:
    """What a tool handler produced; ``BaseToolExecutor`` adds timing and meta."""

    output: Any = None
    message: str = ""
    side_effects: List[ExecutionSideEffect] = field(default_factory=list)


ToolHandler = Callable[[Dict[str, Any]], Awaitable[ToolOutcome]]


@runtime_checkable
class ToolExecutor(Protocol):
    """Protocol every executor registered in ``ExecutorRegistry`` satisfies."""

    id: str
    name: str
    category: str

    def get_capabilities(self) -> List[ToolCapability]: ...

    def can_execute(self, tool_name: str) -> bool: ...

    def validate(self, tool_name: str, params: Dict[str, Any]) -> ValidationOutcome: ...

    async def simulate(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult: ...

    async def execute(self, tool_name: str, params: Dict[str, Any]) -> ExecutionResult: ...


class BaseToolExecutor(ABC):
    """Common behaviour for executors.

    Subclasses declare their capabilities and map each tool name to an async
    handler via ``handlers()``. Handlers receive already-validated params and
    either return a ``ToolOutcome`` or raise ``ToolExecutionError``.
    """

    id: str = ""
    name: str = ""
    category: str = ""
    sandboxed: bool = False

    @abstractmethod
    def get_capabilities(self) -> List[ToolCapability]:
        """Return the static capability list for this executor."""

    @abstractmethod
    def handlers(self) -> Dict[str, ToolHandler]:
        """Return the tool name -> handler mapping."""

    def capability(self, tool_name: str) -> Optional[ToolCapability]:
        for cap in self.get_capabilities():
            if cap.name == tool_name:
                return cap
        return None

    def can_execute(self, tool_name: str) -> bool:
        return self.capability(tool_name) is not None

    def validate(self, tool_name: str, params: Dict[str, Any]) -> ValidationOutcome:
        cap = self.capability(tool_name)
        if cap is None:
            return ValidationOutcome(valid=False, errors=[f"Unknown tool: {tool_name}"])
        return validate_params(cap, params)

    async def simulate(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        """Describe what ``execute`` would do without doing it.

        The default prediction has no side effects; executors with observable
        effects override ``predict`` to describe them.
        """
        outcome = self.validate(tool_name, params)
        if not outcome.valid:
            return SimulationResult(would_succeed=False, warnings=outcome.errors)
        return await self.predict(tool_name, outcome.sanitized_params or {})

    async def predict(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        return SimulationResult(would_succeed=True, predicted_output={"simulated": True, "tool": tool_name})

    async def rollback(self, execution_id: str) -> RollbackResult:
        return RollbackResult(success=False, message=f"{self.name} does not support rollback")

    async def execute(self, tool_name: str, params: Dict[str, Any]) -> ExecutionResult:
        started_at = utc_now()
        t0 = time.monotonic()

        handler = self.handlers().get(tool_name)
        if handler is None:
            return ExecutionResult.failure(
                ErrorCode.NO_EXECUTOR,
                f"Unknown tool: {tool_name}",
                executor_id=self.id,
                started_at=started_at,
                sandboxed=self.sandboxed,
            )

        try:
            outcome = await handler(params)
        except ToolExecutionError as exc:
            logger.info("Tool %s.%s failed: %s (%s)", self.id, tool_name, exc.message, exc.code)
            return ExecutionResult.failure(
                exc.code,
                exc.message,
                executor_id=self.id,
                recoverable=exc.recoverable,
                started_at=started_at,
                sandboxed=self.sandboxed,
            )

        return ExecutionResult(
            success=True,
            output=outcome.output,
            message=outcome.message,
            side_effects=list(outcome.side_effects),
            meta=ExecutionMeta(
                started_at=started_at,
                completed_at=utc_now(),
                duration_ms=int((time.monotonic() - t0) * 1000),
                executor_id=self.id,
                sandboxed=self.sandboxed,
            ),
        )
