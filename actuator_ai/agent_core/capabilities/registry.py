"""Executor registry.

The registry maps tool names to the executor that owns them and is the only
path through which the pipeline validates, simulates and executes tools.

Notes:
    - ``register`` indexes every capability of the executor. Registering a
      tool name a second time is last-writer-wins: the newer executor takes
      over the name and a warning is logged.
    - ``validate``, ``simulate`` and ``execute`` never raise; every failure is
      reported through their return values.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..schemas.domain import (
    ErrorCode,
    ExecutionResult,
    RiskLevel,
    SimulationResult,
    ToolCapability,
    ValidationOutcome,
)
from .base import ToolExecutor

logger = logging.getLogger(__name__)


class ExecutorRegistry:
    """
    In-memory index of executors and the tools they provide.
    """

    def __init__(self) -> None:
        self._executors: Dict[str, ToolExecutor] = {}
        self._tool_to_executor: Dict[str, str] = {}

    def register(self, executor: ToolExecutor) -> None:
        """
        Register an executor and index each of its capabilities by name.

        Args:
            executor: The executor instance. Its ``id`` must be unique; a second
                executor with the same id replaces the first.
        """
        self._executors[executor.id] = executor
        caps = executor.get_capabilities()
        for cap in caps:
            previous = self._tool_to_executor.get(cap.name)
            if previous is not None and previous != executor.id:
                logger.warning("Tool %s re-registered: %s replaces %s", cap.name, executor.id, previous)
            self._tool_to_executor[cap.name] = executor.id
        logger.info("Registered executor %s with %d capabilities", executor.id, len(caps))

    def executors(self) -> List[ToolExecutor]:
        return list(self._executors.values())

    def get_executor(self, tool_name: str) -> Optional[ToolExecutor]:
        executor_id = self._tool_to_executor.get(tool_name)
        if executor_id is None:
            return None
        return self._executors.get(executor_id)

    def has(self, tool_name: str) -> bool:
        return tool_name in self._tool_to_executor

    def get_capability(self, tool_name: str) -> Optional[ToolCapability]:
        executor = self.get_executor(tool_name)
        if executor is None:
            return None
        for cap in executor.get_capabilities():
            if cap.name == tool_name:
                return cap
        return None

    def get_all_capabilities(self) -> List[ToolCapability]:
        caps: List[ToolCapability] = []
        for tool_name in self._tool_to_executor:
            cap = self.get_capability(tool_name)
            if cap is not None:
                caps.append(cap)
        return caps

    def capabilities_by_risk(self, level: RiskLevel) -> List[ToolCapability]:
        return [cap for cap in self.get_all_capabilities() if cap.risk_level == level]

    def capabilities_by_category(self) -> Dict[str, List[ToolCapability]]:
        grouped: Dict[str, List[ToolCapability]] = {}
        for tool_name in self._tool_to_executor:
            executor = self.get_executor(tool_name)
            cap = self.get_capability(tool_name)
            if executor is None or cap is None:
                continue
            grouped.setdefault(executor.category, []).append(cap)
        return grouped

    def validate(self, action: str, params: Dict[str, Any]) -> ValidationOutcome:
        """
        Validate parameters for an action.

        Returns:
            A failed outcome naming ``NO_EXECUTOR`` when the action is unknown,
            otherwise the owning executor's outcome.
        """
        executor = self.get_executor(action)
        if executor is None:
            return ValidationOutcome(valid=False, errors=[f"{ErrorCode.NO_EXECUTOR.value}: no executor for tool: {action}"])
        try:
            return executor.validate(action, params)
        except Exception as exc:
            logger.exception("Validator for %s raised", action)
            return ValidationOutcome(valid=False, errors=[f"{ErrorCode.VALIDATION_FAILED.value}: {exc}"])

    async def simulate(self, action: str, params: Dict[str, Any]) -> SimulationResult:
        """
        Preview an action.

        Simulation only reaches the executor when the capability declares
        ``supports_simulation``; otherwise the result carries a warning.
        """
        executor = self.get_executor(action)
        cap = self.get_capability(action)
        if executor is None or cap is None:
            return SimulationResult(would_succeed=False, warnings=[f"No executor found for tool: {action}"])
        if not cap.supports_simulation:
            return SimulationResult(would_succeed=False, warnings=[f'Tool "{action}" does not support simulation'])
        try:
            return await executor.simulate(action, params)
        except Exception as exc:
            logger.exception("Simulation of %s raised", action)
            return SimulationResult(would_succeed=False, warnings=[f"Simulation failed: {exc}"])

    async def execute(self, action: str, params: Dict[str, Any]) -> ExecutionResult:
        """
        Validate and execute an action.

        The executor always receives the sanitized parameters produced by
        validation. Unknown actions yield ``NO_EXECUTOR`` (not recoverable),
        invalid parameters ``VALIDATION_FAILED`` (recoverable), and any
        exception escaping the executor ``EXECUTION_ERROR`` (recoverable).
        """
        executor = self.get_executor(action)
        if executor is None:
            return ExecutionResult.failure(
                ErrorCode.NO_EXECUTOR,
                f"No executor found for tool: {action}",
                recoverable=False,
            )

        try:
            outcome = executor.validate(action, params)
        except Exception as exc:
            logger.exception("Validator for %s raised", action)
            outcome = ValidationOutcome(valid=False, errors=[str(exc)])
        if not outcome.valid:
            return ExecutionResult.failure(
                ErrorCode.VALIDATION_FAILED,
                f"Invalid parameters: {'; '.join(outcome.errors)}",
                executor_id=executor.id,
                recoverable=True,
            )

        try:
            return await executor.execute(action, outcome.sanitized_params or {})
        except Exception as exc:
            logger.exception("Executor %s raised while running %s", executor.id, action)
            return ExecutionResult.failure(
                ErrorCode.EXECUTION_ERROR,
                f"{action} failed unexpectedly: {type(exc).__name__}",
                executor_id=executor.id,
                recoverable=True,
            )
