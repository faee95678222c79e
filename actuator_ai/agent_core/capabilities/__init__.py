"""Tool executors and the executor registry.

A *tool* is the unit of work the model can ask for; an *executor* owns a
family of related tools and is the only place where real-world effects
happen.

- Each tool is described by a frozen ``ToolCapability`` (params schema,
  risk level, reversibility, blast radius, simulation support).
- The pipeline resolves a tool name through ``ExecutorRegistry``, which
  re-validates parameters before every execution.
- Parameter validation is shared by all executors (``validate_params``);
  side-effect severity is inferred in one place (``create_side_effect``).

Built-in executors live in ``actuator_ai.agent_core.capabilities.builtin``.
"""

from .base import BaseToolExecutor, ToolExecutor, ToolHandler, ToolOutcome
from .registry import ExecutorRegistry
from .side_effects import DEFAULT_SEVERITY, create_side_effect
from .validation import NoParams, ToolParams, validate_params

__all__ = [
    "BaseToolExecutor",
    "DEFAULT_SEVERITY",
    "ExecutorRegistry",
    "NoParams",
    "ToolExecutor",
    "ToolHandler",
    "ToolOutcome",
    "ToolParams",
    "create_side_effect",
    "validate_params",
]
