"""Message-to-action pipeline.

- ``build_situational_context``: per-call context with shallow overrides.
- ``render_tool_definitions`` / ``generate_system_prompt``: model prompt.
- ``parse_intent``: raw model output to one intent.
- ``PipelineOrchestrator``: the LangGraph control loop and confirmation entry points.
"""

from .context import build_situational_context, time_of_day
from .models import PipelineDeps
from .orchestrator import (
    DENY_REPLY,
    ERROR_REPLY,
    INJECTION_REPLY,
    PARSE_FAILURE_REPLY,
    PipelineOrchestrator,
    unknown_tool_reply,
)
from .parser import ParseResult, extract_json, parse_intent
from .prompt import generate_system_prompt, render_context, render_tool_definitions

__all__ = [
    "DENY_REPLY",
    "ERROR_REPLY",
    "INJECTION_REPLY",
    "PARSE_FAILURE_REPLY",
    "ParseResult",
    "PipelineDeps",
    "PipelineOrchestrator",
    "build_situational_context",
    "extract_json",
    "generate_system_prompt",
    "parse_intent",
    "render_context",
    "render_tool_definitions",
    "time_of_day",
    "unknown_tool_reply",
]
