"""Pipeline dependency bundle and LangGraph state type.

- ``PipelineDeps`` collects the collaborators the orchestrator needs.
- ``_PipelineState`` is the state passed between LangGraph nodes for one
  inbound message.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, NotRequired, Optional, Required, TypedDict

from actuator_ai.core.audit import AuditSink

from ..capabilities.registry import ExecutorRegistry
from ..confirmation.manager import ConfirmationManager
from ..llm.base import LLMProvider
from ..policy.autonomy import AutonomyEngine
from ..policy.safety import SafetyGuard
from ..repos.interfaces import ExecutionLogRepository
from ..schemas.context import SituationalContext
from ..schemas.pipeline import ConversationTurn, PipelineResponse
from .parser import ParseResult


@dataclass(frozen=True)
class PipelineDeps:
    """Dependency bundle for ``PipelineOrchestrator``.

    Built by application wiring (see ``actuator_ai.agent_core.factory``):

    - the executor registry every tool call goes through,
    - the autonomy engine (which owns the approval history),
    - the confirmation manager holding pending actions,
    - the language-model provider, audit sink and safety guard,
    - optionally an execution-log repository.
    """

    registry: ExecutorRegistry
    autonomy: AutonomyEngine
    confirmations: ConfirmationManager
    llm: LLMProvider
    audit: AuditSink
    guard: SafetyGuard
    execution_log: Optional[ExecutionLogRepository] = None


class _PipelineState(TypedDict):
    """LangGraph state for one ``process_pipeline`` call.

    Required keys are the call's inputs; the others are filled in by the
    nodes in order (``context``, ``tools``, ``raw_output``, ``parsed``) and
    ``response`` is set by exactly one handler node.
    """

    user_id: Required[str]
    message: Required[str]
    history: Required[List[ConversationTurn]]
    overrides: Required[Optional[Dict[str, Any]]]
    context: NotRequired[SituationalContext]
    tools: NotRequired[str]
    raw_output: NotRequired[str]
    parsed: NotRequired[ParseResult]
    response: NotRequired[PipelineResponse]
