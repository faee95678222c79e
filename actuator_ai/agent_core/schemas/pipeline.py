"""Response shapes returned by the pipeline orchestrator."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from .base import BaseSchema
from .domain import ExecutionResult
from .intents import ClarifyOption, Intent


class ConversationTurn(BaseSchema):
    role: Literal["user", "assistant"]
    content: str


class PendingConfirmationView(BaseSchema):
    id: str
    action: str
    params: Dict[str, Any] = Field(default_factory=dict)
    display_message: Optional[str] = None
    display_params: Optional[Dict[str, str]] = None
    expires_at: datetime


class ClarificationView(BaseSchema):
    question: str
    options: Optional[List[ClarifyOption]] = None


class PlanStepView(BaseSchema):
    action: str
    status: Literal["pending", "approved", "executing", "completed", "failed"] = "pending"


class PlanView(BaseSchema):
    goal: str
    summary: str
    steps: List[PlanStepView] = Field(default_factory=list)


class PipelineResponse(BaseSchema):
    response: str
    intent: Optional[Intent] = None
    pending_confirmation: Optional[PendingConfirmationView] = None
    execution_result: Optional[ExecutionResult] = None
    clarification: Optional[ClarificationView] = None
    plan: Optional[PlanView] = None
