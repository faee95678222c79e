"""Structured intents produced by the language model.

Every model reply is parsed into exactly one of these shapes, discriminated by
its ``type`` field. Unlike the other domain schemas, intents ignore unknown
keys: model output is noisy and extra keys carry no meaning here.
"""

from __future__ import annotations

from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class IntentSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ResponseIntent(IntentSchema):
    type: Literal["response"] = "response"
    text: str = Field(min_length=1, max_length=10_000)
    suggestions: Optional[List[str]] = None


class ActionIntent(IntentSchema):
    type: Literal["action"] = "action"
    action: str = Field(min_length=1, max_length=100)
    params: Dict[str, Any] = Field(default_factory=dict)
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    reasoning: Optional[str] = Field(default=None, max_length=500)


class ClarifyOption(IntentSchema):
    label: str
    value: str


class ClarifyIntent(IntentSchema):
    type: Literal["clarify"] = "clarify"
    question: str = Field(min_length=1, max_length=1_000)
    options: Optional[List[ClarifyOption]] = None
    pending_action: Optional[str] = Field(default=None, alias="pendingAction")


class PlanStep(IntentSchema):
    action: str = Field(min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict)
    reasoning: Optional[str] = None
    can_auto_approve: bool = Field(default=False, alias="canAutoApprove")


class PlanIntent(IntentSchema):
    type: Literal["plan"] = "plan"
    goal: str = Field(min_length=1, max_length=500)
    steps: List[PlanStep] = Field(min_length=1, max_length=20)
    confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    summary: str = Field(min_length=1, max_length=1_000)


class ObserveIntent(IntentSchema):
    type: Literal["observe"] = "observe"
    observation: str = Field(min_length=1, max_length=500)
    suggestion: Optional[ActionIntent] = None
    priority: Literal["low", "medium", "high"] = "low"


Intent = Annotated[
    Union[ResponseIntent, ActionIntent, ClarifyIntent, PlanIntent, ObserveIntent],
    Field(discriminator="type"),
]

INTENT_TYPES = ("response", "action", "clarify", "plan", "observe")

intent_adapter: TypeAdapter[Intent] = TypeAdapter(Intent)
