"""
API Schemas.

This module contains Pydantic models used for API request bodies and response validation.
These schemas define the interface contract between the client and the server.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from actuator_ai.agent_core.schemas.domain import BlastRadius, ExecutionResult, RiskLevel
from actuator_ai.agent_core.schemas.pipeline import ConversationTurn


class PipelineRequest(BaseModel):
    """
    Schema for sending one user message through the pipeline.
    """

    message: str = Field(
        ...,
        min_length=1,
        max_length=10_000,
        description="The user's natural-language message.",
        examples=["Open https://example.com"],
    )
    conversation_history: List[ConversationTurn] = Field(
        default_factory=list,
        description="Previous turns of the conversation, oldest first.",
    )
    context_overrides: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Per-section overrides of the situational context, e.g. {'user': {'mode': 'sleep'}}.",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "message": "Email alice@example.com that I'm running late",
                "conversation_history": [],
                "context_overrides": {"user": {"mode": "focus"}},
            }
        }
    )


class ToolInfo(BaseModel):
    """
    Public description of one registered tool.
    """

    name: str
    description: str
    category: str
    risk_level: RiskLevel
    reversible: bool
    external_impact: bool
    blast_radius: BlastRadius
    supports_simulation: bool
    parameters: Dict[str, Any] = Field(description="JSON schema of the tool's parameters.")


class ConfirmationOutcome(BaseModel):
    """
    Result of confirming a pending action.
    """

    confirmation_id: str
    executed: bool
    result: ExecutionResult


class CancellationOutcome(BaseModel):
    confirmation_id: str
    cancelled: bool
