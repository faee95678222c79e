"""
Pipeline API Endpoints.

Sends one user message through the pipeline. The response always carries a
natural-language reply and, depending on the parsed intent, an execution
result, a pending confirmation, a clarification or a plan.
"""

from fastapi import APIRouter

from actuator_ai.agent_core.schemas.pipeline import PipelineResponse
from actuator_ai.server.schemas import PipelineRequest
from actuator_ai.server.services.deps import OrchestratorDep, UserIdDep

router = APIRouter()


@router.post(
    "",
    response_model=PipelineResponse,
    summary="Process Message",
    description="Run a user message through context building, the model, intent parsing and autonomy gating.",
)
async def process_message(body: PipelineRequest, user_id: UserIdDep, orchestrator: OrchestratorDep):
    return await orchestrator.process_pipeline(
        user_id,
        body.message,
        conversation_history=body.conversation_history,
        context_overrides=body.context_overrides,
    )
