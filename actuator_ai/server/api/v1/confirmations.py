"""
Confirmations API Endpoints.

Resolves pending confirmations created by the pipeline. Unknown, expired,
already-resolved and foreign confirmation ids all answer 404.
"""

from fastapi import APIRouter, HTTPException

from actuator_ai.agent_core.schemas.domain import SimulationResult
from actuator_ai.server.schemas import CancellationOutcome, ConfirmationOutcome
from actuator_ai.server.services.deps import OrchestratorDep, UserIdDep

router = APIRouter()

_NOT_FOUND = "Confirmation not found or expired"


@router.post(
    "/{confirmation_id}/confirm",
    response_model=ConfirmationOutcome,
    summary="Confirm Action",
    description="Execute a pending action exactly once.",
    responses={404: {"description": "Confirmation not found, expired or already resolved"}},
)
async def confirm(confirmation_id: str, user_id: UserIdDep, orchestrator: OrchestratorDep):
    result = await orchestrator.confirm_and_execute(confirmation_id, user_id)
    if result is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return ConfirmationOutcome(confirmation_id=confirmation_id, executed=result.success, result=result)


@router.post(
    "/{confirmation_id}/cancel",
    response_model=CancellationOutcome,
    summary="Cancel Action",
    description="Discard a pending action without executing it.",
    responses={404: {"description": "Confirmation not found, expired or already resolved"}},
)
async def cancel(confirmation_id: str, user_id: UserIdDep, orchestrator: OrchestratorDep):
    if not await orchestrator.cancel_confirmation(confirmation_id, user_id):
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return CancellationOutcome(confirmation_id=confirmation_id, cancelled=True)


@router.get(
    "/{confirmation_id}/simulate",
    response_model=SimulationResult,
    summary="Preview Action",
    description="Simulate a pending action without consuming its confirmation.",
    responses={404: {"description": "Confirmation not found or expired"}},
)
async def simulate(confirmation_id: str, user_id: UserIdDep, orchestrator: OrchestratorDep):
    preview = await orchestrator.simulate_pending(confirmation_id, user_id)
    if preview is None:
        raise HTTPException(status_code=404, detail=_NOT_FOUND)
    return preview
