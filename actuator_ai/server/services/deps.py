"""
Request Dependencies.

Provides the pipeline orchestrator built at start-up and the caller's user id
(taken from the ``X-User-Id`` header) to API endpoints.
"""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from actuator_ai.agent_core.pipeline import PipelineOrchestrator


def get_orchestrator(request: Request) -> PipelineOrchestrator:
    """
    Return the orchestrator of the runtime stored on ``app.state``.

    Raises:
        HTTPException: 503 while the runtime has not been built.
    """
    runtime = getattr(request.app.state, "runtime", None)
    if runtime is None:
        raise HTTPException(status_code=503, detail="Runtime is not ready")
    return runtime.orchestrator


def get_user_id(x_user_id: Annotated[str, Header(min_length=1, max_length=128)]) -> str:
    return x_user_id


OrchestratorDep = Annotated[PipelineOrchestrator, Depends(get_orchestrator)]
UserIdDep = Annotated[str, Depends(get_user_id)]
