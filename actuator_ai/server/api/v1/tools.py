"""
Tools API Endpoints.

Lists the capabilities registered in the executor registry together with
their risk profile and parameter schema.
"""

from typing import List

from fastapi import APIRouter

from actuator_ai.server.schemas import ToolInfo
from actuator_ai.server.services.deps import OrchestratorDep

router = APIRouter()


@router.get(
    "",
    response_model=List[ToolInfo],
    summary="List Tools",
    description="Retrieve every registered tool, sorted by name.",
)
async def list_tools(orchestrator: OrchestratorDep):
    tools = [
        ToolInfo(
            name=cap.name,
            description=cap.description,
            category=category,
            risk_level=cap.risk_level,
            reversible=cap.reversible,
            external_impact=cap.external_impact,
            blast_radius=cap.blast_radius,
            supports_simulation=cap.supports_simulation,
            parameters=cap.parameters_json_schema(),
        )
        for category, caps in orchestrator.deps.registry.capabilities_by_category().items()
        for cap in caps
    ]
    return sorted(tools, key=lambda t: t.name)
