"""
Health Check Endpoints.

This module provides basic system status endpoints (health, version)
used for monitoring and deployment verification.
"""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check(request: Request):
    """
    Health check endpoint.

    Reports whether the actuator runtime has been built.
    """
    runtime = getattr(request.app.state, "runtime", None)
    return {"status": "ok", "runtime": "ready" if runtime is not None else "starting"}


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    return {"version": "0.1.0", "schema_version": "v1"}
