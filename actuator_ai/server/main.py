"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS),
and includes all API routers. The actuator runtime is built in the lifespan
handler and stored on ``app.state.runtime``.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from actuator_ai.agent_core.factory import build_runtime
from actuator_ai.core.logging_config import get_logger, setup_logging

from .api.v1 import confirmations, health, pipeline, tools
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Builds the actuator runtime on startup and shuts it down (sweep task,
    sandboxed processes, timers, connections) on exit.
    """
    logger.info("Starting up Actuator-AI Server...")
    app.state.runtime = await build_runtime(settings)
    logger.info("Actuator runtime initialized successfully")

    yield

    logger.info("Shutting down Actuator-AI Server...")
    runtime, app.state.runtime = app.state.runtime, None
    await runtime.shutdown()


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    Actuator-AI Server API

    Policy-gated execution of model-proposed actions: send a message, receive a reply,
    and confirm or cancel actions that need the user's approval.
    """,
    version="0.1.0",
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

cors = settings.cors
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors.origins,
    allow_credentials=cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(tools.router, prefix=f"{constant.API_V1_STR}/tools", tags=["tools"])
app.include_router(pipeline.router, prefix=f"{constant.API_V1_STR}/pipeline", tags=["pipeline"])
app.include_router(
    confirmations.router, prefix=f"{constant.API_V1_STR}/confirmations", tags=["confirmations"]
)
