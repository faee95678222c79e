import os
from typing import Any, AsyncGenerator, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from actuator_ai.agent_core.capabilities.builtin import EmailExecutor, InfoExecutor
from actuator_ai.agent_core.capabilities.registry import ExecutorRegistry
from actuator_ai.agent_core.confirmation import ConfirmationManager
from actuator_ai.agent_core.llm.base import ChatMessage, ChatOptions
from actuator_ai.agent_core.pipeline import PipelineOrchestrator
from actuator_ai.agent_core.pipeline.models import PipelineDeps
from actuator_ai.agent_core.policy.autonomy import AutonomyEngine
from actuator_ai.agent_core.policy.safety import SafetyGuard

# Use in-memory SQLite so an accidental lifespan run never touches a real database
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"


class QueuedLLM:
    """Language model stub answering from a queue of canned replies."""

    def __init__(self) -> None:
        self.replies: List[str] = []

    async def chat(self, messages: List[ChatMessage], options: Optional[ChatOptions] = None) -> str:
        return self.replies.pop(0) if self.replies else "Hello!"

    async def embed(self, text: str) -> List[float]:
        return [0.0]

    async def health_check(self) -> bool:
        return True


class _NullAudit:
    async def audit_log(self, event: str, details: Dict[str, Any]) -> None:
        return None


@pytest.fixture
def llm() -> QueuedLLM:
    return QueuedLLM()


@pytest.fixture
def mail_requests() -> List[httpx.Request]:
    return []


@pytest.fixture
def orchestrator(llm: QueuedLLM, mail_requests: List[httpx.Request]) -> PipelineOrchestrator:
    def mail(request: httpx.Request) -> httpx.Response:
        mail_requests.append(request)
        return httpx.Response(200, json={"id": "msg_1"})

    registry = ExecutorRegistry()
    registry.register(InfoExecutor())
    registry.register(
        EmailExecutor(
            base_url="http://mock-mail/api",
            api_token="tok",
            client=httpx.AsyncClient(transport=httpx.MockTransport(mail)),
        )
    )
    return PipelineOrchestrator(
        PipelineDeps(
            registry=registry,
            autonomy=AutonomyEngine(),
            confirmations=ConfirmationManager(auto_sweep=False),
            llm=llm,
            audit=_NullAudit(),
            guard=SafetyGuard(),
        )
    )


@pytest_asyncio.fixture(name="client")
async def client_fixture(orchestrator: PipelineOrchestrator) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with the orchestrator dependency overridden."""
    from actuator_ai.server.main import app
    from actuator_ai.server.services.deps import get_orchestrator

    app.dependency_overrides[get_orchestrator] = lambda: orchestrator

    # ASGITransport does not run the lifespan, so no runtime is built
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(name="bare_client")
async def bare_client_fixture() -> AsyncGenerator[AsyncClient, None]:
    """Client without dependency overrides, as seen before start-up completes."""
    from actuator_ai.server.main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client
