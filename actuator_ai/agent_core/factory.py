"""Default wiring of the actuator core.

``build_default_registry`` registers the built-in executors; ``build_runtime``
assembles persistence, policy, confirmations, the sandbox and the model
provider into a ready ``PipelineOrchestrator`` and hands back an
``ActuatorRuntime`` that knows how to shut all of it down.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from actuator_ai.core.audit import RepositoryAuditSink
from actuator_ai.core.database import create_all, create_engine, create_sessionmaker

from .capabilities.builtin import (
    AppLauncher,
    AppLauncherExecutor,
    EmailExecutor,
    HomeAssistantExecutor,
    InfoExecutor,
    MediaExecutor,
    SandboxToolExecutor,
    SmsExecutor,
    TimerExecutor,
)
from .capabilities.registry import ExecutorRegistry
from .confirmation.manager import ConfirmationManager
from .llm.base import LLMProvider
from .llm.openai_compatible import OpenAICompatibleProvider
from .pipeline.models import PipelineDeps
from .pipeline.orchestrator import PipelineOrchestrator
from .policy.autonomy import AutonomyEngine
from .policy.history import ApprovalHistory
from .policy.models import AutonomyPolicyConfig
from .policy.safety import SafetyGuard
from .repos.sql import build_sql_repos
from .sandbox.models import SandboxConfig
from .sandbox.scripts import ScriptExecutor

if TYPE_CHECKING:
    from actuator_ai.server.core.config import Settings

logger = logging.getLogger(__name__)


def build_default_registry(
    *,
    scripts: ScriptExecutor,
    timers: TimerExecutor,
    email: Optional[EmailExecutor] = None,
    home_assistant: Optional[HomeAssistantExecutor] = None,
    sms: Optional[SmsExecutor] = None,
    media: Optional[MediaExecutor] = None,
    launcher: Optional[AppLauncher] = None,
) -> ExecutorRegistry:
    """Register every built-in executor; unconfigured integrations still register and answer NOT_CONFIGURED."""
    registry = ExecutorRegistry()
    registry.register(InfoExecutor())
    registry.register(AppLauncherExecutor(launcher))
    registry.register(timers)
    registry.register(email or EmailExecutor())
    registry.register(home_assistant or HomeAssistantExecutor())
    registry.register(sms or SmsExecutor())
    registry.register(media or MediaExecutor())
    registry.register(SandboxToolExecutor(scripts))
    return registry


@dataclass
class ActuatorRuntime:
    """Everything ``build_runtime`` created, plus orderly shutdown."""

    orchestrator: PipelineOrchestrator
    registry: ExecutorRegistry
    confirmations: ConfirmationManager
    scripts: ScriptExecutor
    timers: TimerExecutor
    llm: LLMProvider
    audit: RepositoryAuditSink
    engine: AsyncEngine

    async def shutdown(self) -> None:
        """Stop the sweep, kill sandboxed processes, cancel timers and release connections."""
        await self.confirmations.stop()
        killed = self.scripts.kill_all()
        if killed:
            logger.info("Killed %d sandboxed processes on shutdown", killed)
        await self.timers.shutdown()
        await self.audit.flush()
        if isinstance(self.llm, OpenAICompatibleProvider):
            await self.llm.aclose()
        await self.engine.dispose()


async def build_runtime(
    settings: "Settings",
    *,
    llm: Optional[LLMProvider] = None,
    launcher: Optional[AppLauncher] = None,
    create_tables: bool = True,
) -> ActuatorRuntime:
    """
    Assemble the runtime from settings.

    Args:
        settings: Application settings.
        llm: Optional provider overriding the configured OpenAI-compatible one.
        launcher: Optional app launcher overriding the system launcher.
        create_tables: Create missing tables before use (tests/dev).
    """
    engine = create_engine(settings.database_url)
    if create_tables:
        await create_all(engine)
    repos = build_sql_repos(session_factory=create_sessionmaker(engine))
    audit = RepositoryAuditSink(repos.audit)

    autonomy_cfg = settings.autonomy
    policy = AutonomyPolicyConfig(
        learned_approval_threshold=autonomy_cfg.learned_approval_threshold,
        low_confidence_threshold=autonomy_cfg.low_confidence_threshold,
        confirmation_ttl_seconds=autonomy_cfg.confirmation_ttl_seconds,
    )
    history = ApprovalHistory(max_contexts=policy.max_contexts_per_pattern, repository=repos.approvals)
    await history.load()

    sandbox_cfg = settings.sandbox
    scripts = ScriptExecutor(
        SandboxConfig(
            use_isolated_runtime=sandbox_cfg.use_isolated_runtime,
            isolated_image=sandbox_cfg.isolated_image,
            timeout_ms=sandbox_cfg.timeout_ms,
            memory_limit_mb=sandbox_cfg.memory_limit_mb,
            cpu_limit=sandbox_cfg.cpu_limit,
        ),
        audit=audit,
    )
    timers = TimerExecutor()
    email_cfg = settings.email
    ha_cfg = settings.home_assistant
    sms_cfg = settings.sms
    media_cfg = settings.media
    registry = build_default_registry(
        scripts=scripts,
        timers=timers,
        email=EmailExecutor(base_url=email_cfg.api_url, api_token=email_cfg.api_token, sender=email_cfg.sender),
        home_assistant=HomeAssistantExecutor(base_url=ha_cfg.url, token=ha_cfg.token),
        sms=SmsExecutor(
            base_url=sms_cfg.api_url,
            account_sid=sms_cfg.account_sid,
            auth_token=sms_cfg.auth_token,
            from_number=sms_cfg.from_number,
        ),
        media=MediaExecutor(base_url=media_cfg.api_url, access_token=media_cfg.access_token),
        launcher=launcher,
    )

    llm_cfg = settings.llm
    provider = llm or OpenAICompatibleProvider(
        llm_cfg.base_url,
        model=llm_cfg.model,
        api_key=llm_cfg.api_key,
        embedding_model=llm_cfg.embedding_model,
        timeout_seconds=llm_cfg.timeout_seconds,
    )
    confirmations = ConfirmationManager(sweep_interval_seconds=autonomy_cfg.sweep_interval_seconds)
    orchestrator = PipelineOrchestrator(
        PipelineDeps(
            registry=registry,
            autonomy=AutonomyEngine(policy, history=history),
            confirmations=confirmations,
            llm=provider,
            audit=audit,
            guard=SafetyGuard(),
            execution_log=repos.execution_log,
        )
    )
    logger.info("Actuator runtime ready with %d tools", len(registry.get_all_capabilities()))
    return ActuatorRuntime(
        orchestrator=orchestrator,
        registry=registry,
        confirmations=confirmations,
        scripts=scripts,
        timers=timers,
        llm=provider,
        audit=audit,
        engine=engine,
    )
