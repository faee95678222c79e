"""
Audit sink.

Every security-relevant decision in the actuator core (autonomy decisions,
executions, confirmations, denials, sandbox launches) is reported through an
``AuditSink``. Audit calls never fail their caller: sinks log their own
failures at WARNING and carry on.

Implementations:
- ``LoggingAuditSink``: writes one JSON line per event to the
  ``actuator_ai.audit`` logger.
- ``RepositoryAuditSink``: additionally persists events through an
  ``AuditRepository`` on background tasks so callers are not blocked.
"""

from __future__ import annotations

import asyncio
import json
from typing import TYPE_CHECKING, Any, Dict, Protocol, Set

from .logging_config import get_audit_logger, get_logger

if TYPE_CHECKING:
    from actuator_ai.agent_core.repos.interfaces import AuditRepository

logger = get_logger(__name__)


class AuditSink(Protocol):
    async def audit_log(self, event: str, details: Dict[str, Any]) -> None: ...


class LoggingAuditSink:
    """Emit audit events as JSON on the audit logger."""

    def __init__(self) -> None:
        self._audit_logger = get_audit_logger()

    async def audit_log(self, event: str, details: Dict[str, Any]) -> None:
        try:
            self._audit_logger.info("%s %s", event, json.dumps(details, default=str, sort_keys=True))
        except Exception as exc:
            logger.warning(f"Failed to write audit event {event}: {exc}")


class RepositoryAuditSink(LoggingAuditSink):
    """Log audit events and persist them without blocking the caller."""

    def __init__(self, repository: "AuditRepository") -> None:
        super().__init__()
        self._repository = repository
        self._pending: Set[asyncio.Task[None]] = set()

    async def audit_log(self, event: str, details: Dict[str, Any]) -> None:
        await super().audit_log(event, details)
        task = asyncio.create_task(self._persist(event, dict(details)))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _persist(self, event: str, details: Dict[str, Any]) -> None:
        from actuator_ai.agent_core.schemas.domain import AuditEvent

        try:
            await self._repository.append(AuditEvent(event=event, details=details))
        except Exception as exc:
            logger.warning(f"Failed to persist audit event {event}: {exc}")

    async def flush(self) -> None:
        """Wait for every in-flight persistence task."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
