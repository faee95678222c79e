"""SQLAlchemy async repository implementations.

This module provides the SQL-backed persistence for the repository interfaces
defined in ``actuator_ai.agent_core.repos.interfaces``.

Usage
-----

Typical wiring (tests or application setup):

- Create an async engine with ``actuator_ai.core.database.create_engine``.
- Create tables with ``create_all`` (for tests/dev).
- Create a session factory with ``create_sessionmaker``.
- Build repository instances with ``build_sql_repos``.

Transaction model
-----------------

Each repository method opens an ``AsyncSession``, performs its operation, and
commits. Every persisted artifact (audit event, approval, execution log
entry) is durable when the method returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from actuator_ai.core.database.entities import ApprovalRecordRow, AuditEventRow, ExecutionLogRow

from ..schemas.domain import ApprovalRecord, AuditEvent, ExecutionLogEntry, RiskLevel
from .interfaces import AuditRepository, ApprovalPatternRepository, ExecutionLogRepository


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo.
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class SqlAuditRepository(AuditRepository):
    """SQL implementation of ``AuditRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def append(self, event: AuditEvent) -> None:
        """
        Append an audit event.

        Args:
            event: The event to persist.
        """
        row = AuditEventRow(id=event.id, event=event.event, created_at=event.created_at)
        row.set_details_dict(event.details)
        async with self.session_factory() as s:
            s.add(row)
            await s.commit()

    async def list(self, event: Optional[str] = None, limit: int = 100) -> list[AuditEvent]:
        """
        List audit events, newest first.

        Args:
            event: Optional event name to filter by.
            limit: Max number of events to return.
        """
        async with self.session_factory() as s:
            stmt = select(AuditEventRow)
            if event is not None:
                stmt = stmt.where(AuditEventRow.event == event)
            stmt = stmt.order_by(AuditEventRow.created_at.desc()).limit(limit)
            rows = (await s.execute(stmt)).scalars().all()
            return [
                AuditEvent(
                    id=r.id,
                    event=r.event,
                    details=r.get_details_dict(),
                    created_at=_as_utc(r.created_at),
                )
                for r in rows
            ]


@dataclass(frozen=True)
class SqlApprovalPatternRepository(ApprovalPatternRepository):
    """SQL implementation of ``ApprovalPatternRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def append(self, record: ApprovalRecord) -> None:
        async with self.session_factory() as s:
            s.add(
                ApprovalRecordRow(
                    id=record.id,
                    user_id=record.user_id,
                    action=record.action,
                    params_hash=record.params_hash,
                    time_of_day=record.time_of_day,
                    mode=record.mode,
                    active_app=record.active_app,
                    approved_at=record.approved_at,
                )
            )
            await s.commit()

    async def list(self, user_id: Optional[str] = None, limit: int = 1000) -> list[ApprovalRecord]:
        async with self.session_factory() as s:
            stmt = select(ApprovalRecordRow)
            if user_id is not None:
                stmt = stmt.where(ApprovalRecordRow.user_id == user_id)
            stmt = stmt.order_by(ApprovalRecordRow.approved_at.asc()).limit(limit)
            rows = (await s.execute(stmt)).scalars().all()
            return [
                ApprovalRecord(
                    id=r.id,
                    user_id=r.user_id,
                    action=r.action,
                    params_hash=r.params_hash,
                    time_of_day=r.time_of_day,
                    mode=r.mode,
                    active_app=r.active_app,
                    approved_at=_as_utc(r.approved_at),
                )
                for r in rows
            ]


@dataclass(frozen=True)
class SqlExecutionLogRepository(ExecutionLogRepository):
    """SQL implementation of ``ExecutionLogRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def append(self, entry: ExecutionLogEntry) -> None:
        """
        Append one execution outcome.

        Args:
            entry: The execution log entry to persist.
        """
        row = ExecutionLogRow(
            id=entry.id,
            user_id=entry.user_id,
            action=entry.action,
            executor_id=entry.executor_id,
            success=entry.success,
            message=entry.message,
            error_code=entry.error_code,
            risk_level=entry.risk_level.value,
            duration_ms=entry.duration_ms,
            confirmed_by=entry.confirmed_by,
            created_at=entry.created_at,
        )
        row.set_params_dict(entry.params)
        row.set_side_effects_list(entry.side_effects)
        async with self.session_factory() as s:
            s.add(row)
            await s.commit()

    async def list(self, user_id: Optional[str] = None, limit: int = 100) -> list[ExecutionLogEntry]:
        async with self.session_factory() as s:
            stmt = select(ExecutionLogRow)
            if user_id is not None:
                stmt = stmt.where(ExecutionLogRow.user_id == user_id)
            stmt = stmt.order_by(ExecutionLogRow.created_at.desc()).limit(limit)
            rows = (await s.execute(stmt)).scalars().all()
            return [
                ExecutionLogEntry(
                    id=r.id,
                    user_id=r.user_id,
                    action=r.action,
                    params=r.get_params_dict(),
                    success=r.success,
                    message=r.message,
                    error_code=r.error_code,
                    side_effects=r.get_side_effects_list(),
                    risk_level=RiskLevel(r.risk_level),
                    executor_id=r.executor_id,
                    duration_ms=r.duration_ms,
                    confirmed_by=r.confirmed_by,
                    created_at=_as_utc(r.created_at),
                )
                for r in rows
            ]


@dataclass(frozen=True)
class SqlRepoBundle:
    """Convenience container for all SQL repositories."""

    audit: SqlAuditRepository
    approvals: SqlApprovalPatternRepository
    execution_log: SqlExecutionLogRepository


def build_sql_repos(*, session_factory: async_sessionmaker[AsyncSession]) -> SqlRepoBundle:
    """
    Build all SQL repositories sharing a single session factory.

    Args:
        session_factory: The async sessionmaker used by every repository.
    """
    return SqlRepoBundle(
        audit=SqlAuditRepository(session_factory),
        approvals=SqlApprovalPatternRepository(session_factory),
        execution_log=SqlExecutionLogRepository(session_factory),
    )
