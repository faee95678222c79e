"""Repository interface contracts.

The actuator core depends on these Protocols instead of concrete persistence
implementations.

Contract guidelines
-------------------

- All methods are async.
- Implementations must not leak sessions or transactions to callers.
- All three repositories are append-only.

They mirror the core's durability needs:

- Audit events form a timeline of security-relevant decisions.
- Approval records let learned approval patterns survive restarts.
- Execution log entries capture every side-effecting execution result.
"""

from __future__ import annotations

from typing import Optional, Protocol

from ..schemas.domain import ApprovalRecord, AuditEvent, ExecutionLogEntry


class AuditRepository(Protocol):
    """Append-only store for audit events."""

    async def append(self, event: AuditEvent) -> None:
        """
        Persist one audit event.

        Args:
            event: The event to store.
        """
        ...

    async def list(self, event: Optional[str] = None, limit: int = 100) -> list[AuditEvent]:
        """
        List audit events, newest first.

        Args:
            event: Optional event name to filter by (e.g. ``ACTION_CONFIRMED``).
            limit: Max number of records to return.
        """
        ...


class ApprovalPatternRepository(Protocol):
    """Store explicit user approvals used for pattern learning."""

    async def append(self, record: ApprovalRecord) -> None:
        """
        Persist one approval.

        Args:
            record: The approval with its params hash and context bucket.
        """
        ...

    async def list(self, user_id: Optional[str] = None, limit: int = 1000) -> list[ApprovalRecord]:
        """
        List approvals, oldest first.

        Args:
            user_id: Optional user to filter by.
            limit: Max number of records to return.
        """
        ...


class ExecutionLogRepository(Protocol):
    """Record executed actions and their outcomes."""

    async def append(self, entry: ExecutionLogEntry) -> None:
        """
        Persist one execution log entry.

        Args:
            entry: The execution outcome to store.
        """
        ...

    async def list(self, user_id: Optional[str] = None, limit: int = 100) -> list[ExecutionLogEntry]:
        """
        List execution log entries, newest first.

        Args:
            user_id: Optional user to filter by.
            limit: Max number of records to return.
        """
        ...
