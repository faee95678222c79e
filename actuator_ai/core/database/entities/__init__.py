"""SQLModel entities, one module per table."""

from .approval_records import ApprovalRecordRow
from .audit_events import AuditEventRow
from .execution_logs import ExecutionLogRow

__all__ = [
    "ApprovalRecordRow",
    "AuditEventRow",
    "ExecutionLogRow",
]
