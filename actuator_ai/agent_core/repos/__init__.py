"""Persistence contracts and their SQL implementations."""

from .interfaces import ApprovalPatternRepository, AuditRepository, ExecutionLogRepository
from .sql import (
    SqlApprovalPatternRepository,
    SqlAuditRepository,
    SqlExecutionLogRepository,
    SqlRepoBundle,
    build_sql_repos,
)

__all__ = [
    "ApprovalPatternRepository",
    "AuditRepository",
    "ExecutionLogRepository",
    "SqlApprovalPatternRepository",
    "SqlAuditRepository",
    "SqlExecutionLogRepository",
    "SqlRepoBundle",
    "build_sql_repos",
]
