"""
Audit event entity.

Append-only timeline of security-relevant decisions (autonomy decisions,
executions, confirmations, denials, blocked injections).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlmodel import Field

from ..base import Base, dump_json, load_json


class AuditEventRow(Base, table=True):
    """Entity for audit events.

    Table: act_audit_events
    """

    __tablename__ = "act_audit_events"

    id: str = Field(primary_key=True, max_length=64)
    event: str = Field(index=True, max_length=64)
    details: str = Field(default="{}")
    created_at: datetime = Field(index=True)

    def get_details_dict(self) -> Dict[str, Any]:
        return load_json(self.details, default={})

    def set_details_dict(self, details: Dict[str, Any]) -> None:
        self.details = dump_json(details)

    def __repr__(self) -> str:
        return f"AuditEventRow(id={self.id}, event={self.event})"
