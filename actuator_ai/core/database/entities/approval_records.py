"""
Approval record entity.

One row per explicit user approval; replayed at start-up to rebuild learned
approval patterns.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlmodel import Field

from ..base import Base


class ApprovalRecordRow(Base, table=True):
    """Entity for approval records.

    Table: act_approval_records
    """

    __tablename__ = "act_approval_records"

    id: str = Field(primary_key=True, max_length=64)
    user_id: str = Field(index=True, max_length=128)
    action: str = Field(index=True, max_length=100)
    params_hash: str = Field(index=True)

    # Context bucket at approval time
    time_of_day: str = Field(max_length=16)
    mode: str = Field(max_length=16)
    active_app: Optional[str] = Field(default=None, max_length=128)

    approved_at: datetime = Field(index=True)

    def __repr__(self) -> str:
        return f"ApprovalRecordRow(id={self.id}, action={self.action}, user={self.user_id})"
