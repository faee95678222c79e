"""
Execution log entity.

Auditable record of every executed action: parameters, outcome, side effects
and who approved it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlmodel import Field

from ..base import Base, dump_json, load_json


class ExecutionLogRow(Base, table=True):
    """Entity for execution log entries.

    Table: act_execution_logs
    """

    __tablename__ = "act_execution_logs"

    id: str = Field(primary_key=True, max_length=64)
    user_id: str = Field(index=True, max_length=128)
    action: str = Field(index=True, max_length=100)
    executor_id: str = Field(max_length=64)

    # Stored as JSON strings for SQLModel compatibility
    params: str = Field(default="{}")
    side_effects: str = Field(default="[]")

    success: bool = Field(index=True)
    message: str = Field(default="")
    error_code: Optional[str] = Field(default=None, max_length=64)
    risk_level: str = Field(index=True, max_length=16)
    duration_ms: int = Field(default=0)
    confirmed_by: str = Field(default="auto", max_length=16)

    created_at: datetime = Field(index=True)

    def get_params_dict(self) -> Dict[str, Any]:
        return load_json(self.params, default={})

    def set_params_dict(self, params: Dict[str, Any]) -> None:
        self.params = dump_json(params)

    def get_side_effects_list(self) -> List[Dict[str, Any]]:
        return load_json(self.side_effects, default=[])

    def set_side_effects_list(self, side_effects: List[Dict[str, Any]]) -> None:
        self.side_effects = dump_json(side_effects, empty="[]")

    def __repr__(self) -> str:
        return f"ExecutionLogRow(id={self.id}, action={self.action}, success={self.success})"
