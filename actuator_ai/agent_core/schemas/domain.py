from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Type
from uuid import uuid4

from pydantic import BaseModel, Field

from .base import BaseSchema, FrozenSchema, utc_now
from .context import SituationalContext
from .intents import ActionIntent


class RiskLevel(str, Enum):
    none = "none"
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


_RISK_ORDER = {
    RiskLevel.none: 0,
    RiskLevel.low: 1,
    RiskLevel.medium: 2,
    RiskLevel.high: 3,
    RiskLevel.critical: 4,
}


def risk_at_least(risk: RiskLevel, floor: RiskLevel) -> bool:
    """Check if ``risk`` is greater than or equal to ``floor``."""
    return _RISK_ORDER[risk] >= _RISK_ORDER[floor]


class BlastRadius(str, Enum):
    local = "local"
    device = "device"
    network = "network"
    external = "external"


class SideEffectType(str, Enum):
    state_change = "state_change"
    data_created = "data_created"
    data_modified = "data_modified"
    data_deleted = "data_deleted"
    api_call = "api_call"
    network_request = "network_request"
    device_control = "device_control"
    service_invoked = "service_invoked"
    message_sent = "message_sent"
    email_sent = "email_sent"
    file_read = "file_read"
    file_write = "file_write"
    file_delete = "file_delete"
    process_spawn = "process_spawn"
    process_kill = "process_kill"
    notification = "notification"
    audio_played = "audio_played"
    ui_displayed = "ui_displayed"
    timer_created = "timer_created"
    timer_cancelled = "timer_cancelled"
    reminder_set = "reminder_set"


class SideEffectSeverity(str, Enum):
    trivial = "trivial"
    minor = "minor"
    moderate = "moderate"
    major = "major"
    critical = "critical"


class ErrorCode(str, Enum):
    NO_EXECUTOR = "NO_EXECUTOR"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    EXECUTION_ERROR = "EXECUTION_ERROR"
    TIMEOUT = "TIMEOUT"
    RESOURCE_LIMIT_EXCEEDED = "RESOURCE_LIMIT_EXCEEDED"
    DENIED = "DENIED"
    LAUNCHER_ERROR = "LAUNCHER_ERROR"
    DEVICE_CONTROL_ERROR = "DEVICE_CONTROL_ERROR"
    EMAIL_ERROR = "EMAIL_ERROR"
    SMS_ERROR = "SMS_ERROR"
    MEDIA_ERROR = "MEDIA_ERROR"


class AutonomyLevel(str, Enum):
    AUTO_APPROVE = "auto_approve"
    ANNOUNCE = "announce"
    CONFIRM_SIMPLE = "confirm_simple"
    CONFIRM_DETAILED = "confirm_detailed"
    DENY = "deny"


CONFIRMATION_LEVELS = frozenset({AutonomyLevel.CONFIRM_SIMPLE, AutonomyLevel.CONFIRM_DETAILED})


class ToolCapability(FrozenSchema):
    """Static metadata describing one tool an executor offers.

    ``params_schema`` is a pydantic model class; validation of incoming
    parameters is driven entirely by it.
    """

    name: str
    description: str
    params_schema: Type[BaseModel] = Field(exclude=True)
    risk_level: RiskLevel
    reversible: bool
    external_impact: bool = False
    blast_radius: BlastRadius = BlastRadius.local
    required_permissions: FrozenSet[str] = frozenset()
    supports_simulation: bool = False

    def parameters_json_schema(self) -> Dict[str, Any]:
        return self.params_schema.model_json_schema()


class SideEffectDetails(FrozenSchema):
    before: Any = None
    after: Any = None
    metadata: Dict[str, Any] = Field(default_factory=dict)


class ExecutionSideEffect(FrozenSchema):
    type: SideEffectType
    target: str
    description: str
    reversible: bool = True
    rollback_action: Optional[str] = None
    severity: SideEffectSeverity
    details: Optional[SideEffectDetails] = None


class ExecutionError(FrozenSchema):
    code: str
    message: str
    recoverable: bool = False


class ExecutionMeta(FrozenSchema):
    started_at: datetime
    completed_at: datetime
    duration_ms: int
    executor_id: str
    sandboxed: bool = False


class ExecutionResult(FrozenSchema):
    success: bool
    output: Any = None
    message: str = ""
    side_effects: List[ExecutionSideEffect] = Field(default_factory=list)
    error: Optional[ExecutionError] = None
    meta: ExecutionMeta

    @classmethod
    def failure(
        cls,
        code: str,
        message: str,
        *,
        executor_id: str = "none",
        recoverable: bool = False,
        started_at: Optional[datetime] = None,
        sandboxed: bool = False,
    ) -> "ExecutionResult":
        """Build a failed result without side effects."""
        now = utc_now()
        started = started_at or now
        return cls(
            success=False,
            message=message,
            error=ExecutionError(code=str(getattr(code, "value", code)), message=message, recoverable=recoverable),
            meta=ExecutionMeta(
                started_at=started,
                completed_at=now,
                duration_ms=max(0, int((now - started).total_seconds() * 1000)),
                executor_id=executor_id,
                sandboxed=sandboxed,
            ),
        )


class SimulationResult(BaseSchema):
    would_succeed: bool
    predicted_output: Any = None
    predicted_side_effects: List[ExecutionSideEffect] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


class ValidationOutcome(BaseSchema):
    valid: bool
    errors: List[str] = Field(default_factory=list)
    sanitized_params: Optional[Dict[str, Any]] = None


class RollbackResult(BaseSchema):
    success: bool
    message: str


class AutonomyDecision(BaseSchema):
    level: AutonomyLevel
    reason: str
    display_message: Optional[str] = None
    display_params: Optional[Dict[str, str]] = None
    expires_in_seconds: int = Field(default=120, ge=1)

    @property
    def requires_confirmation(self) -> bool:
        return self.level in CONFIRMATION_LEVELS


class PendingConfirmation(BaseSchema):
    id: str
    user_id: str
    intent: ActionIntent
    decision: AutonomyDecision
    context_snapshot: SituationalContext
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class AuditEvent(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    event: str
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)


class ApprovalRecord(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    action: str
    params_hash: str
    time_of_day: str
    mode: str
    active_app: Optional[str] = None
    approved_at: datetime = Field(default_factory=utc_now)


class ExecutionLogEntry(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    action: str
    params: Dict[str, Any] = Field(default_factory=dict)
    success: bool
    message: str = ""
    error_code: Optional[str] = None
    side_effects: List[Dict[str, Any]] = Field(default_factory=list)
    risk_level: RiskLevel
    executor_id: str
    duration_ms: int = 0
    confirmed_by: str = "auto"
    created_at: datetime = Field(default_factory=utc_now)
