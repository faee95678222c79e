"""Side-effect construction with severity inferred from the effect type."""

from __future__ import annotations

from typing import Any, Dict, Optional

from ..schemas.domain import ExecutionSideEffect, SideEffectDetails, SideEffectSeverity, SideEffectType

DEFAULT_SEVERITY: Dict[SideEffectType, SideEffectSeverity] = {
    SideEffectType.notification: SideEffectSeverity.trivial,
    SideEffectType.audio_played: SideEffectSeverity.trivial,
    SideEffectType.ui_displayed: SideEffectSeverity.trivial,
    SideEffectType.file_read: SideEffectSeverity.trivial,
    SideEffectType.state_change: SideEffectSeverity.minor,
    SideEffectType.timer_created: SideEffectSeverity.minor,
    SideEffectType.timer_cancelled: SideEffectSeverity.minor,
    SideEffectType.reminder_set: SideEffectSeverity.minor,
    SideEffectType.data_created: SideEffectSeverity.minor,
    SideEffectType.message_sent: SideEffectSeverity.minor,
    SideEffectType.email_sent: SideEffectSeverity.minor,
    SideEffectType.data_modified: SideEffectSeverity.moderate,
    SideEffectType.api_call: SideEffectSeverity.moderate,
    SideEffectType.network_request: SideEffectSeverity.moderate,
    SideEffectType.file_write: SideEffectSeverity.moderate,
    SideEffectType.device_control: SideEffectSeverity.major,
    SideEffectType.service_invoked: SideEffectSeverity.major,
    SideEffectType.process_spawn: SideEffectSeverity.major,
    SideEffectType.data_deleted: SideEffectSeverity.major,
    SideEffectType.file_delete: SideEffectSeverity.critical,
    SideEffectType.process_kill: SideEffectSeverity.critical,
}


def create_side_effect(
    type: SideEffectType,
    target: str,
    description: str,
    *,
    reversible: bool = True,
    rollback_action: Optional[str] = None,
    severity: Optional[SideEffectSeverity] = None,
    before: Any = None,
    after: Any = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> ExecutionSideEffect:
    """
    Build an ``ExecutionSideEffect``.

    An explicit ``severity`` always wins over the default for ``type``.
    ``details`` is only attached when at least one of ``before``, ``after``
    or ``metadata`` is given.
    """
    details = None
    if before is not None or after is not None or metadata:
        details = SideEffectDetails(before=before, after=after, metadata=dict(metadata or {}))
    return ExecutionSideEffect(
        type=type,
        target=target,
        description=description,
        reversible=reversible,
        rollback_action=rollback_action,
        severity=severity or DEFAULT_SEVERITY[type],
        details=details,
    )
