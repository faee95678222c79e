"""Autonomy decisions for model-proposed actions.

``AutonomyEngine`` decides, for every action intent, whether to run it
silently, announce it, ask for a simple or detailed confirmation, or refuse.
It is the runtime authority for gating; prompts never decide this.

Decision order
--------------

1. Actions on the always-auto-approve list run immediately and are never
   escalated.
2. The capability's risk tier gives the base level:

   - ``critical``: DENY, unless a learned approval pattern exists, in which
     case a detailed confirmation is asked for.
   - ``high`` (or external impact that cannot be undone): CONFIRM_DETAILED.
   - ``medium``: CONFIRM_SIMPLE, relaxed to ANNOUNCE by a learned pattern.
   - ``low``: ANNOUNCE.
   - ``none``: AUTO_APPROVE.

3. Escalating user modes (sleep, dnd, guest by default) raise every gated
   level by one tier.
4. Intents below the low-confidence threshold need a detailed confirmation.

Risk ``none`` is never gated and DENY is never relaxed by steps 3 and 4.
Decisions are computed fresh for every call and never cached.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, Mapping, Optional

from ..schemas.context import SituationalContext
from ..schemas.domain import CONFIRMATION_LEVELS, AutonomyDecision, AutonomyLevel, RiskLevel, ToolCapability
from ..schemas.intents import ActionIntent
from .history import ApprovalHistory
from .models import AutonomyPolicyConfig

logger = logging.getLogger(__name__)

_HIDDEN_DISPLAY_KEYS = frozenset({"id", "timestamp", "requestId", "request_id", "userId", "user_id"})
_DISPLAY_TEXT_LIMIT = 100
_DISPLAY_LIST_LIMIT = 3

_ESCALATION = {
    AutonomyLevel.AUTO_APPROVE: AutonomyLevel.ANNOUNCE,
    AutonomyLevel.ANNOUNCE: AutonomyLevel.CONFIRM_SIMPLE,
    AutonomyLevel.CONFIRM_SIMPLE: AutonomyLevel.CONFIRM_DETAILED,
    AutonomyLevel.CONFIRM_DETAILED: AutonomyLevel.CONFIRM_DETAILED,
    AutonomyLevel.DENY: AutonomyLevel.DENY,
}


def _display_key(key: str) -> str:
    spaced = re.sub(r"([A-Z])", r" \1", key).replace("_", " ").strip()
    return spaced[:1].upper() + spaced[1:]


def format_params_for_display(params: Mapping[str, Any]) -> Dict[str, str]:
    """Human-readable parameter summary for confirmation prompts.

    Technical keys are hidden, long strings and lists are shortened and
    nested objects are left out.
    """
    display: Dict[str, str] = {}
    for key, value in params.items():
        if key in _HIDDEN_DISPLAY_KEYS:
            continue
        label = _display_key(key)
        if isinstance(value, str):
            display[label] = value if len(value) <= _DISPLAY_TEXT_LIMIT else value[:_DISPLAY_TEXT_LIMIT] + "..."
        elif isinstance(value, bool):
            display[label] = "yes" if value else "no"
        elif isinstance(value, (int, float)):
            display[label] = str(value)
        elif isinstance(value, (list, tuple)):
            shown = ", ".join(str(v) for v in value[:_DISPLAY_LIST_LIMIT])
            display[label] = shown + ("..." if len(value) > _DISPLAY_LIST_LIMIT else "")
    return display


def format_announcement(action: str, params: Mapping[str, Any]) -> str:
    if action == "setTimer":
        label = params.get("label")
        return f"Setting timer for {params.get('duration')} seconds" + (f": {label}" if label else "")
    if action == "cancelTimer":
        return f"Cancelling timer {params.get('label') or params.get('timer_id')}"
    if action == "openUrl":
        return f"Opening {params.get('url')}"
    if action == "launchApp":
        return f"Launching {params.get('app')}"
    if action == "controlDevice":
        return f"Turning {str(params.get('action', '')).replace('turn_', '')} {params.get('device')}"
    if action == "setVolume":
        return f"Setting volume to {params.get('volume')}%"
    if action == "playMusic":
        return f'Playing "{params["query"]}"' if params.get("query") else "Resuming music"
    if action == "pauseMusic":
        return "Pausing music"
    if action == "skipTrack":
        return "Skipping to previous track" if params.get("direction") == "previous" else "Skipping to next track"
    return f"Executing {action}"


class AutonomyEngine:
    """
    Compute ``AutonomyDecision`` values from capability metadata, learned
    approvals, the user's mode and the model's confidence.
    """

    def __init__(self, config: Optional[AutonomyPolicyConfig] = None, *, history: Optional[ApprovalHistory] = None) -> None:
        self._cfg = config or AutonomyPolicyConfig()
        self._history = history or ApprovalHistory(max_contexts=self._cfg.max_contexts_per_pattern)

    @property
    def config(self) -> AutonomyPolicyConfig:
        return self._cfg

    @property
    def history(self) -> ApprovalHistory:
        return self._history

    async def _learned(self, user_id: str, intent: ActionIntent, context: SituationalContext) -> bool:
        return await self._history.has_learned_approval(
            user_id,
            intent.action,
            intent.params,
            context,
            threshold=self._cfg.learned_approval_threshold,
        )

    async def determine_autonomy(
        self,
        intent: ActionIntent,
        capability: ToolCapability,
        context: SituationalContext,
        *,
        user_id: str,
    ) -> AutonomyDecision:
        """
        Decide how much autonomy to grant one action intent.

        Args:
            intent: The parsed action intent (action, params, confidence, reasoning).
            capability: Metadata of the tool the intent targets.
            context: The situational context at decision time.
            user_id: Whose approval history applies.

        Returns:
            A fresh ``AutonomyDecision``.
        """
        action = intent.action

        if action in self._cfg.always_auto_approve:
            return self._finish(intent, AutonomyLevel.AUTO_APPROVE, "Read-only action on the auto-approve list")

        risk = capability.risk_level
        if risk == RiskLevel.none:
            return self._finish(intent, AutonomyLevel.AUTO_APPROVE, "No-risk action")

        if risk == RiskLevel.critical:
            if await self._learned(user_id, intent, context):
                level, reason = AutonomyLevel.CONFIRM_DETAILED, "Critical action with a learned approval pattern"
            else:
                level, reason = AutonomyLevel.DENY, "Critical actions are denied by default"
        elif risk == RiskLevel.high or (capability.external_impact and not capability.reversible):
            level, reason = AutonomyLevel.CONFIRM_DETAILED, f"{risk.value.capitalize()}-risk action needs detailed confirmation"
        elif risk == RiskLevel.medium:
            if await self._learned(user_id, intent, context):
                level, reason = AutonomyLevel.ANNOUNCE, "Learned from previous approvals"
            else:
                level, reason = AutonomyLevel.CONFIRM_SIMPLE, "Medium-risk action needs confirmation"
        else:
            level, reason = AutonomyLevel.ANNOUNCE, "Low-risk action"

        mode = context.user.mode
        if mode in self._cfg.escalating_modes and level != AutonomyLevel.DENY:
            escalated = _ESCALATION[level]
            if escalated != level:
                reason = f"{reason}; escalated for {mode.value} mode"
            level = escalated

        note = None
        if level != AutonomyLevel.DENY and intent.confidence < self._cfg.low_confidence_threshold:
            note = f"I'm only {round(intent.confidence * 100)}% confident about this."
            if level != AutonomyLevel.CONFIRM_DETAILED:
                level = AutonomyLevel.CONFIRM_DETAILED
                reason = f"{reason}; low confidence requires confirmation"

        return self._finish(intent, level, reason, confidence_note=note)

    def _finish(
        self,
        intent: ActionIntent,
        level: AutonomyLevel,
        reason: str,
        *,
        confidence_note: Optional[str] = None,
    ) -> AutonomyDecision:
        display_message: Optional[str] = None
        display_params: Optional[Dict[str, str]] = None
        if level in CONFIRMATION_LEVELS:
            display_message = intent.reasoning or f"Execute {intent.action}?"
            if confidence_note:
                display_message = f"{confidence_note} {display_message}"
            display_params = format_params_for_display(intent.params)
        elif level == AutonomyLevel.ANNOUNCE:
            display_message = intent.reasoning or format_announcement(intent.action, intent.params)

        logger.debug("Autonomy for %s: %s (%s)", intent.action, level.value, reason)
        return AutonomyDecision(
            level=level,
            reason=reason,
            display_message=display_message,
            display_params=display_params,
            expires_in_seconds=self._cfg.confirmation_ttl_seconds,
        )
