from __future__ import annotations

from pydantic import Field

from ..schemas.base import BaseSchema
from ..schemas.context import UserMode

DEFAULT_ALWAYS_AUTO_APPROVE = frozenset(
    {
        "getTime",
        "getDate",
        "getTimers",
        "getEmails",
        "getDeviceState",
        "calculate",
        "getMessageStatus",
        "getCurrentTrack",
    }
)


class AutonomyPolicyConfig(BaseSchema):
    """
    Thresholds and lists that drive ``AutonomyEngine``.

    The risk-tier mapping itself is fixed; these knobs only tune learned
    approvals, mode escalation, low-confidence handling and expiry.
    """

    always_auto_approve: frozenset[str] = Field(
        default=DEFAULT_ALWAYS_AUTO_APPROVE,
        description="Read-only actions that are never gated or escalated.",
    )
    learned_approval_threshold: int = Field(
        default=3,
        ge=1,
        description="Approvals in a matching context before a pattern counts as learned.",
    )
    max_contexts_per_pattern: int = Field(
        default=10,
        ge=1,
        description="How many approval contexts are retained per action/params pattern.",
    )
    escalating_modes: frozenset[UserMode] = Field(
        default=frozenset({UserMode.sleep, UserMode.dnd, UserMode.guest}),
        description="User modes in which every gated tier is raised by one.",
    )
    low_confidence_threshold: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Intent confidence below which gated actions need detailed confirmation.",
    )
    confirmation_ttl_seconds: int = Field(default=120, ge=1, le=86_400)


class SafetyPolicy(BaseSchema):
    """
    Configuration for safety guardrails.

    Includes settings for prompt injection detection, secret redaction, and
    parameter size limits.
    """

    block_prompt_injection: bool = True
    redact_secrets: bool = True
    sanitize_params: bool = True
    sanitize_exempt_keys: frozenset[str] = Field(
        default=frozenset({"code", "body", "url"}),
        description="Top-level parameter keys whose values are passed through unsanitized.",
    )
    max_tool_args_bytes: int = Field(default=64_000, ge=1, le=5_000_000)


class PolicyConfig(BaseSchema):
    """
    Aggregate configuration object for all policy aspects.
    """

    version: str = Field(default="autonomy-v1")

    autonomy: AutonomyPolicyConfig = Field(default_factory=AutonomyPolicyConfig)
    safety: SafetyPolicy = Field(default_factory=SafetyPolicy)
