"""Autonomy policy and safety guardrails.

- ``AutonomyEngine`` maps an action intent to an ``AutonomyDecision``.
- ``ApprovalHistory`` records explicit approvals used for pattern learning.
- ``SafetyGuard`` holds the injection, sanitizing and redaction heuristics.
- ``PolicyConfig`` aggregates ``AutonomyPolicyConfig`` and ``SafetyPolicy``.
"""

from .autonomy import AutonomyEngine, format_announcement, format_params_for_display
from .history import ApprovalHistory, ApprovalPattern, ContextBucket, hash_params
from .models import AutonomyPolicyConfig, PolicyConfig, SafetyPolicy
from .safety import SafetyGuard

__all__ = [
    "ApprovalHistory",
    "ApprovalPattern",
    "AutonomyEngine",
    "AutonomyPolicyConfig",
    "ContextBucket",
    "PolicyConfig",
    "SafetyGuard",
    "SafetyPolicy",
    "format_announcement",
    "format_params_for_display",
    "hash_params",
]
