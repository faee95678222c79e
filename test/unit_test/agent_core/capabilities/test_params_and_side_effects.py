from __future__ import annotations

from actuator_ai.agent_core.capabilities.builtin.timers import CancelTimerParams, SetTimerParams
from actuator_ai.agent_core.capabilities.side_effects import DEFAULT_SEVERITY, create_side_effect
from actuator_ai.agent_core.capabilities.validation import validate_params
from actuator_ai.agent_core.schemas.domain import (
    RiskLevel,
    SideEffectSeverity,
    SideEffectType,
    ToolCapability,
)


def _cap(schema) -> ToolCapability:
    return ToolCapability(
        name="tool",
        description="test tool",
        params_schema=schema,
        risk_level=RiskLevel.low,
        reversible=True,
    )


def test_every_side_effect_type_has_a_default_severity() -> None:
    assert set(DEFAULT_SEVERITY) == set(SideEffectType)


def test_severity_is_inferred_from_type() -> None:
    assert create_side_effect(SideEffectType.process_spawn, "browser", "x").severity == SideEffectSeverity.major
    assert create_side_effect(SideEffectType.process_kill, "app", "x").severity == SideEffectSeverity.critical
    assert create_side_effect(SideEffectType.email_sent, "a@b.co", "x").severity == SideEffectSeverity.minor
    assert create_side_effect(SideEffectType.notification, "user", "x").severity == SideEffectSeverity.trivial


def test_explicit_severity_wins() -> None:
    effect = create_side_effect(
        SideEffectType.email_sent, "a@b.co", "Sent", severity=SideEffectSeverity.major, reversible=False
    )
    assert effect.severity == SideEffectSeverity.major
    assert effect.reversible is False


def test_details_only_attached_when_given() -> None:
    bare = create_side_effect(SideEffectType.device_control, "light.kitchen", "x")
    detailed = create_side_effect(SideEffectType.device_control, "light.kitchen", "x", before="off", after="on")

    assert bare.details is None
    assert detailed.details is not None
    assert (detailed.details.before, detailed.details.after) == ("off", "on")
    assert detailed.details.metadata == {}


def test_validate_params_fills_defaults_and_drops_unknown_keys() -> None:
    outcome = validate_params(_cap(SetTimerParams), {"duration": "90", "label": " tea ", "colour": "red"})

    assert outcome.valid is True
    assert outcome.sanitized_params == {"duration": 90, "label": "tea"}
    again = validate_params(_cap(SetTimerParams), outcome.sanitized_params)
    assert again.sanitized_params == outcome.sanitized_params


def test_validate_params_formats_errors_by_field() -> None:
    outcome = validate_params(_cap(SetTimerParams), {"duration": 0})

    assert outcome.valid is False
    assert outcome.sanitized_params is None
    assert len(outcome.errors) == 1
    assert outcome.errors[0].startswith("duration: ")


def test_model_level_validation_errors_are_reported() -> None:
    outcome = validate_params(_cap(CancelTimerParams), {})
    assert outcome.valid is False
    assert "either timer_id or label is required" in outcome.errors[0]


def test_none_params_are_treated_as_empty() -> None:
    assert validate_params(_cap(SetTimerParams), None).valid is False
