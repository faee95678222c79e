"""Intent parsing of raw model output.

The model is asked to answer either in plain text or with one JSON intent
block. ``parse_intent``:

- rejects empty output,
- rejects output that trips the injection heuristics before anything else,
- extracts JSON from a fenced block, or from a bare object that looks like an
  intent,
- validates it against the intent union,
- salvages a partially valid ``action`` (confidence drops to 0.5),
- otherwise falls back to treating the text as a plain response.

Parameters of accepted action and plan intents are sanitized through the
``SafetyGuard``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..errors import IntentParseError
from ..policy.safety import SafetyGuard
from ..schemas.intents import (
    INTENT_TYPES,
    ActionIntent,
    Intent,
    ObserveIntent,
    PlanIntent,
    ResponseIntent,
    intent_adapter,
)

logger = logging.getLogger(__name__)

_CODE_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)```")
_BARE_OBJECT = re.compile(r"(\{[\s\S]*\})")
_SALVAGED_CONFIDENCE = 0.5
_MAX_RESPONSE_TEXT = 10_000


@dataclass
class ParseResult:
    success: bool
    intent: Optional[Intent] = None
    preamble: Optional[str] = None
    raw_json: Optional[str] = None
    errors: List[str] = field(default_factory=list)
    was_fallback: bool = False
    injection_detected: bool = False


def extract_json(text: str) -> Tuple[Optional[str], str]:
    """Return ``(json_text, preamble)``; ``json_text`` is None when nothing looks like an intent."""
    block = _CODE_BLOCK.search(text)
    if block:
        return block.group(1).strip(), text[: block.start()].strip()
    bare = _BARE_OBJECT.search(text)
    if bare:
        candidate = bare.group(1)
        if '"type"' in candidate and any(f'"{kind}"' in candidate for kind in INTENT_TYPES):
            return candidate, text[: bare.start()].strip()
    return None, text.strip()


def _load_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise IntentParseError(f"invalid JSON at line {exc.lineno} column {exc.colno}") from exc


def _fallback(text: str, **kwargs: Any) -> ParseResult:
    return ParseResult(
        success=True,
        intent=ResponseIntent(text=text[:_MAX_RESPONSE_TEXT]),
        was_fallback=True,
        **kwargs,
    )


def _salvage_action(parsed: Dict[str, Any], guard: SafetyGuard) -> Optional[ActionIntent]:
    params = parsed.get("params")
    confidence = parsed.get("confidence")
    reasoning = parsed.get("reasoning")
    try:
        return ActionIntent(
            action=parsed["action"],
            params=guard.sanitize_params(params if isinstance(params, dict) else {}),
            confidence=(
                confidence
                if isinstance(confidence, (int, float)) and not isinstance(confidence, bool) and 0 <= confidence <= 1
                else _SALVAGED_CONFIDENCE
            ),
            reasoning=reasoning[:500] if isinstance(reasoning, str) else None,
        )
    except ValidationError:
        return None


def _sanitize(intent: Intent, guard: SafetyGuard) -> Intent:
    if isinstance(intent, ActionIntent):
        return intent.model_copy(update={"params": guard.sanitize_params(intent.params)})
    if isinstance(intent, PlanIntent):
        steps = [s.model_copy(update={"params": guard.sanitize_params(s.params)}) for s in intent.steps]
        return intent.model_copy(update={"steps": steps})
    if isinstance(intent, ObserveIntent) and intent.suggestion is not None:
        suggestion = intent.suggestion.model_copy(update={"params": guard.sanitize_params(intent.suggestion.params)})
        return intent.model_copy(update={"suggestion": suggestion})
    return intent


def parse_intent(output: Optional[str], guard: SafetyGuard) -> ParseResult:
    """
    Parse raw model output into one intent.

    Args:
        output: The model's reply text.
        guard: Safety guard supplying injection detection and param sanitizing.

    Returns:
        A ``ParseResult``. ``success`` is False only for empty output or a
        detected injection; everything else degrades to a response intent.
    """
    if not output or not output.strip():
        return ParseResult(success=False, errors=["Empty model output"])

    if guard.detect_prompt_injection(output):
        logger.warning("Injection attempt detected in model output: %s", guard.redact(output[:200]))
        return ParseResult(success=False, errors=["Potential injection detected"], injection_detected=True)

    raw_json, preamble = extract_json(output)
    if raw_json is None:
        return _fallback(output.strip())

    try:
        parsed = _load_json(raw_json)
    except IntentParseError as exc:
        logger.warning("%s: %s", exc, raw_json[:200])
        return _fallback(preamble or output.strip(), raw_json=raw_json, errors=[exc.message])

    try:
        intent = intent_adapter.validate_python(parsed)
    except ValidationError as exc:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
        logger.warning("Model output failed intent validation: %s", errors)
        if isinstance(parsed, dict) and parsed.get("type") == "action" and isinstance(parsed.get("action"), str):
            salvaged = _salvage_action(parsed, guard)
            if salvaged is not None:
                return ParseResult(success=True, intent=salvaged, preamble=preamble or None, raw_json=raw_json, errors=errors)
        return _fallback(preamble or output.strip(), raw_json=raw_json, errors=errors)

    return ParseResult(
        success=True,
        intent=_sanitize(intent, guard),
        preamble=preamble or None,
        raw_json=raw_json,
    )
