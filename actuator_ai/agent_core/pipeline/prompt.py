"""System prompt rendering.

The prompt tells the model to emit intents, never to act: every reply is
either plain text or one JSON intent block, and the runtime decides whether
and how the intent is executed.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..schemas.context import SituationalContext
from ..schemas.domain import RiskLevel, ToolCapability

_PERSONA = """You are a personal assistant that can talk with the user and request actions.

You only emit INTENT. A separate runtime validates every request, decides whether it needs \
the user's confirmation, and performs it. Never claim an action is done before the runtime reports it."""

_OUTPUT_FORMAT = """## OUTPUT FORMAT

Reply in exactly one of these forms.

1. Plain text, when no action is needed.

2. A single action, as one short sentence followed by a JSON block:
```json
{"type": "action", "action": "toolName", "params": {}, "confidence": 0.9, "reasoning": "why"}
```

3. A clarifying question:
```json
{"type": "clarify", "question": "...", "options": [{"label": "A", "value": "a"}], "pendingAction": "..."}
```

4. A multi-step plan:
```json
{"type": "plan", "goal": "...", "summary": "...", "confidence": 0.8,
 "steps": [{"action": "tool1", "params": {}, "reasoning": "..."}]}
```

5. A proactive observation:
```json
{"type": "observe", "observation": "...", "priority": "low"}
```"""

_RULES = """## RULES

1. Requests for actions go in the JSON block only, never in prose.
2. Below 0.7 confidence, ask a clarifying question instead of acting.
3. Before any action that sends messages, controls devices or deletes data, say what you are about to do.
4. Never output raw shell commands or paths containing "../".
5. Keep replies short."""

_RISK_LABELS = {
    RiskLevel.high: " [HIGH RISK]",
    RiskLevel.critical: " [CRITICAL]",
}


def _param_lines(schema: Dict[str, Any]) -> List[str]:
    required = set(schema.get("required", []))
    lines = []
    for name, prop in schema.get("properties", {}).items():
        hint = prop.get("description") or prop.get("type") or "value"
        if "enum" in prop:
            hint = " | ".join(str(v) for v in prop["enum"])
        lines.append(f"  - {name}{' (required)' if name in required else ''}: {hint}")
    return lines


def render_tool_definitions(grouped: Mapping[str, Sequence[ToolCapability]]) -> str:
    """Render the capability catalog, grouped by executor category."""
    out = ["## AVAILABLE TOOLS", ""]
    for category in sorted(grouped):
        out.append(f"### {category.upper()}")
        for cap in grouped[category]:
            out.append(f"- **{cap.name}**{_RISK_LABELS.get(cap.risk_level, '')}: {cap.description}")
            out.extend(_param_lines(cap.parameters_json_schema()))
        out.append("")
    return "\n".join(out).rstrip()


def render_context(context: SituationalContext) -> str:
    lines = [
        "## CURRENT CONTEXT",
        f"Time: {context.time.current} ({context.time.day_of_week}, {context.time.time_of_day})",
    ]
    if context.user.name:
        lines.append(f"User: {context.user.name}")
    lines.append(f"Mode: {context.user.mode.value}")
    if context.desktop and context.desktop.active_app:
        window = f' - "{context.desktop.active_window}"' if context.desktop.active_window else ""
        lines.append(f"Active app: {context.desktop.active_app}{window}")
    if context.home and context.home.current_scene:
        lines.append(f"Scene: {context.home.current_scene}")
    if context.home and context.home.active_devices:
        lines.append(f"Active devices: {', '.join(context.home.active_devices)}")
    if context.music and context.music.is_playing and context.music.current_track:
        lines.append(f"Now playing: {context.music.current_track}")
    return "\n".join(lines)


def generate_system_prompt(
    tools: str,
    context: SituationalContext,
    *,
    custom_instructions: Optional[str] = None,
) -> str:
    """
    Assemble the full system prompt.

    Args:
        tools: Output of ``render_tool_definitions``.
        context: The situational context of this call.
        custom_instructions: Optional operator-provided instructions appended last.
    """
    parts = [_PERSONA, _OUTPUT_FORMAT, _RULES, tools, render_context(context)]
    if custom_instructions:
        parts.append(f"## CUSTOM INSTRUCTIONS\n{custom_instructions}")
    return "\n\n".join(parts)
