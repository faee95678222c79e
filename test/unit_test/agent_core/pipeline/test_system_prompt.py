from __future__ import annotations

from actuator_ai.agent_core.capabilities import ExecutorRegistry
from actuator_ai.agent_core.capabilities.builtin import InfoExecutor, SandboxToolExecutor
from actuator_ai.agent_core.pipeline.prompt import generate_system_prompt, render_context, render_tool_definitions
from actuator_ai.agent_core.sandbox.scripts import ScriptExecutor
from actuator_ai.agent_core.schemas.context import (
    DesktopContext,
    HomeContext,
    MusicContext,
    SituationalContext,
    TimeContext,
    UserContext,
    UserMode,
)


def _registry() -> ExecutorRegistry:
    registry = ExecutorRegistry()
    registry.register(SandboxToolExecutor(ScriptExecutor()))
    registry.register(InfoExecutor())
    return registry


def _ctx(**kwargs) -> SituationalContext:
    return SituationalContext(
        time=TimeContext(current="21:15", day_of_week="Friday", time_of_day="night"),
        **kwargs,
    )


def test_tools_are_grouped_by_category_in_order() -> None:
    rendered = render_tool_definitions(_registry().capabilities_by_category())

    assert rendered.startswith("## AVAILABLE TOOLS")
    assert rendered.index("### INFO") < rendered.index("### SYSTEM")
    assert "- **getTime**: Get the current time" in rendered


def test_risky_tools_are_labelled() -> None:
    rendered = render_tool_definitions(_registry().capabilities_by_category())

    assert "- **runScript** [HIGH RISK]:" in rendered
    assert "**calculate** [" not in rendered


def test_parameters_are_listed() -> None:
    rendered = render_tool_definitions(_registry().capabilities_by_category())

    assert "  - expression (required): string" in rendered
    assert "  - language (required): python | shell | javascript" in rendered
    assert "  - timeout_ms: integer" in rendered


def test_render_context_minimal() -> None:
    assert render_context(_ctx()) == "## CURRENT CONTEXT\nTime: 21:15 (Friday, night)\nMode: normal"


def test_render_context_full() -> None:
    rendered = render_context(
        _ctx(
            user=UserContext(name="Sam", mode=UserMode.focus),
            desktop=DesktopContext(active_app="code", active_window="main.py"),
            home=HomeContext(active_devices=["light.desk", "fan"], current_scene="work"),
            music=MusicContext(is_playing=True, current_track="Blue in Green"),
        )
    )

    assert "User: Sam" in rendered
    assert "Mode: focus" in rendered
    assert 'Active app: code - "main.py"' in rendered
    assert "Scene: work" in rendered
    assert "Active devices: light.desk, fan" in rendered
    assert "Now playing: Blue in Green" in rendered


def test_paused_music_is_not_rendered() -> None:
    rendered = render_context(_ctx(music=MusicContext(is_playing=False, current_track="x")))
    assert "Now playing" not in rendered


def test_generate_system_prompt_sections() -> None:
    tools = render_tool_definitions(_registry().capabilities_by_category())
    prompt = generate_system_prompt(tools, _ctx())

    assert "You only emit INTENT" in prompt
    assert prompt.index("## OUTPUT FORMAT") < prompt.index("## RULES") < prompt.index("## AVAILABLE TOOLS")
    assert prompt.endswith("Mode: normal")
    assert "## CUSTOM INSTRUCTIONS" not in prompt


def test_custom_instructions_are_appended_last() -> None:
    prompt = generate_system_prompt("## AVAILABLE TOOLS", _ctx(), custom_instructions="Answer in French.")
    assert prompt.endswith("## CUSTOM INSTRUCTIONS\nAnswer in French.")
