"""Desktop application and browser launcher.

The process-level work is delegated to an ``AppLauncher`` so the executor can
be exercised without touching the host; ``SystemAppLauncher`` is the default
implementation backed by asyncio subprocesses.
"""

from __future__ import annotations

import asyncio
import shlex
import sys
from typing import Any, Dict, List, Optional, Protocol, Sequence

from pydantic import Field, field_validator

from ...errors import ToolExecutionError
from ...schemas.domain import BlastRadius, ErrorCode, RiskLevel, SideEffectType, SimulationResult, ToolCapability
from ..base import BaseToolExecutor, ToolHandler, ToolOutcome
from ..side_effects import create_side_effect
from ..validation import ToolParams

APP_ALIASES: Dict[str, str] = {
    "google chrome": "google-chrome",
    "chrome": "google-chrome",
    "firefox": "firefox",
    "vs code": "code",
    "vscode": "code",
    "terminal": "x-terminal-emulator",
    "calculator": "gnome-calculator",
    "spotify": "spotify",
    "slack": "slack",
    "discord": "discord",
    "zoom": "zoom",
}


def resolve_app(app: str) -> str:
    return APP_ALIASES.get(app.strip().lower(), app.strip())


class LaunchAppParams(ToolParams):
    app: str = Field(min_length=1, max_length=100)
    args: Optional[str] = Field(default=None, max_length=500)


class OpenUrlParams(ToolParams):
    url: str = Field(min_length=1, max_length=2048)

    @field_validator("url")
    @classmethod
    def _http_only(cls, value: str) -> str:
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return value


class CloseAppParams(ToolParams):
    app: str = Field(min_length=1, max_length=100)
    force: bool = False


class AppLauncher(Protocol):
    async def open_url(self, url: str) -> None: ...

    async def launch(self, app: str, args: Sequence[str]) -> None: ...

    async def close(self, app: str, *, force: bool) -> None: ...


class SystemAppLauncher:
    """Launch processes on the local machine without a shell."""

    async def _spawn(self, *argv: str, wait: bool) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
                start_new_session=True,
            )
        except OSError as exc:
            raise ToolExecutionError(ErrorCode.LAUNCHER_ERROR, f"Could not start {argv[0]}: {exc}") from exc
        if wait:
            code = await proc.wait()
            if code != 0:
                raise ToolExecutionError(ErrorCode.LAUNCHER_ERROR, f"{argv[0]} exited with code {code}")

    async def open_url(self, url: str) -> None:
        if sys.platform == "darwin":
            await self._spawn("open", url, wait=True)
        elif sys.platform == "win32":
            await self._spawn("explorer", url, wait=False)
        else:
            await self._spawn("xdg-open", url, wait=True)

    async def launch(self, app: str, args: Sequence[str]) -> None:
        await self._spawn(app, *args, wait=False)

    async def close(self, app: str, *, force: bool) -> None:
        if sys.platform == "win32":
            argv = ["taskkill", "/IM", f"{app}.exe"] + (["/F"] if force else [])
        else:
            argv = ["pkill", "-9" if force else "-TERM", "-x", app]
        await self._spawn(*argv, wait=True)


class AppLauncherExecutor(BaseToolExecutor):
    id = "appLauncher"
    name = "App Launcher"
    category = "system"

    def __init__(self, launcher: Optional[AppLauncher] = None) -> None:
        self._launcher: AppLauncher = launcher or SystemAppLauncher()

    def get_capabilities(self) -> List[ToolCapability]:
        return [
            ToolCapability(
                name="openUrl",
                description="Open a URL in the default browser",
                params_schema=OpenUrlParams,
                risk_level=RiskLevel.low,
                reversible=True,
                blast_radius=BlastRadius.device,
                supports_simulation=True,
            ),
            ToolCapability(
                name="launchApp",
                description='Open an application by name, e.g. "open firefox"',
                params_schema=LaunchAppParams,
                risk_level=RiskLevel.low,
                reversible=True,
                blast_radius=BlastRadius.device,
                supports_simulation=True,
            ),
            ToolCapability(
                name="closeApp",
                description="Close a running application",
                params_schema=CloseAppParams,
                risk_level=RiskLevel.medium,
                reversible=False,
                blast_radius=BlastRadius.device,
                supports_simulation=True,
            ),
        ]

    def handlers(self) -> Dict[str, ToolHandler]:
        return {
            "openUrl": self._open_url,
            "launchApp": self._launch_app,
            "closeApp": self._close_app,
        }

    async def predict(self, tool_name: str, params: Dict[str, Any]) -> SimulationResult:
        if tool_name == "openUrl":
            effects = [create_side_effect(SideEffectType.process_spawn, "browser", f"Would open {params['url']}")]
        elif tool_name == "launchApp":
            app = resolve_app(params["app"])
            effects = [create_side_effect(SideEffectType.process_spawn, app, f"Would launch {params['app']}")]
        else:
            app = resolve_app(params["app"])
            effects = [
                create_side_effect(SideEffectType.process_kill, app, f"Would close {params['app']}", reversible=False)
            ]
        warnings = ["Force close may cause data loss"] if tool_name == "closeApp" and params.get("force") else []
        return SimulationResult(
            would_succeed=True,
            predicted_output={"simulated": True},
            predicted_side_effects=effects,
            warnings=warnings,
        )

    async def _open_url(self, params: Dict[str, Any]) -> ToolOutcome:
        url = params["url"]
        await self._launcher.open_url(url)
        message = f"Opened {url}"
        return ToolOutcome(
            output={"url": url, "opened": True},
            message=message,
            side_effects=[create_side_effect(SideEffectType.process_spawn, "browser", message, reversible=True)],
        )

    async def _launch_app(self, params: Dict[str, Any]) -> ToolOutcome:
        app = resolve_app(params["app"])
        args = shlex.split(params["args"]) if params.get("args") else []
        await self._launcher.launch(app, args)
        message = f"Launched {params['app']}"
        return ToolOutcome(
            output={"app": app, "launched": True},
            message=message,
            side_effects=[
                create_side_effect(
                    SideEffectType.process_spawn, app, message, reversible=True, rollback_action="closeApp"
                )
            ],
        )

    async def _close_app(self, params: Dict[str, Any]) -> ToolOutcome:
        app = resolve_app(params["app"])
        await self._launcher.close(app, force=bool(params.get("force")))
        message = f"Closed {params['app']}"
        return ToolOutcome(
            output={"app": app, "closed": True},
            message=message,
            side_effects=[create_side_effect(SideEffectType.process_kill, app, message, reversible=False)],
        )
