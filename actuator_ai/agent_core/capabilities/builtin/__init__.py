"""Built-in executors shipped with the actuator core."""

from .app_launcher import AppLauncher, AppLauncherExecutor, SystemAppLauncher
from .email import EmailExecutor
from .home_assistant import HomeAssistantExecutor
from .info import InfoExecutor
from .media import MediaExecutor
from .sandboxed import SandboxToolExecutor
from .sms import SmsExecutor
from .timers import TimerExecutor

__all__ = [
    "AppLauncher",
    "AppLauncherExecutor",
    "EmailExecutor",
    "HomeAssistantExecutor",
    "InfoExecutor",
    "MediaExecutor",
    "SandboxToolExecutor",
    "SmsExecutor",
    "SystemAppLauncher",
    "TimerExecutor",
]
