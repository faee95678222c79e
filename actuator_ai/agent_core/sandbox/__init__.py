"""Sandboxed subprocess isolation.

- ``SandboxExecutor`` runs one command under time, output and environment
  limits, in a container or as a restricted local process.
- ``ScriptExecutor`` wraps it for JavaScript, Python and shell snippets.
"""

from .executor import SandboxExecutor
from .models import (
    ALLOWED_COMMANDS,
    OUTPUT_CAP_BYTES,
    OUTPUT_KILL_BYTES,
    SandboxConfig,
    SandboxResult,
)
from .scripts import ScriptExecutor

__all__ = [
    "ALLOWED_COMMANDS",
    "OUTPUT_CAP_BYTES",
    "OUTPUT_KILL_BYTES",
    "SandboxConfig",
    "SandboxExecutor",
    "SandboxResult",
    "ScriptExecutor",
]
