"""Convenience wrappers for running short scripts in the sandbox."""

from __future__ import annotations

from typing import Optional

from ...core.audit import AuditSink
from .executor import SandboxExecutor
from .models import SandboxConfig, SandboxResult

DEFAULT_SCRIPT_TIMEOUT_MS = 10_000

_JS_WRAPPER = """'use strict';
const result = (function() {
%s
})();
console.log(JSON.stringify(result));
"""


class ScriptExecutor:
    """Run JavaScript, Python or shell snippets.

    Scripts always run with networking disabled and a read-only filesystem,
    whatever the base configuration says.
    """

    def __init__(self, config: Optional[SandboxConfig] = None, *, audit: Optional[AuditSink] = None) -> None:
        base = config or SandboxConfig()
        self._sandbox = SandboxExecutor(
            base.model_copy(update={"network_enabled": False, "read_only_filesystem": True}),
            audit=audit,
        )

    @property
    def sandbox(self) -> SandboxExecutor:
        return self._sandbox

    async def execute_js(self, script: str, timeout_ms: int = DEFAULT_SCRIPT_TIMEOUT_MS) -> SandboxResult:
        return await self._sandbox.execute("node", ["-e", _JS_WRAPPER % script], timeout_ms=timeout_ms)

    async def execute_python(self, script: str, timeout_ms: int = DEFAULT_SCRIPT_TIMEOUT_MS) -> SandboxResult:
        return await self._sandbox.execute("python3", ["-c", script], timeout_ms=timeout_ms)

    async def execute_shell(self, command: str, timeout_ms: int = DEFAULT_SCRIPT_TIMEOUT_MS) -> SandboxResult:
        return await self._sandbox.execute("sh", ["-c", command], timeout_ms=timeout_ms)

    def kill_all(self) -> int:
        return self._sandbox.kill_all()
