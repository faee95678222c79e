from __future__ import annotations

from typing import List

from pydantic import Field

from ..schemas.base import BaseSchema

# Combined stdout+stderr volume after which the process is killed.
OUTPUT_KILL_BYTES = 1024 * 1024
# Per-stream cap applied to the text returned to callers.
OUTPUT_CAP_BYTES = 100_000

ALLOWED_COMMANDS = frozenset(
    {"node", "python3", "python", "bash", "sh", "cat", "echo", "date", "whoami", "pwd"}
)


class SandboxConfig(BaseSchema):
    use_isolated_runtime: bool = False
    isolated_image: str = "actuator-sandbox:latest"
    timeout_ms: int = Field(default=30_000, ge=1)
    memory_limit_mb: int = Field(default=256, ge=16)
    cpu_limit: float = Field(default=1.0, gt=0)
    network_enabled: bool = False
    allowed_domains: List[str] = Field(default_factory=list)
    read_only_filesystem: bool = True
    writable_paths: List[str] = Field(default_factory=lambda: ["/tmp"])
    restricted_path: str = "/usr/local/bin:/usr/bin:/bin"


class SandboxResult(BaseSchema):
    success: bool
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False
    killed_by_limit: bool = False
    duration_ms: int = 0

    @classmethod
    def rejected(cls, message: str, *, duration_ms: int = 0) -> "SandboxResult":
        return cls(success=False, exit_code=1, stderr=message, duration_ms=duration_ms)
