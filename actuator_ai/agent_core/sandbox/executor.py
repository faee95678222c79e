"""Sandboxed subprocess execution.

``SandboxExecutor`` is the isolation boundary for untrusted commands. It runs
a command either inside a throwaway container (``use_isolated_runtime``) or
as a restricted local process, and always returns a ``SandboxResult``.

Restricted local processes:

- only bare command names listed in ``ALLOWED_COMMANDS`` may run (paths such as
  ``/tmp/x/python3`` are rejected), resolved against the restricted ``PATH``,
- the environment is replaced by a minimal one (``PATH``, ``HOME``,
  ``TMPDIR``) plus whatever the caller passes explicitly,
- each run gets a scratch directory that is removed afterwards unless the
  caller supplied ``cwd``.

Every process is started in its own session so that forced termination
(SIGKILL to the process group) also reaches any children it spawned.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil
import signal
import tempfile
import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

from ...core.audit import AuditSink
from .models import ALLOWED_COMMANDS, OUTPUT_CAP_BYTES, OUTPUT_KILL_BYTES, SandboxConfig, SandboxResult

logger = logging.getLogger(__name__)

_READ_CHUNK = 64 * 1024


@dataclass
class _Capture:
    stdout: bytearray = field(default_factory=bytearray)
    stderr: bytearray = field(default_factory=bytearray)
    total: int = 0
    killed_by_limit: bool = False


def _decode(buf: bytearray) -> str:
    return bytes(buf[:OUTPUT_CAP_BYTES]).decode("utf-8", errors="replace")


def _kill_process(proc: asyncio.subprocess.Process) -> None:
    if proc.returncode is not None:
        return
    try:
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError):
        pass


class SandboxExecutor:
    """Run commands with time, output and environment limits."""

    def __init__(self, config: Optional[SandboxConfig] = None, *, audit: Optional[AuditSink] = None) -> None:
        self._config = config or SandboxConfig()
        self._audit = audit
        # Only touched from the event loop thread.
        self._active: Dict[str, asyncio.subprocess.Process] = {}

    @property
    def config(self) -> SandboxConfig:
        return self._config

    @property
    def active_count(self) -> int:
        return len(self._active)

    async def execute(
        self,
        command: str,
        args: Sequence[str] = (),
        *,
        input: Optional[str] = None,
        env: Optional[Mapping[str, str]] = None,
        cwd: Optional[str] = None,
        timeout_ms: Optional[int] = None,
    ) -> SandboxResult:
        """
        Execute ``command`` with ``args`` inside the sandbox.

        Args:
            command: Executable name or path.
            args: Arguments passed verbatim (no shell interpretation).
            input: Optional text written to the process's stdin.
            env: Extra environment variables for the process.
            cwd: Working directory; a scratch directory is used when omitted.
            timeout_ms: Overrides ``SandboxConfig.timeout_ms`` for this run.

        Returns:
            A ``SandboxResult``. Spawn failures, disallowed commands, timeouts
            and output-limit kills are all reported through it.
        """
        execution_id = f"exec_{uuid4().hex[:12]}"
        timeout = timeout_ms or self._config.timeout_ms
        if self._audit is not None:
            await self._audit.audit_log(
                "SANDBOX_EXECUTE",
                {
                    "execution_id": execution_id,
                    "command": command,
                    "args": list(args)[:5],
                    "isolated": self._config.use_isolated_runtime,
                },
            )

        started = time.monotonic()
        try:
            if self._config.use_isolated_runtime:
                return await self._execute_isolated(execution_id, command, list(args), input, env, timeout)
            return await self._execute_restricted(execution_id, command, list(args), input, env, cwd, timeout)
        except Exception as exc:
            logger.warning("Sandbox execution %s failed to run: %s", execution_id, exc)
            return SandboxResult.rejected(str(exc), duration_ms=int((time.monotonic() - started) * 1000))
        finally:
            self._active.pop(execution_id, None)

    def build_isolated_args(
        self, execution_id: str, command: str, args: List[str], env: Optional[Mapping[str, str]]
    ) -> List[str]:
        """Build the ``docker run`` argument vector for one execution."""
        cfg = self._config
        docker_args = [
            "run",
            "--rm",
            "--name",
            f"actuator-{execution_id}",
            "--network",
            "bridge" if cfg.network_enabled else "none",
            "--memory",
            f"{cfg.memory_limit_mb}m",
            "--cpus",
            str(cfg.cpu_limit),
        ]
        if cfg.read_only_filesystem:
            docker_args.append("--read-only")
        docker_args += ["--tmpfs", "/tmp:size=64m"]
        for path in cfg.writable_paths:
            if path != "/tmp":
                docker_args += ["--tmpfs", f"{path}:size=64m"]
        docker_args += ["--security-opt", "no-new-privileges", "--cap-drop", "ALL"]
        for key, value in (env or {}).items():
            docker_args += ["-e", f"{key}={value}"]
        docker_args += [cfg.isolated_image, command, *args]
        return docker_args

    async def _execute_isolated(
        self,
        execution_id: str,
        command: str,
        args: List[str],
        input: Optional[str],
        env: Optional[Mapping[str, str]],
        timeout_ms: int,
    ) -> SandboxResult:
        docker_args = self.build_isolated_args(execution_id, command, args, env)
        if input is not None:
            docker_args.insert(1, "-i")
        result = await self._spawn_and_wait(execution_id, "docker", docker_args, input, None, None, timeout_ms)
        if result.timed_out or result.killed_by_limit:
            # Killing the client does not stop the container.
            await self._remove_container(f"actuator-{execution_id}")
        return result

    async def _remove_container(self, name: str) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                "docker", "rm", "-f", name, stdout=asyncio.subprocess.DEVNULL, stderr=asyncio.subprocess.DEVNULL
            )
            await asyncio.wait_for(proc.wait(), timeout=10)
        except (OSError, asyncio.TimeoutError) as exc:
            logger.warning("Could not remove sandbox container %s: %s", name, exc)

    async def _execute_restricted(
        self,
        execution_id: str,
        command: str,
        args: List[str],
        input: Optional[str],
        env: Optional[Mapping[str, str]],
        cwd: Optional[str],
        timeout_ms: int,
    ) -> SandboxResult:
        # bare names only: with PATH set to the restricted path, lookup cannot leave it
        if command not in ALLOWED_COMMANDS:
            logger.warning("Rejected sandbox command %s", command)
            return SandboxResult.rejected(f"Command not allowed: {command}")

        scratch = None if cwd else tempfile.mkdtemp(prefix="actuator-sandbox-")
        workdir = cwd or scratch
        proc_env = {
            "HOME": workdir,
            "TMPDIR": workdir,
            **(env or {}),
            "PATH": self._config.restricted_path,
        }
        try:
            return await self._spawn_and_wait(execution_id, command, args, input, proc_env, workdir, timeout_ms)
        finally:
            if scratch is not None:
                shutil.rmtree(scratch, ignore_errors=True)

    async def _spawn_and_wait(
        self,
        execution_id: str,
        command: str,
        args: List[str],
        input: Optional[str],
        env: Optional[Dict[str, str]],
        cwd: Optional[str],
        timeout_ms: int,
    ) -> SandboxResult:
        started = time.monotonic()
        proc = await asyncio.create_subprocess_exec(
            command,
            *args,
            stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
            cwd=cwd,
            start_new_session=True,
        )
        self._active[execution_id] = proc
        capture = _Capture()

        async def pump(stream: Optional[asyncio.StreamReader], buf: bytearray) -> None:
            if stream is None:
                return
            while True:
                chunk = await stream.read(_READ_CHUNK)
                if not chunk:
                    return
                if len(buf) < OUTPUT_KILL_BYTES:
                    buf.extend(chunk)
                capture.total += len(chunk)
                if capture.total > OUTPUT_KILL_BYTES and not capture.killed_by_limit:
                    capture.killed_by_limit = True
                    logger.warning("Sandbox execution %s exceeded output limit", execution_id)
                    _kill_process(proc)

        async def feed() -> None:
            if input is None or proc.stdin is None:
                return
            try:
                proc.stdin.write(input.encode("utf-8"))
                await proc.stdin.drain()
            except (BrokenPipeError, ConnectionResetError):
                pass
            finally:
                proc.stdin.close()

        timed_out = False
        try:
            await asyncio.wait_for(
                asyncio.gather(pump(proc.stdout, capture.stdout), pump(proc.stderr, capture.stderr), feed(), proc.wait()),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            timed_out = True
            logger.warning("Sandbox execution %s timed out after %d ms", execution_id, timeout_ms)
            _kill_process(proc)
            await proc.wait()

        exit_code = proc.returncode if proc.returncode is not None else -1
        return SandboxResult(
            success=exit_code == 0 and not timed_out and not capture.killed_by_limit,
            exit_code=exit_code,
            stdout=_decode(capture.stdout),
            stderr=_decode(capture.stderr),
            timed_out=timed_out,
            killed_by_limit=capture.killed_by_limit,
            duration_ms=int((time.monotonic() - started) * 1000),
        )

    def kill_all(self) -> int:
        """SIGKILL every in-flight process; returns how many were signalled."""
        killed = 0
        for execution_id, proc in list(self._active.items()):
            if proc.returncode is None:
                _kill_process(proc)
                killed += 1
                logger.info("Killed sandbox process %s", execution_id)
        self._active.clear()
        return killed

    async def is_isolated_runtime_available(self) -> bool:
        """Check whether the container runtime CLI answers."""
        try:
            proc = await asyncio.create_subprocess_exec(
                "docker", "--version", stdout=asyncio.subprocess.DEVNULL, stderr=asyncio.subprocess.DEVNULL
            )
            return await asyncio.wait_for(proc.wait(), timeout=5) == 0
        except (OSError, asyncio.TimeoutError):
            return False
