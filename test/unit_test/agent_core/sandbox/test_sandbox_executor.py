"""Sandbox tests run real, short-lived local processes."""

from __future__ import annotations

import asyncio
import os

import pytest

from actuator_ai.agent_core.sandbox import (
    OUTPUT_CAP_BYTES,
    SandboxConfig,
    SandboxExecutor,
    ScriptExecutor,
)


class _RecordingAudit:
    def __init__(self) -> None:
        self.events = []

    async def audit_log(self, event, details):
        self.events.append((event, details))


@pytest.mark.asyncio
async def test_python_script_runs() -> None:
    result = await ScriptExecutor().execute_python("print(6 * 7)")

    assert result.success is True
    assert result.exit_code == 0
    assert result.stdout == "42\n"
    assert result.timed_out is False


@pytest.mark.asyncio
async def test_nonzero_exit_is_reported() -> None:
    result = await ScriptExecutor().execute_shell("echo oops >&2; exit 3")

    assert result.success is False
    assert result.exit_code == 3
    assert result.stderr.strip() == "oops"


@pytest.mark.asyncio
async def test_disallowed_command_is_rejected_without_spawning() -> None:
    audit = _RecordingAudit()
    sandbox = SandboxExecutor(audit=audit)

    result = await sandbox.execute("rm", ["-rf", "/tmp/does-not-matter"])

    assert result.success is False
    assert "Command not allowed: rm" in result.stderr
    assert [event for event, _ in audit.events] == ["SANDBOX_EXECUTE"]
    assert sandbox.active_count == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("command", ["/tmp/x/python3", "./python3", "bin/echo"])
async def test_command_paths_are_rejected_even_with_allowed_basename(command: str) -> None:
    sandbox = SandboxExecutor()

    result = await sandbox.execute(command, ["-c", "print(1)"])

    assert result.success is False
    assert f"Command not allowed: {command}" in result.stderr
    assert sandbox.active_count == 0


@pytest.mark.asyncio
async def test_caller_env_cannot_widen_path() -> None:
    result = await SandboxExecutor().execute("sh", ["-c", 'echo "$PATH"'], env={"PATH": "/tmp/x"})

    assert result.stdout.strip() == SandboxConfig().restricted_path


@pytest.mark.asyncio
async def test_environment_is_replaced_and_scratch_dir_removed() -> None:
    result = await ScriptExecutor().execute_shell('echo "$PATH"; echo "$HOME"; echo "${SECRET_TOKEN:-unset}"')

    path, home, secret = result.stdout.splitlines()
    assert path == "/usr/local/bin:/usr/bin:/bin"
    assert secret == "unset"
    assert os.path.basename(home).startswith("actuator-sandbox-")
    assert not os.path.exists(home)


@pytest.mark.asyncio
async def test_stdin_is_forwarded() -> None:
    result = await SandboxExecutor().execute("cat", input="hello sandbox")
    assert result.stdout == "hello sandbox"


@pytest.mark.asyncio
async def test_timeout_kills_the_process() -> None:
    result = await ScriptExecutor().execute_shell("echo $$; sleep 5", timeout_ms=1000)

    assert result.timed_out is True
    assert result.success is False
    assert result.duration_ms < 5000
    pid = int(result.stdout.split()[0])
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


@pytest.mark.asyncio
async def test_output_limit_kills_the_process() -> None:
    result = await SandboxExecutor().execute("cat", ["/dev/zero"], timeout_ms=20_000)

    assert result.killed_by_limit is True
    assert result.timed_out is False
    assert result.success is False
    assert len(result.stdout) <= OUTPUT_CAP_BYTES


@pytest.mark.asyncio
async def test_kill_all_terminates_in_flight_processes() -> None:
    scripts = ScriptExecutor()
    task = asyncio.create_task(scripts.execute_shell("sleep 5", timeout_ms=20_000))
    for _ in range(200):
        if scripts.sandbox.active_count:
            break
        await asyncio.sleep(0.01)

    assert scripts.kill_all() == 1
    result = await asyncio.wait_for(task, timeout=5)

    assert result.success is False
    assert result.timed_out is False
    assert scripts.sandbox.active_count == 0


def test_scripts_always_run_without_network_and_read_only() -> None:
    scripts = ScriptExecutor(SandboxConfig(network_enabled=True, read_only_filesystem=False))
    assert scripts.sandbox.config.network_enabled is False
    assert scripts.sandbox.config.read_only_filesystem is True


def test_isolated_runtime_arguments() -> None:
    sandbox = SandboxExecutor(
        SandboxConfig(use_isolated_runtime=True, memory_limit_mb=128, cpu_limit=0.5, writable_paths=["/tmp", "/work"])
    )

    args = sandbox.build_isolated_args("exec_1", "python3", ["-c", "print(1)"], {"MODE": "test"})

    assert args[:4] == ["run", "--rm", "--name", "actuator-exec_1"]
    assert args[args.index("--network") + 1] == "none"
    assert args[args.index("--memory") + 1] == "128m"
    assert args[args.index("--cpus") + 1] == "0.5"
    assert "--read-only" in args
    assert "/work:size=64m" in args
    assert args[args.index("--cap-drop") + 1] == "ALL"
    assert "MODE=test" in args
    assert args[-4:] == ["actuator-sandbox:latest", "python3", "-c", "print(1)"]
