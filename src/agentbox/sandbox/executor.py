"""
Agentbox Execution Sandbox

Runs untrusted Python in a separate process per invocation:
- Static safety check before anything is spawned
- Clean environment (stripped env vars), private temp working directory
- Isolated interpreter mode (-I), allowlisted builtins, no imports
- POSIX resource limits (CPU, address space, file size, process count)
- Wall-clock timeout enforced via asyncio.wait_for + process kill
- Output captured from the child's own pipes into invocation-local,
  size-capped buffers, so concurrent executions never share output

execute() never raises: every outcome is an ExecutionResult.
"""

from __future__ import annotations

import asyncio
import json
import shutil
import sys
import tempfile
import time
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from agentbox.logging import get_logger
from agentbox.sandbox.models import ExecutionResult, ExecutionStatus
from agentbox.sandbox.safety import SafetyFilter

logger = get_logger("agentbox.sandbox")

RUNNER_PATH = Path(__file__).with_name("_runner.py")

# Grace period for pipe readers after the child has exited or been killed
_DRAIN_GRACE_SECONDS = 1.0
_READ_CHUNK = 4096


class SandboxConfig(BaseModel):
    """Configuration for sandboxed code execution."""

    timeout_seconds: float = Field(default=10.0, gt=0, le=300.0)
    max_output_bytes: int = Field(default=65536, ge=1024, le=1048576)
    memory_limit_mb: int | None = Field(default=256, ge=32)
    max_concurrency: int = Field(default=4, ge=1, le=64)
    python_executable: str = Field(default_factory=lambda: sys.executable)


class CodeExecutor(Protocol):
    """Anything that can turn code into an ExecutionResult.

    Implemented by SandboxedExecutor (in-process) and SandboxClient (RPC).
    """

    async def execute(self, code: str, time_budget: float | None = None) -> ExecutionResult:
        ...


class OutputBuffer:
    """Append-only, size-capped byte sink owned by one invocation."""

    def __init__(self, limit: int):
        self._limit = limit
        self._data = bytearray()
        self.truncated = False

    def append(self, chunk: bytes) -> None:
        room = self._limit - len(self._data)
        if room <= 0:
            self.truncated = self.truncated or bool(chunk)
            return
        if len(chunk) > room:
            self.truncated = True
        self._data.extend(chunk[:room])

    def text(self) -> str:
        out = self._data.decode("utf-8", errors="replace")
        if self.truncated:
            out += f"\n[TRUNCATED at {self._limit} bytes]"
        return out


class SandboxedExecutor:
    """Executes code strings in throwaway child processes.

    Each call is independent: a fresh process, a fresh working directory
    and fresh output buffers. A semaphore bounds how many children run
    at once.
    """

    def __init__(
        self,
        config: SandboxConfig | None = None,
        safety_filter: SafetyFilter | None = None,
    ):
        self._config = config or SandboxConfig()
        self._filter = safety_filter or SafetyFilter()
        self._slots = asyncio.Semaphore(self._config.max_concurrency)

    @property
    def config(self) -> SandboxConfig:
        return self._config

    async def execute(self, code: str, time_budget: float | None = None) -> ExecutionResult:
        """Run code and return its captured output.

        Args:
            code: Python source to execute.
            time_budget: Wall-clock seconds; defaults to config.timeout_seconds.
        """
        budget = self._config.timeout_seconds if time_budget is None else time_budget
        started = time.monotonic()

        verdict = self._filter.check(code)
        if not verdict.accepted:
            return ExecutionResult(
                stdout="",
                stderr=verdict.reason,
                status=ExecutionStatus.SAFETY_REJECTED,
            )

        async with self._slots:
            try:
                result = await self._run_process(code, budget)
            except Exception as e:
                logger.exception("Sandbox failure outside the child process")
                result = ExecutionResult(
                    stderr=f"Sandbox failure: {e}",
                    status=ExecutionStatus.RUNTIME_ERROR,
                )

        result.duration_ms = (time.monotonic() - started) * 1000
        logger.info(
            "Execution finished",
            extra={"status": result.status.value, "duration_ms": round(result.duration_ms, 1)},
        )
        return result

    async def _run_process(self, code: str, budget: float) -> ExecutionResult:
        cfg = self._config
        workdir = tempfile.mkdtemp(prefix="agentbox_sandbox_")
        proc: asyncio.subprocess.Process | None = None
        readers: list[asyncio.Task] = []
        stdout = OutputBuffer(cfg.max_output_bytes)
        stderr = OutputBuffer(cfg.max_output_bytes)

        try:
            snippet = Path(workdir) / "snippet.py"
            snippet.write_text(code, encoding="utf-8")

            options = {
                "cpu_seconds": budget + 1,
                "memory_bytes": cfg.memory_limit_mb * 1024 * 1024 if cfg.memory_limit_mb else None,
            }
            env = {
                "PATH": "/usr/bin:/usr/local/bin:/bin",
                "HOME": workdir,
                "LANG": "en_US.UTF-8",
                "PYTHONIOENCODING": "utf-8",
            }

            proc = await asyncio.create_subprocess_exec(
                cfg.python_executable,
                "-I",
                "-u",
                str(RUNNER_PATH),
                str(snippet),
                json.dumps(options),
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                cwd=workdir,
            )
            readers = [
                asyncio.create_task(_drain(proc.stdout, stdout)),
                asyncio.create_task(_drain(proc.stderr, stderr)),
            ]

            timed_out = False
            try:
                await asyncio.wait_for(proc.wait(), timeout=budget)
            except TimeoutError:
                timed_out = True
                _kill(proc)
                await proc.wait()

            await _finish_readers(readers)

            notes: list[str] = []
            if timed_out:
                notes.append(f"Execution timed out after {budget:g}s")
                status = ExecutionStatus.TIMEOUT
            elif proc.returncode == 0:
                status = ExecutionStatus.OK
            else:
                if proc.returncode is not None and proc.returncode < 0:
                    notes.append(f"Process terminated by signal {-proc.returncode}")
                status = ExecutionStatus.RUNTIME_ERROR

            error_text = stderr.text().rstrip("\n")
            return ExecutionResult(
                stdout=stdout.text(),
                stderr="\n".join(part for part in (error_text, *notes) if part),
                status=status,
                truncated=stdout.truncated or stderr.truncated,
            )

        finally:
            # Also reached on cancellation from an outer deadline
            if proc is not None and proc.returncode is None:
                _kill(proc)
                await proc.wait()
            for task in readers:
                if not task.done():
                    task.cancel()
            shutil.rmtree(workdir, ignore_errors=True)


async def _drain(stream: asyncio.StreamReader | None, sink: OutputBuffer) -> None:
    if stream is None:
        return
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            return
        sink.append(chunk)


async def _finish_readers(readers: list[asyncio.Task]) -> None:
    _, pending = await asyncio.wait(readers, timeout=_DRAIN_GRACE_SECONDS)
    for task in pending:
        task.cancel()


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass
