"""Tests for the process-isolated execution sandbox.

These spawn real child interpreters; budgets are kept short.
"""

import asyncio
import time
from unittest.mock import patch

import pytest

from agentbox.sandbox.executor import OutputBuffer, SandboxConfig, SandboxedExecutor
from agentbox.sandbox.models import ExecutionResult, ExecutionStatus, SafetyVerdict
from agentbox.sandbox.safety import REJECTION_REASON, SafetyFilter


# ─── Output Buffer ──────────────────────────────────────────


class TestOutputBuffer:
    def test_collects_in_order(self):
        buf = OutputBuffer(100)
        buf.append(b"hello ")
        buf.append(b"world")
        assert buf.text() == "hello world"
        assert buf.truncated is False

    def test_truncates_at_limit(self):
        buf = OutputBuffer(4)
        buf.append(b"abcdef")
        buf.append(b"more")
        assert buf.truncated is True
        assert buf.text() == "abcd\n[TRUNCATED at 4 bytes]"

    def test_exact_fit_is_not_truncated(self):
        buf = OutputBuffer(3)
        buf.append(b"abc")
        assert buf.truncated is False


# ─── Successful Execution ───────────────────────────────────


class TestExecution:
    async def test_print_arithmetic(self, sandbox):
        result = await sandbox.execute("print(15 * 37)")
        assert result.status == ExecutionStatus.OK
        assert result.stdout == "555\n"
        assert result.stderr == ""
        assert result.ok

    async def test_writes_in_program_order(self, sandbox):
        code = "for i in range(3):\n    print(i)\nprint('end', end='')"
        result = await sandbox.execute(code)
        assert result.stdout == "0\n1\n2\nend"

    async def test_preloaded_modules(self, sandbox):
        result = await sandbox.execute("print(math.floor(2.7), json.dumps([1]))")
        assert result.status == ExecutionStatus.OK
        assert result.stdout == "2 [1]\n"

    async def test_class_definitions_work(self, sandbox):
        code = (
            "class Point:\n"
            "    def __init__(self, x):\n"
            "        self.x = x\n"
            "print(Point(4).x * 2)\n"
        )
        result = await sandbox.execute(code)
        assert result.status == ExecutionStatus.OK
        assert result.stdout == "8\n"

    async def test_duration_recorded(self, sandbox):
        result = await sandbox.execute("print(1)")
        assert result.duration_ms > 0

    async def test_default_config_with_memory_limit(self):
        result = await SandboxedExecutor().execute("print(sum(range(10)))")
        assert result.stdout == "45\n"


# ─── Failures ───────────────────────────────────────────────


class TestFailures:
    async def test_runtime_error_keeps_partial_stdout(self, sandbox):
        result = await sandbox.execute("print('before')\nprint(1 / 0)")
        assert result.status == ExecutionStatus.RUNTIME_ERROR
        assert result.stdout == "before\n"
        assert result.stderr == "ZeroDivisionError: division by zero"

    async def test_syntax_error(self, sandbox):
        result = await sandbox.execute("print(")
        assert result.status == ExecutionStatus.RUNTIME_ERROR
        assert result.stderr.startswith("SyntaxError")

    async def test_builtins_are_allowlisted(self, sandbox):
        result = await sandbox.execute("print(type(1))")
        assert result.status == ExecutionStatus.RUNTIME_ERROR
        assert "NameError" in result.stderr

    async def test_module_proxies_hide_submodules(self, sandbox):
        result = await sandbox.execute("print(json.decoder)")
        assert result.status == ExecutionStatus.RUNTIME_ERROR
        assert "AttributeError" in result.stderr

    async def test_spawn_failure_is_a_result(self):
        executor = SandboxedExecutor(SandboxConfig(python_executable="/nonexistent/python"))
        result = await executor.execute("print(1)")
        assert result.status == ExecutionStatus.RUNTIME_ERROR
        assert result.stderr.startswith("Sandbox failure:")

    async def test_output_truncated(self):
        executor = SandboxedExecutor(SandboxConfig(max_output_bytes=1024, memory_limit_mb=None))
        result = await executor.execute("print('x' * 5000)")
        assert result.status == ExecutionStatus.OK
        assert result.truncated is True
        assert result.stdout.endswith("[TRUNCATED at 1024 bytes]")


# ─── Safety Rejection ───────────────────────────────────────


class TestSafetyRejection:
    async def test_rejected_code_never_spawns(self, sandbox):
        with patch(
            "agentbox.sandbox.executor.asyncio.create_subprocess_exec",
        ) as spawn:
            result = await sandbox.execute("eval('1')")
        spawn.assert_not_called()
        assert result == ExecutionResult(
            stdout="",
            stderr=REJECTION_REASON,
            status=ExecutionStatus.SAFETY_REJECTED,
        )

    async def test_frame_walk_to_host_modules_rejected(self, sandbox):
        code = (
            "def gen():\n"
            "    yield g.gi_frame.f_back.f_back.f_globals['sys'].modules['posix']\n"
            "g = gen()\n"
            "posix = next(g)\n"
            "fd = posix.open('/etc/passwd', 0)\n"
            "print(posix.read(fd, 100))\n"
        )
        result = await sandbox.execute(code)
        assert result.status == ExecutionStatus.SAFETY_REJECTED
        assert result.stdout == ""


class _AcceptEverything(SafetyFilter):
    def check(self, code):
        return SafetyVerdict.accept()


# ─── Runner Isolation ───────────────────────────────────────


class TestRunnerIsolation:
    async def test_calling_frames_expose_no_host_modules(self):
        executor = SandboxedExecutor(
            SandboxConfig(timeout_seconds=5.0, memory_limit_mb=None),
            safety_filter=_AcceptEverything(),
        )
        code = (
            "def gen():\n"
            "    yield g.gi_frame.f_back\n"
            "g = gen()\n"
            "frame = next(g)\n"
            "exposed = []\n"
            "while frame is not None:\n"
            "    scope = frame.f_globals\n"
            "    exposed.extend(n for n in ('sys', 'os', 'types') if n in scope)\n"
            "    if 'open' in scope.get('__builtins__', {}):\n"
            "        exposed.append('open')\n"
            "    frame = frame.f_back\n"
            "print(exposed)\n"
        )
        result = await executor.execute(code)
        assert result.status == ExecutionStatus.OK
        assert result.stdout == "[]\n"

    async def test_host_module_lookup_fails(self):
        executor = SandboxedExecutor(
            SandboxConfig(timeout_seconds=5.0, memory_limit_mb=None),
            safety_filter=_AcceptEverything(),
        )
        code = (
            "def gen():\n"
            "    yield g.gi_frame.f_back.f_back.f_globals['sys']\n"
            "g = gen()\n"
            "print(next(g).modules['posix'].getcwd())\n"
        )
        result = await executor.execute(code)
        assert result.status == ExecutionStatus.RUNTIME_ERROR
        assert "KeyError: 'sys'" in result.stderr
        assert result.stdout == ""


# ─── Timeouts & Cleanup ─────────────────────────────────────


class TestTimeouts:
    async def test_infinite_loop_times_out(self, sandbox):
        started = time.monotonic()
        result = await sandbox.execute("while True:\n    pass", time_budget=1.0)
        elapsed = time.monotonic() - started

        assert result.status == ExecutionStatus.TIMEOUT
        assert "Execution timed out after 1s" in result.stderr
        assert elapsed < 4.0

    async def test_explicit_zero_budget_is_not_replaced_by_default(self, sandbox):
        started = time.monotonic()
        result = await sandbox.execute("print('never')", time_budget=0)
        assert result.status == ExecutionStatus.TIMEOUT
        assert "Execution timed out after 0s" in result.stderr
        assert time.monotonic() - started < 4.0

    async def test_output_before_timeout_is_kept(self, sandbox):
        code = "print('started')\nwhile True:\n    pass"
        result = await sandbox.execute(code, time_budget=1.0)
        assert result.status == ExecutionStatus.TIMEOUT
        assert result.stdout == "started\n"

    async def test_reusable_after_timeout(self, sandbox):
        await sandbox.execute("while True:\n    pass", time_budget=0.5)
        result = await sandbox.execute("print('again')")
        assert result.status == ExecutionStatus.OK
        assert result.stdout == "again\n"

    async def test_no_state_leaks_between_calls(self, sandbox):
        first = await sandbox.execute("counter = 41")
        second = await sandbox.execute("print(counter + 1)")
        assert first.status == ExecutionStatus.OK
        assert second.status == ExecutionStatus.RUNTIME_ERROR
        assert "NameError" in second.stderr

    async def test_cancellation_kills_child(self, sandbox):
        spawned = []
        real_spawn = asyncio.create_subprocess_exec

        async def spy(*args, **kwargs):
            proc = await real_spawn(*args, **kwargs)
            spawned.append(proc)
            return proc

        with patch(
            "agentbox.sandbox.executor.asyncio.create_subprocess_exec",
            side_effect=spy,
        ):
            with pytest.raises(TimeoutError):
                await asyncio.wait_for(
                    sandbox.execute("while True:\n    pass", time_budget=30.0),
                    timeout=0.5,
                )

        assert len(spawned) == 1
        assert spawned[0].returncode is not None


# ─── Concurrency ────────────────────────────────────────────


class TestConcurrency:
    async def test_concurrent_outputs_do_not_mix(self, sandbox):
        codes = [
            f"for _ in range(50):\n    print('worker-{n}')" for n in range(4)
        ]
        results = await asyncio.gather(*(sandbox.execute(c) for c in codes))

        for n, result in enumerate(results):
            assert result.status == ExecutionStatus.OK
            lines = result.stdout.splitlines()
            assert len(lines) == 50
            assert set(lines) == {f"worker-{n}"}

    async def test_single_slot_runs_all_requests(self):
        executor = SandboxedExecutor(SandboxConfig(max_concurrency=1, memory_limit_mb=None))
        results = await asyncio.gather(
            executor.execute("print(1)"),
            executor.execute("print(2)"),
            executor.execute("print(3)"),
        )
        assert [r.stdout for r in results] == ["1\n", "2\n", "3\n"]
