"""Code execution tool: runs Python through a sandbox executor.

The executor is either an in-process SandboxedExecutor or a
SandboxClient pointing at a remote sandbox server; both return an
ExecutionResult. A SandboxUnavailableError propagates to the registry,
which turns it into an error observation.
"""

from __future__ import annotations

from typing import Any

from agentbox.sandbox.executor import CodeExecutor
from agentbox.tools.models import ToolParameter, ToolSpec

CODE_EXEC_SPEC = ToolSpec(
    name="run_python_code",
    description=(
        "Run general purpose Python code. "
        "Use this for any computation that you need. "
        "The output will be composed of the stdout and stderr. "
        "Write results with print(); imports are not allowed, but the modules "
        "math, json, statistics, itertools, functools, collections, re, "
        "datetime, random, string, decimal and fractions are preloaded."
    ),
    parameters=[
        ToolParameter(
            name="code",
            type="string",
            description="code to be executed",
        ),
    ],
)


class CodeExecutionTool:
    """Handler bound to a particular executor."""

    def __init__(self, executor: CodeExecutor, time_budget: float | None = None):
        self._executor = executor
        self._time_budget = time_budget

    async def __call__(self, code: str) -> dict[str, Any]:
        result = await self._executor.execute(code, self._time_budget)
        return result.to_wire()
