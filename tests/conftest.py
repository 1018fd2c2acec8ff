"""Shared test fixtures for the agentbox test suite."""

import pytest

from agentbox.oracle.base import FinalAnswer, ToolRequest
from agentbox.sandbox.executor import SandboxConfig, SandboxedExecutor
from agentbox.sandbox.models import ExecutionResult, ExecutionStatus
from agentbox.tools.builtin import build_default_registry
from agentbox.tools.models import ToolInvocation


class ScriptedOracle:
    """Oracle stub that replays a fixed list of decisions.

    Entries may be a decision, an exception (raised), or a callable
    taking the history and returning a decision.
    """

    def __init__(self, decisions):
        self._decisions = list(decisions)
        self.calls = []

    async def reason(self, history, catalog):
        self.calls.append((list(history), list(catalog)))
        if not self._decisions:
            return FinalAnswer(text="done")
        decision = self._decisions.pop(0)
        if isinstance(decision, Exception):
            raise decision
        if callable(decision):
            return decision(history)
        return decision


class RecordingExecutor:
    """CodeExecutor stub that returns canned results and records the code."""

    def __init__(self, result=None):
        self.result = result or ExecutionResult(stdout="", status=ExecutionStatus.OK)
        self.calls = []

    async def execute(self, code, time_budget=None):
        self.calls.append((code, time_budget))
        return self.result


def tool_request(name, **arguments):
    return ToolRequest(invocations=[ToolInvocation(name=name, arguments=arguments)])


@pytest.fixture
def sandbox():
    return SandboxedExecutor(SandboxConfig(timeout_seconds=5.0, memory_limit_mb=None))


@pytest.fixture
def fake_executor():
    return RecordingExecutor()


@pytest.fixture
def registry(fake_executor):
    return build_default_registry(fake_executor)
