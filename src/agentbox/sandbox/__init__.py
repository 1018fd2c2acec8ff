"""
Agentbox Code-Execution Sandbox

Untrusted code passes two gates before it produces output:

    code → SafetyFilter (static) → SandboxedExecutor (child process) → ExecutionResult

Components:
- SafetyFilter: keyword + AST policy check, runs before anything is spawned
- SandboxedExecutor: one isolated child process per call, timeout, capped output
- SandboxClient: the same contract over HTTP, for an out-of-process sandbox
- ExecutionResult: stdout, stderr and exactly one ExecutionStatus
"""

from agentbox.sandbox.client import SandboxClient
from agentbox.sandbox.executor import CodeExecutor, SandboxConfig, SandboxedExecutor
from agentbox.sandbox.models import (
    ExecutionRequest,
    ExecutionResult,
    ExecutionStatus,
    SafetyVerdict,
)
from agentbox.sandbox.safety import REJECTION_REASON, SafetyFilter

__all__ = [
    "CodeExecutor",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionStatus",
    "REJECTION_REASON",
    "SafetyFilter",
    "SafetyVerdict",
    "SandboxClient",
    "SandboxConfig",
    "SandboxedExecutor",
]
