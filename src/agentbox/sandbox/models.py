"""
Agentbox Sandbox Models

Pydantic models for code execution requests and results. Every
execution yields exactly one ExecutionResult; failures are encoded
in its status rather than raised.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ExecutionStatus(str, Enum):
    """Terminal outcome of one sandbox execution."""
    OK = "OK"
    SAFETY_REJECTED = "SAFETY_REJECTED"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    TIMEOUT = "TIMEOUT"


class ExecutionRequest(BaseModel):
    """Body of a sandbox RPC call.

    An empty ``code`` is answered with a 400 by the server rather than
    rejected at parse time.
    """
    code: str = ""
    time_budget: float | None = Field(default=None, gt=0, le=300.0)


class ExecutionResult(BaseModel):
    """Captured output of one execution.

    A RUNTIME_ERROR still carries whatever stdout was written before
    the fault; a TIMEOUT carries whatever was written before the kill.
    """
    stdout: str = ""
    stderr: str = ""
    status: ExecutionStatus = ExecutionStatus.OK
    duration_ms: float = 0.0
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.status == ExecutionStatus.OK

    def to_wire(self) -> dict[str, Any]:
        """Payload sent back to callers (RPC response, tool observation)."""
        return {
            "stdout": self.stdout,
            "stderr": self.stderr,
            "status": self.status.value,
        }

    @classmethod
    def from_wire(cls, payload: dict[str, Any]) -> ExecutionResult:
        """Rebuild a result from an RPC payload.

        Peers that only send {stdout, stderr} get a status inferred from
        the presence of error output.
        """
        stdout = str(payload.get("stdout") or "")
        stderr = str(payload.get("stderr") or "")
        raw_status = payload.get("status")
        if raw_status:
            status = ExecutionStatus(raw_status)
        else:
            status = ExecutionStatus.RUNTIME_ERROR if stderr else ExecutionStatus.OK
        return cls(stdout=stdout, stderr=stderr, status=status)


class SafetyVerdict(BaseModel):
    """Outcome of the static safety check.

    ``reason`` is surfaced to the caller; ``detail`` names the matched
    pattern and is only logged.
    """
    accepted: bool
    reason: str = ""
    detail: str = ""

    @classmethod
    def accept(cls) -> SafetyVerdict:
        return cls(accepted=True)
