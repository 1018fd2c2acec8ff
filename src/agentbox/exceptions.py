"""
Agentbox Custom Exceptions

Structured exception hierarchy for the agentbox framework.
All agentbox-specific exceptions inherit from AgentboxError.

Exception hierarchy:
    AgentboxError
    +-- RequestValidationError    (missing/malformed request fields)
    +-- ConfigurationError        (invalid environment configuration)
    +-- OracleError               (reasoning service unreachable or unparsable)
    |   +-- ProviderError         (LLM provider failure)
    +-- ToolError                 (unknown tool, schema mismatch, handler failure)
    +-- SandboxUnavailableError   (sandbox RPC transport failure)
    +-- IterationLimitExceeded    (tool-call loop hit its cap)
    +-- AgentboxAPIError          (API layer error)

Sandbox outcomes (rejected, crashed, timed out) are not exceptions: they
are encoded in ExecutionResult.status.
"""

from __future__ import annotations


class AgentboxError(Exception):
    """Base exception for all agentbox errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class RequestValidationError(AgentboxError):
    """Raised when an inbound request is missing required fields.

    Never reaches the orchestrator; the API layer answers with a 400.
    """

    def __init__(self, field: str, message: str | None = None):
        super().__init__(
            message or f"{field.capitalize()} is required",
            details={"field": field},
        )
        self.field = field


class ConfigurationError(AgentboxError):
    """Raised when an environment variable holds an unusable value."""

    def __init__(self, variable: str, value: str, message: str):
        super().__init__(
            f"Invalid value for {variable}={value!r}: {message}",
            details={"variable": variable, "value": value},
        )
        self.variable = variable


class OracleError(AgentboxError):
    """Raised when the reasoning service fails or returns unusable output.

    The orchestrator recovers by substituting a final answer that
    describes the failure.
    """


class ProviderError(OracleError):
    """Raised when an LLM provider call fails after all retries."""

    def __init__(self, provider_name: str, message: str, details: dict | None = None):
        super().__init__(
            f"Provider '{provider_name}' error: {message}",
            details={"provider_name": provider_name, **(details or {})},
        )
        self.provider_name = provider_name


class ToolError(AgentboxError):
    """Raised inside the tool registry for a failed invocation.

    Converted into an error ToolResult at the registry boundary; the
    orchestrator only ever sees the result.
    """

    def __init__(self, tool_name: str, kind: str, message: str, details: dict | None = None):
        super().__init__(
            message,
            details={"tool_name": tool_name, "kind": kind, **(details or {})},
        )
        self.tool_name = tool_name
        self.kind = kind


class SandboxUnavailableError(AgentboxError):
    """Raised when the sandbox RPC endpoint cannot be reached or answers non-2xx.

    This is a transport failure, distinct from an execution that ran and
    failed (which is an ExecutionResult with a non-OK status).
    """

    def __init__(self, url: str, message: str, status_code: int | None = None):
        super().__init__(
            f"Sandbox at {url} unavailable: {message}",
            details={"url": url, "status_code": status_code},
        )
        self.url = url
        self.status_code = status_code


class IterationLimitExceeded(AgentboxError):
    """Raised when the oracle keeps requesting tools past the iteration cap."""

    def __init__(self, limit: int):
        super().__init__(
            f"Stopped after {limit} tool-call rounds: iteration limit reached "
            "without a final answer.",
            details={"limit": limit},
        )
        self.limit = limit


class AgentboxAPIError(AgentboxError):
    """Raised for API layer errors (FastAPI endpoints)."""

    def __init__(self, message: str, status_code: int = 500, details: dict | None = None):
        super().__init__(
            message,
            details={"status_code": status_code, **(details or {})},
        )
        self.status_code = status_code
