"""
Agentbox Tool Models

Pydantic models for tool declarations, invocations and results.
A ToolSpec declares named primitive parameters; the registry turns those
into a validation model and into the JSON schema shown to the oracle.
"""

from __future__ import annotations

import uuid
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

# JSON-schema type name -> Python type used for validation
PARAMETER_TYPES: dict[str, type] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
}


class ToolParameter(BaseModel):
    """One named input of a tool."""
    name: str
    type: str = "string"
    description: str = ""
    required: bool = True

    @field_validator("type")
    @classmethod
    def check_type(cls, value: str) -> str:
        if value not in PARAMETER_TYPES:
            raise ValueError(
                f"Unsupported parameter type '{value}'. Supported: {', '.join(PARAMETER_TYPES)}"
            )
        return value


class ToolSpec(BaseModel):
    """Declaration of a tool: its unique name, what it does, what it takes."""
    name: str = Field(min_length=1, pattern=r"^[a-zA-Z0-9_-]{1,64}$")
    description: str
    parameters: list[ToolParameter] = Field(default_factory=list)

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the tool input, as presented to the oracle."""
        return {
            "type": "object",
            "properties": {
                p.name: {"type": p.type, "description": p.description}
                for p in self.parameters
            },
            "required": [p.name for p in self.parameters if p.required],
        }

    def to_schema(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


class ToolInvocation(BaseModel):
    """A tool call requested by the oracle.

    Validated against the tool's schema before the handler runs.
    """
    id: str = Field(default_factory=lambda: f"call_{uuid.uuid4().hex[:12]}")
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class ToolErrorKind(str, Enum):
    """Why a tool invocation produced an error result."""
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"
    HANDLER_FAILURE = "HANDLER_FAILURE"


class ToolResult(BaseModel):
    """Observation returned to the orchestrator for one invocation.

    Failures are data: ``is_error`` is set and ``content`` holds a
    {"stdout": "", "stderr": "..."} payload describing what went wrong.
    """
    invocation_id: str
    tool_name: str
    content: str
    is_error: bool = False
    error_kind: ToolErrorKind | None = None
    duration_ms: float = 0.0
