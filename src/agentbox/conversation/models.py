"""
Agentbox Conversation Models

Messages are frozen once created; a thread is an append-only list of
them. Tool traffic is stored as two ``tool`` messages per call: the
invocation (carrying ``tool_call``) and its result (carrying
``tool_call_id``).
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from agentbox.tools.models import ToolInvocation, ToolResult


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class ToolCallRef(BaseModel):
    """Reference to the tool call an invocation message records."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class Message(BaseModel):
    """One entry of a thread's history."""
    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    tool_call: ToolCallRef | None = None
    tool_call_id: str | None = None
    is_error: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_tool_invocation(self) -> bool:
        return self.role == Role.TOOL and self.tool_call is not None

    @property
    def is_tool_result(self) -> bool:
        return self.role == Role.TOOL and self.tool_call_id is not None

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def invocation(cls, call: ToolInvocation) -> Message:
        return cls(
            role=Role.TOOL,
            content=json.dumps(call.arguments, default=str),
            tool_call=ToolCallRef(id=call.id, name=call.name, arguments=call.arguments),
        )

    @classmethod
    def result(cls, result: ToolResult) -> Message:
        return cls(
            role=Role.TOOL,
            content=result.content,
            tool_call_id=result.invocation_id,
            is_error=result.is_error,
        )


class Thread(BaseModel):
    """Snapshot of a conversation."""
    id: str
    messages: list[Message] = Field(default_factory=list)
