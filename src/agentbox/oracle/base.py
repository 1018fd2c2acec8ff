"""
Agentbox Oracle Interface

The oracle is the external reasoning service. Given the conversation
so far and the tool catalog it decides the next step: answer, or call
one or more tools.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, Union, runtime_checkable

from pydantic import BaseModel, Field

from agentbox.conversation.models import Message
from agentbox.tools.models import ToolInvocation, ToolSpec


class FinalAnswer(BaseModel):
    """The oracle is done; ``text`` goes back to the user."""
    text: str


class ToolRequest(BaseModel):
    """The oracle wants these tools run before it continues."""
    invocations: list[ToolInvocation] = Field(min_length=1)


Decision = Union[FinalAnswer, ToolRequest]


@runtime_checkable
class Oracle(Protocol):
    """Anything that can decide the next step of a conversation."""

    async def reason(
        self,
        history: Sequence[Message],
        catalog: Sequence[ToolSpec],
    ) -> Decision:
        ...
