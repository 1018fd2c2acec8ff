"""
Agentbox Provider-backed Oracle

Adapts an LLMProvider to the Oracle interface. Conversation history is
translated into Anthropic-style messages:

    user message          → user text block
    assistant message     → assistant text block
    tool invocation       → assistant tool_use block
    tool result           → user tool_result block

Consecutive entries with the same role are merged into one message,
since the Messages API requires roles to alternate.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from agentbox.conversation.models import Message, Role
from agentbox.exceptions import OracleError
from agentbox.logging import get_logger
from agentbox.oracle.base import Decision, FinalAnswer, ToolRequest
from agentbox.providers.base import LLMProvider
from agentbox.tools.models import ToolInvocation, ToolSpec

logger = get_logger("agentbox.oracle")

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant with access to tools. "
    "Use a tool when it helps answer the user's question; "
    "for any calculation, write Python and run it with run_python_code. "
    "When a tool reports an error, explain it to the user instead of "
    "retrying the same call."
)


class ProviderOracle:
    """Oracle that asks an LLM provider what to do next."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        max_tokens: int = 4096,
    ):
        self._provider = provider
        self._system_prompt = system_prompt
        self._max_tokens = max_tokens

    @property
    def provider(self) -> LLMProvider:
        return self._provider

    async def reason(
        self,
        history: Sequence[Message],
        catalog: Sequence[ToolSpec],
    ) -> Decision:
        """Ask the provider for the next step.

        Raises:
            OracleError: The provider failed or returned neither text
                nor tool calls.
        """
        messages = to_provider_messages(history)
        if not messages:
            raise OracleError("Cannot reason over an empty conversation")

        try:
            response = await self._provider.create_message(
                messages,
                max_tokens=self._max_tokens,
                system=self._system_prompt,
                tools=[spec.to_schema() for spec in catalog] or None,
            )
        except OracleError:
            raise
        except Exception as e:
            raise OracleError(f"Reasoning service error: {e}") from e

        logger.debug(
            "Oracle responded",
            extra={"provider": self._provider.name, "event_type": response.stop_reason},
        )

        if response.has_tool_use:
            invocations = []
            for block in response.tool_calls:
                call = ToolInvocation(name=block.tool_name, arguments=block.tool_input)
                if block.tool_use_id:
                    call.id = block.tool_use_id
                invocations.append(call)
            return ToolRequest(invocations=invocations)

        text = response.text.strip()
        if not text:
            raise OracleError(
                f"Reasoning service returned no answer (stop_reason={response.stop_reason})"
            )
        return FinalAnswer(text=text)


def to_provider_messages(history: Sequence[Message]) -> list[dict[str, Any]]:
    """Translate stored history into Messages API format."""
    converted: list[dict[str, Any]] = []

    for message in history:
        role, block = _to_block(message)
        if block is None:
            continue
        if converted and converted[-1]["role"] == role:
            converted[-1]["content"].append(block)
        else:
            converted.append({"role": role, "content": [block]})

    return converted


def _to_block(message: Message) -> tuple[str, dict[str, Any] | None]:
    if message.is_tool_invocation:
        call = message.tool_call
        return "assistant", {
            "type": "tool_use",
            "id": call.id,
            "name": call.name,
            "input": call.arguments,
        }

    if message.is_tool_result:
        return "user", {
            "type": "tool_result",
            "tool_use_id": message.tool_call_id,
            "content": message.content,
            "is_error": message.is_error,
        }

    role = "assistant" if message.role == Role.ASSISTANT else "user"
    if not message.content.strip():
        return role, None
    return role, {"type": "text", "text": message.content}
