"""
Agentbox Oracle

The reasoning service as seen by the orchestrator:

    reason(history, catalog) → FinalAnswer(text) | ToolRequest(invocations)

ProviderOracle implements it on top of an LLMProvider.
"""

from agentbox.oracle.base import Decision, FinalAnswer, Oracle, ToolRequest
from agentbox.oracle.provider import DEFAULT_SYSTEM_PROMPT, ProviderOracle, to_provider_messages

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "Decision",
    "FinalAnswer",
    "Oracle",
    "ProviderOracle",
    "ToolRequest",
    "to_provider_messages",
]
