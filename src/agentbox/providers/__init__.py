"""
Agentbox LLM Provider Abstraction

Providers wrap an LLM vendor API behind a common interface that the
oracle adapter consumes.

Usage:
    from agentbox.providers import create_provider

    provider = create_provider("claude")
    response = await provider.create_message(messages=[...])
"""

from agentbox.providers.base import (
    ContentBlock,
    LLMProvider,
    LLMResponse,
    ProviderConfig,
)
from agentbox.providers.claude import ClaudeProvider

__all__ = [
    "ClaudeProvider",
    "ContentBlock",
    "LLMProvider",
    "LLMResponse",
    "ProviderConfig",
    "create_provider",
]


def create_provider(
    name: str = "claude",
    *,
    api_key: str | None = None,
    model: str | None = None,
    temperature: float | None = None,
) -> LLMProvider:
    """Factory function to create an LLM provider by name.

    Args:
        name: Provider name ("claude" or "anthropic").
        api_key: Optional API key override.
        model: Optional model name override.
        temperature: Default sampling temperature.
    """
    name_lower = name.lower()

    if name_lower in ("claude", "anthropic"):
        config = ProviderConfig(
            api_key=api_key,
            model=model or ClaudeProvider.DEFAULT_MODEL,
            temperature=temperature,
        )
        return ClaudeProvider(config)

    raise ValueError(f"Unknown provider: {name}. Supported: claude")
