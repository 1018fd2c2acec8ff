"""
Agentbox LLM Provider Base

Abstract interface for LLM providers. The oracle talks to a provider
through this interface, so the model vendor can change without
touching the orchestrator.

Providers implement one coroutine, _create_message_impl(); the base
class adds retries with exponential backoff and maps final failures to
ProviderError.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from agentbox.exceptions import ProviderError
from agentbox.logging import get_logger

logger = get_logger("agentbox.providers")


class ContentBlock(BaseModel):
    """A single content block in an LLM response.

    Abstracts over provider-specific formats into a unified structure.
    """
    type: str = "text"  # "text" or "tool_use"
    text: str = ""
    tool_name: str = ""
    tool_input: dict[str, Any] = Field(default_factory=dict)
    tool_use_id: str = ""


class LLMResponse(BaseModel):
    """Unified response from any LLM provider."""
    content: list[ContentBlock] = Field(default_factory=list)
    stop_reason: str = "end_turn"
    model: str = ""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def text(self) -> str:
        """Extract concatenated text from all text blocks."""
        return "".join(b.text for b in self.content if b.type == "text")

    @property
    def tool_calls(self) -> list[ContentBlock]:
        """Extract all tool_use blocks."""
        return [b for b in self.content if b.type == "tool_use"]

    @property
    def has_tool_use(self) -> bool:
        """Check if response contains any tool_use blocks."""
        return any(b.type == "tool_use" for b in self.content)


class ProviderConfig(BaseModel):
    """Configuration for an LLM provider."""
    api_key: str | None = None
    model: str = ""
    base_url: str | None = None
    max_retries: int = Field(default=3, ge=1)
    timeout_seconds: float = 30.0
    retry_base_delay: float = 1.0  # exponential backoff base (1s, 2s, 4s)
    temperature: float | None = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    All providers must implement _create_message_impl(). The base class
    provides retry logic with exponential backoff.
    """

    def __init__(self, config: ProviderConfig | None = None):
        self._config = config or ProviderConfig()

    @property
    def name(self) -> str:
        """Human-readable provider name."""
        return self.__class__.__name__

    @property
    def model(self) -> str:
        """Current model name."""
        return self._config.model

    @abstractmethod
    async def _create_message_impl(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str,
        max_tokens: int = 4096,
        system: str | None = None,
        tools: list[dict] | None = None,
        temperature: float | None = None,
    ) -> LLMResponse:
        """Provider-specific implementation of message creation.

        Subclasses implement this. The base class wraps it with retry logic.
        """
        ...

    async def create_message(
        self,
        messages: list[dict[str, Any]],
        *,
        max_tokens: int = 4096,
        system: str | None = None,
        tools: list[dict] | None = None,
        temperature: float | None = None,
        model: str | None = None,
    ) -> LLMResponse:
        """Create a message with automatic retry and exponential backoff.

        Args:
            messages: List of message dicts (role + content).
            max_tokens: Maximum tokens in response.
            system: Optional system prompt.
            tools: Optional tool definitions for tool use.
            temperature: Optional temperature override.
            model: Optional model override for this call only.

        Raises:
            ProviderError: If every attempt failed.
        """
        if temperature is None:
            temperature = self._config.temperature

        last_error: Exception | None = None
        for attempt in range(self._config.max_retries):
            try:
                return await self._create_message_impl(
                    messages,
                    model=model or self._config.model,
                    max_tokens=max_tokens,
                    system=system,
                    tools=tools,
                    temperature=temperature,
                )
            except Exception as e:
                last_error = e
                logger.warning(
                    "Provider call failed (attempt %d/%d): %s",
                    attempt + 1, self._config.max_retries, e,
                    extra={"provider": self.name},
                )
                if attempt < self._config.max_retries - 1:
                    delay = self._config.retry_base_delay * (2 ** attempt)
                    await asyncio.sleep(delay)

        raise ProviderError(
            self.name,
            f"failed after {self._config.max_retries} retries: {last_error}",
        ) from last_error
