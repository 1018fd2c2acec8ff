"""
Agentbox Agent Orchestrator

Drives the reason → act → observe loop for one chat request:

    LOAD_HISTORY → REASON ─(final answer)──────────────→ RESPOND
                     ↑  └─(tool request)→ DISPATCH → OBSERVE ┘

Guarantees:
- At most ``max_iterations`` DISPATCH steps per request; past the cap
  the reply states that the limit was reached.
- An optional deadline bounds the whole request. On expiry in-flight
  work is cancelled and a best-effort reply is returned with
  ``timed_out`` set.
- Oracle failures and malformed decisions become final answers.
- Tool invocations requested together run concurrently; their
  messages are appended in request order.
"""

from __future__ import annotations

import asyncio
import time
from enum import Enum

from pydantic import BaseModel

from agentbox.config import Settings
from agentbox.conversation.models import Message
from agentbox.conversation.store import ConversationStore
from agentbox.exceptions import IterationLimitExceeded, RequestValidationError
from agentbox.logging import get_logger
from agentbox.oracle.base import FinalAnswer, Oracle, ToolRequest
from agentbox.tools.registry import ToolRegistry

logger = get_logger("agentbox.agent")


class AgentState(str, Enum):
    LOAD_HISTORY = "LOAD_HISTORY"
    REASON = "REASON"
    DISPATCH = "DISPATCH"
    OBSERVE = "OBSERVE"
    RESPOND = "RESPOND"


class StopReason(str, Enum):
    FINAL_ANSWER = "FINAL_ANSWER"
    ITERATION_LIMIT = "ITERATION_LIMIT"
    DEADLINE = "DEADLINE"
    ORACLE_ERROR = "ORACLE_ERROR"


class AgentReply(BaseModel):
    """What a chat request returns."""
    thread_id: str
    content: str
    stop_reason: StopReason
    iterations: int = 0
    timed_out: bool = False
    duration_ms: float = 0.0


class _Progress:
    """Mutable per-request state, readable after a deadline cancels the loop."""

    def __init__(self) -> None:
        self.iterations = 0
        self.last_observation: str | None = None


class AgentOrchestrator:
    """Bounded ReAct loop over an oracle, a tool registry and a store."""

    def __init__(
        self,
        oracle: Oracle,
        registry: ToolRegistry,
        store: ConversationStore | None = None,
        *,
        max_iterations: int = 10,
        deadline_seconds: float | None = None,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._oracle = oracle
        self._registry = registry
        self._store = store or ConversationStore()
        self._max_iterations = max_iterations
        self._deadline_seconds = deadline_seconds

    @property
    def store(self) -> ConversationStore:
        return self._store

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    async def run(
        self,
        thread_id: str,
        prompt: str,
        *,
        deadline_seconds: float | None = None,
    ) -> AgentReply:
        """Handle one user turn and return the final reply.

        Args:
            thread_id: Conversation to continue (created if unseen).
            prompt: The user's message.
            deadline_seconds: Overrides the configured request deadline;
                0 disables it for this turn.

        Raises:
            RequestValidationError: If the prompt is empty.
        """
        if not prompt or not prompt.strip():
            raise RequestValidationError("prompt")

        started = time.monotonic()
        deadline = self._deadline_seconds if deadline_seconds is None else deadline_seconds
        progress = _Progress()

        await self._store.append(thread_id, Message.user(prompt))

        try:
            if deadline:
                content, reason = await asyncio.wait_for(
                    self._loop(thread_id, progress), timeout=deadline,
                )
            else:
                content, reason = await self._loop(thread_id, progress)
        except TimeoutError:
            logger.warning(
                "Request deadline exceeded",
                extra={"thread_id": thread_id, "iteration": progress.iterations},
            )
            content = _deadline_answer(deadline, progress)
            reason = StopReason.DEADLINE

        self._transition(AgentState.RESPOND, thread_id, progress.iterations)
        await self._store.append(thread_id, Message.assistant(content))

        reply = AgentReply(
            thread_id=thread_id,
            content=content,
            stop_reason=reason,
            iterations=progress.iterations,
            timed_out=reason == StopReason.DEADLINE,
            duration_ms=(time.monotonic() - started) * 1000,
        )
        logger.info(
            "Request completed",
            extra={
                "thread_id": thread_id,
                "status": reason.value,
                "iteration": progress.iterations,
                "duration_ms": round(reply.duration_ms, 1),
            },
        )
        return reply

    async def _loop(self, thread_id: str, progress: _Progress) -> tuple[str, StopReason]:
        catalog = self._registry.list()
        self._transition(AgentState.LOAD_HISTORY, thread_id, 0)
        history = await self._store.history(thread_id)

        while True:
            self._transition(AgentState.REASON, thread_id, progress.iterations)
            try:
                decision = await self._oracle.reason(history, catalog)
            except Exception as e:
                logger.warning(
                    "Oracle failed: %s", e,
                    extra={"thread_id": thread_id, "event_type": "ORACLE_ERROR"},
                )
                return f"The reasoning service failed: {e}", StopReason.ORACLE_ERROR

            if isinstance(decision, FinalAnswer):
                return decision.text, StopReason.FINAL_ANSWER

            if not isinstance(decision, ToolRequest) or not decision.invocations:
                summary = repr(decision)[:200]
                logger.warning(
                    "Oracle returned an unusable decision: %s", summary,
                    extra={"thread_id": thread_id, "event_type": "ORACLE_ERROR"},
                )
                return (
                    f"The reasoning service returned an unusable response: {summary}",
                    StopReason.ORACLE_ERROR,
                )

            if progress.iterations >= self._max_iterations:
                return str(IterationLimitExceeded(self._max_iterations)), StopReason.ITERATION_LIMIT

            self._transition(AgentState.DISPATCH, thread_id, progress.iterations + 1)
            results = await asyncio.gather(
                *(self._registry.dispatch(call) for call in decision.invocations)
            )

            messages: list[Message] = []
            for call, result in zip(decision.invocations, results):
                messages.append(Message.invocation(call))
                messages.append(Message.result(result))
            await self._store.extend(thread_id, messages)

            progress.iterations += 1
            progress.last_observation = results[-1].content

            self._transition(AgentState.OBSERVE, thread_id, progress.iterations)
            history = await self._store.history(thread_id)

    @staticmethod
    def _transition(state: AgentState, thread_id: str, iteration: int) -> None:
        logger.debug(
            "Entering %s", state.value,
            extra={"thread_id": thread_id, "state": state.value, "iteration": iteration},
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        oracle: Oracle | None = None,
        store: ConversationStore | None = None,
    ) -> AgentOrchestrator:
        """Wire the default oracle, sandbox and built-in tools from settings."""
        from agentbox.oracle.provider import ProviderOracle
        from agentbox.providers import create_provider
        from agentbox.sandbox.client import SandboxClient
        from agentbox.sandbox.executor import SandboxConfig, SandboxedExecutor
        from agentbox.tools.builtin import build_default_registry

        if settings.uses_local_sandbox:
            executor = SandboxedExecutor(SandboxConfig(
                timeout_seconds=settings.sandbox_timeout_seconds,
                max_output_bytes=settings.sandbox_max_output_bytes,
                memory_limit_mb=settings.sandbox_memory_limit_mb,
                max_concurrency=settings.sandbox_max_concurrency,
            ))
        else:
            executor = SandboxClient(
                settings.sandbox_url,
                time_budget=settings.sandbox_timeout_seconds,
            )

        if oracle is None:
            provider = create_provider(
                settings.oracle_provider,
                model=settings.oracle_model,
                temperature=settings.temperature,
            )
            oracle = ProviderOracle(provider)

        return cls(
            oracle,
            build_default_registry(executor, settings.sandbox_timeout_seconds),
            store,
            max_iterations=settings.max_iterations,
            deadline_seconds=settings.deadline_seconds,
        )


def _deadline_answer(deadline: float | None, progress: _Progress) -> str:
    answer = (
        f"Request deadline of {deadline:g}s exceeded before a final answer "
        f"was produced ({progress.iterations} tool-call rounds completed)."
    )
    if progress.last_observation:
        answer += f" Last tool output: {progress.last_observation}"
    return answer
