"""
Agentbox Conversation Store

In-memory, thread-keyed message history. Each thread has its own
asyncio.Lock, so appends to one thread are serialized while appends to
different threads never wait on each other. Threads are created on
first reference and live for the lifetime of the process.
"""

from __future__ import annotations

import asyncio

from agentbox.conversation.models import Message, Thread
from agentbox.logging import get_logger

logger = get_logger("agentbox.conversation")


class _ThreadState:
    __slots__ = ("lock", "messages")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.messages: list[Message] = []


class ConversationStore:
    """Append-only message histories keyed by thread id."""

    def __init__(self) -> None:
        self._threads: dict[str, _ThreadState] = {}
        self._registry_lock = asyncio.Lock()

    async def _state(self, thread_id: str) -> _ThreadState:
        state = self._threads.get(thread_id)
        if state is not None:
            return state
        async with self._registry_lock:
            state = self._threads.get(thread_id)
            if state is None:
                state = _ThreadState()
                self._threads[thread_id] = state
                logger.debug("Thread created", extra={"thread_id": thread_id})
            return state

    async def append(self, thread_id: str, message: Message) -> int:
        """Append a message and return the thread's new length."""
        state = await self._state(thread_id)
        async with state.lock:
            state.messages.append(message)
            return len(state.messages)

    async def extend(self, thread_id: str, messages: list[Message]) -> int:
        """Append several messages contiguously, in order."""
        state = await self._state(thread_id)
        async with state.lock:
            state.messages.extend(messages)
            return len(state.messages)

    async def history(self, thread_id: str) -> tuple[Message, ...]:
        """Return an immutable snapshot of the thread's messages.

        An unseen id creates an empty thread.
        """
        state = await self._state(thread_id)
        async with state.lock:
            return tuple(state.messages)

    async def snapshot(self, thread_id: str) -> Thread:
        return Thread(id=thread_id, messages=list(await self.history(thread_id)))

    def thread_ids(self) -> list[str]:
        return list(self._threads)

    def __contains__(self, thread_id: str) -> bool:
        return thread_id in self._threads

    def __len__(self) -> int:
        return len(self._threads)
