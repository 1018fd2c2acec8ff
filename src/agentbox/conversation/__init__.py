"""Agentbox conversation history: messages, threads and the store."""

from agentbox.conversation.models import Message, Role, Thread, ToolCallRef
from agentbox.conversation.store import ConversationStore

__all__ = [
    "ConversationStore",
    "Message",
    "Role",
    "Thread",
    "ToolCallRef",
]
