"""
Agentbox: Tool-Dispatching Agent Loop with a Code-Execution Sandbox

Usage:
    from agentbox import AgentOrchestrator, Settings

    orchestrator = AgentOrchestrator.from_settings(Settings.from_env())
    reply = await orchestrator.run("thread-1", "What's 15 * 37?")
    print(reply.content)

    # Sandbox on its own:
    from agentbox import SandboxedExecutor

    result = await SandboxedExecutor().execute("print(15 * 37)")
    result.stdout   # "555\\n"
"""

__version__ = "0.1.0"

from agentbox.agent.orchestrator import AgentOrchestrator, AgentReply, StopReason
from agentbox.config import Settings
from agentbox.conversation import ConversationStore, Message, Role
from agentbox.oracle import FinalAnswer, Oracle, ProviderOracle, ToolRequest
from agentbox.sandbox import (
    ExecutionResult,
    ExecutionStatus,
    SafetyFilter,
    SandboxClient,
    SandboxConfig,
    SandboxedExecutor,
)
from agentbox.tools import ToolInvocation, ToolParameter, ToolRegistry, ToolResult, ToolSpec

__all__ = [
    "__version__",
    # Agent
    "AgentOrchestrator",
    "AgentReply",
    "StopReason",
    "Settings",
    # Conversation
    "ConversationStore",
    "Message",
    "Role",
    # Oracle
    "FinalAnswer",
    "Oracle",
    "ProviderOracle",
    "ToolRequest",
    # Sandbox
    "ExecutionResult",
    "ExecutionStatus",
    "SafetyFilter",
    "SandboxClient",
    "SandboxConfig",
    "SandboxedExecutor",
    # Tools
    "ToolInvocation",
    "ToolParameter",
    "ToolRegistry",
    "ToolResult",
    "ToolSpec",
]
