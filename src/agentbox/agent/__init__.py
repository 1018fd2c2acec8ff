"""Agentbox agent loop."""

from agentbox.agent.orchestrator import AgentOrchestrator, AgentReply, AgentState, StopReason

__all__ = [
    "AgentOrchestrator",
    "AgentReply",
    "AgentState",
    "StopReason",
]
