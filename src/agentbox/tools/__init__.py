"""
Agentbox Tool System

Every tool call requested by the oracle goes through the registry:

    Oracle (ToolInvocation) → ToolRegistry.dispatch → validate → handler → ToolResult

Components:
- ToolSpec / ToolParameter: declaration shown to the oracle
- ToolRegistry: ordered catalog, argument validation, failure-to-data conversion
- ToolResult: observation fed back into the conversation
- Built-in tools: weather, run_python_code
"""

from agentbox.tools.models import (
    ToolErrorKind,
    ToolInvocation,
    ToolParameter,
    ToolResult,
    ToolSpec,
)
from agentbox.tools.registry import RegisteredTool, ToolRegistry

__all__ = [
    "RegisteredTool",
    "ToolErrorKind",
    "ToolInvocation",
    "ToolParameter",
    "ToolRegistry",
    "ToolResult",
    "ToolSpec",
]
