"""
Agentbox Built-in Tools

The default tool catalog: a placeholder weather lookup and sandboxed
Python execution.
"""

from agentbox.sandbox.executor import CodeExecutor
from agentbox.tools.builtin.code_exec import CODE_EXEC_SPEC, CodeExecutionTool
from agentbox.tools.builtin.weather import WEATHER_SPEC, lookup_weather
from agentbox.tools.registry import ToolRegistry


def register_all_builtins(
    registry: ToolRegistry,
    executor: CodeExecutor,
    time_budget: float | None = None,
) -> None:
    """Register all built-in tools with the given registry."""
    registry.register(WEATHER_SPEC, lookup_weather)
    registry.register(CODE_EXEC_SPEC, CodeExecutionTool(executor, time_budget))


def build_default_registry(
    executor: CodeExecutor,
    time_budget: float | None = None,
) -> ToolRegistry:
    """Create a registry holding the built-in tools."""
    registry = ToolRegistry()
    register_all_builtins(registry, executor, time_budget)
    return registry
