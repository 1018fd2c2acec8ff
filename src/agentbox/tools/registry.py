"""
Agentbox Tool Registry

Central registry for all tools available to the agent. Each tool is
registered with its ToolSpec and a handler. The registry:

- presents the catalog to the oracle in registration order
- validates arguments against the ToolSpec before any handler runs
- converts every failure (unknown tool, schema mismatch, handler
  exception) into an error ToolResult, so the orchestrator loop never
  sees an exception from a tool
"""

from __future__ import annotations

import inspect
import json
import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from agentbox.exceptions import ToolError
from agentbox.logging import get_logger
from agentbox.tools.models import (
    PARAMETER_TYPES,
    ToolErrorKind,
    ToolInvocation,
    ToolResult,
    ToolSpec,
)

logger = get_logger("agentbox.tools")

Handler = Callable[..., Any] | Callable[..., Awaitable[Any]]


class RegisteredTool:
    """A tool registered in the system.

    Combines the ToolSpec shown to the oracle, the pydantic model used
    to validate arguments, and the handler that does the work.
    """

    def __init__(self, spec: ToolSpec, handler: Handler):
        self.spec = spec
        self.handler = handler
        self.arguments_model = _build_arguments_model(spec)

    @property
    def name(self) -> str:
        return self.spec.name

    def validate(self, arguments: dict[str, Any]) -> dict[str, Any]:
        """Return handler kwargs or raise ToolError(SCHEMA_MISMATCH)."""
        try:
            parsed = self.arguments_model.model_validate(arguments)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'input'}: {err['msg']}"
                for err in e.errors()
            )
            raise ToolError(
                self.name,
                ToolErrorKind.SCHEMA_MISMATCH.value,
                f"Invalid arguments for tool '{self.name}': {problems}",
            ) from e
        return parsed.model_dump(exclude_unset=True)


class ToolRegistry:
    """Central registry for all available tools.

    Tools are registered once at startup. ``list()`` order is the
    registration order and is used verbatim when presenting the
    catalog to the oracle.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, spec: ToolSpec, handler: Handler) -> RegisteredTool:
        """Register a tool with its handler.

        Raises ValueError if a tool with the same name already exists.
        """
        if spec.name in self._tools:
            raise ValueError(f"Tool '{spec.name}' is already registered")
        tool = RegisteredTool(spec, handler)
        self._tools[spec.name] = tool
        return tool

    def get(self, name: str) -> RegisteredTool | None:
        """Look up a registered tool by name."""
        return self._tools.get(name)

    def list(self) -> list[ToolSpec]:
        """Return every ToolSpec in registration order."""
        return [t.spec for t in self._tools.values()]

    def schemas(self) -> list[dict]:
        """Tool schemas in the shape the oracle consumes."""
        return [t.spec.to_schema() for t in self._tools.values()]

    async def invoke(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        *,
        invocation_id: str = "",
    ) -> ToolResult:
        """Validate and run one tool call.

        Never raises for tool-level problems; they come back as a
        ToolResult with ``is_error`` set.
        """
        started = time.monotonic()
        try:
            tool = self._tools.get(name)
            if tool is None:
                raise ToolError(name, ToolErrorKind.UNKNOWN_TOOL.value, f"Unknown tool: {name}")

            kwargs = tool.validate(arguments or {})
            output = await self._call(tool, kwargs)
        except ToolError as e:
            logger.warning(
                "Tool call failed: %s", e,
                extra={"tool_name": name, "status": e.kind},
            )
            return ToolResult(
                invocation_id=invocation_id,
                tool_name=name,
                content=_error_payload(str(e)),
                is_error=True,
                error_kind=ToolErrorKind(e.kind),
                duration_ms=(time.monotonic() - started) * 1000,
            )

        duration_ms = (time.monotonic() - started) * 1000
        logger.info(
            "Tool call completed",
            extra={"tool_name": name, "status": "OK", "duration_ms": round(duration_ms, 1)},
        )
        return ToolResult(
            invocation_id=invocation_id,
            tool_name=name,
            content=_render(output),
            duration_ms=duration_ms,
        )

    async def dispatch(self, invocation: ToolInvocation) -> ToolResult:
        """Invoke a tool from an oracle-produced ToolInvocation."""
        return await self.invoke(
            invocation.name,
            invocation.arguments,
            invocation_id=invocation.id,
        )

    @staticmethod
    async def _call(tool: RegisteredTool, kwargs: dict[str, Any]) -> Any:
        try:
            result = tool.handler(**kwargs)
            if inspect.isawaitable(result):
                result = await result
            return result
        except Exception as e:
            logger.debug("Handler for '%s' raised", tool.name, exc_info=True)
            raise ToolError(
                tool.name,
                ToolErrorKind.HANDLER_FAILURE.value,
                f"Error executing {tool.name}: {e}",
            ) from e

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools


def _build_arguments_model(spec: ToolSpec) -> type[BaseModel]:
    definitions: dict[str, Any] = {}
    for param in spec.parameters:
        py_type = PARAMETER_TYPES[param.type]
        if param.required:
            definitions[param.name] = (py_type, ...)
        else:
            definitions[param.name] = (py_type | None, None)
    return create_model(
        f"{spec.name}_arguments",
        __config__=ConfigDict(extra="forbid", strict=True),
        **definitions,
    )


def _error_payload(message: str) -> str:
    return json.dumps({"stdout": "", "stderr": message})


def _render(output: Any) -> str:
    if isinstance(output, str):
        return output
    if isinstance(output, BaseModel):
        return output.model_dump_json()
    try:
        return json.dumps(output, default=str)
    except (TypeError, ValueError):
        return str(output)
