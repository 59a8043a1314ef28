"""
agent.tools.registry - Tool registration, validation, and invocation.

Central registry that manages all available tools. It is the single
source of truth for both the tools advertised to the model
(to_langchain_tools) and the tools the executor can dispatch (invoke).
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ValidationError

from finance_agent.agent.tools.base import BaseTool, ToolResult
from finance_agent.domain.exceptions import (
    ToolError,
    ToolExecutionError,
    ToolValidationError,
    UnknownToolError,
)

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages tool registration, argument validation and invocation."""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool by its name. Names must be unique."""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> BaseTool:
        """Get a tool by name."""
        if name not in self._tools:
            raise UnknownToolError(name)
        return self._tools[name]

    def all(self) -> list[BaseTool]:
        """Return all registered tools."""
        return list(self._tools.values())

    def names(self) -> list[str]:
        """Return all registered tool names."""
        return list(self._tools.keys())

    def validate(self, name: str, args: Optional[Mapping[str, Any]]) -> BaseModel:
        """Check *args* against the tool's schema.

        Raises:
            UnknownToolError:    If no tool is registered under *name*.
            ToolValidationError: If *args* do not conform to the schema.
        """
        schema = self.get(name).get_schema()
        try:
            return schema.model_validate(args if args is not None else {})
        except ValidationError as exc:
            errors = [
                f"{'.'.join(str(part) for part in err['loc']) or 'arguments'}: {err['msg']}"
                for err in exc.errors()
            ]
            raise ToolValidationError(name, errors) from exc

    async def invoke(self, name: str, args: Optional[Mapping[str, Any]]) -> ToolResult:
        """Validate *args* and run the tool. The handler only sees validated input.

        Raises:
            UnknownToolError, ToolValidationError: before the handler runs.
            ToolExecutionError: if the handler itself fails.
        """
        validated = self.validate(name, args)
        tool = self.get(name)
        logger.info("Invoking tool '%s' with %s", name, validated.model_dump())
        try:
            result = await tool.execute(**validated.model_dump())
        except ToolError:
            raise
        except Exception as exc:
            raise ToolExecutionError(name, f"Tool '{name}' failed: {exc}") from exc

        if isinstance(result, str):
            result = ToolResult(output=result)
        return result

    def to_langchain_tools(self) -> list[StructuredTool]:
        """Convert all registered tools to LangChain StructuredTools.

        Used to advertise names, descriptions and schemas through
        ``bind_tools``. Calling one still goes through invoke().
        """
        lc_tools = []
        for tool in self._tools.values():

            def _make_coroutine(tool_name: str):
                async def coroutine(**kwargs: Any) -> str:
                    result = await self.invoke(tool_name, kwargs)
                    return result.output
                return coroutine

            lc_tools.append(StructuredTool.from_function(
                coroutine=_make_coroutine(tool.name),
                name=tool.name,
                description=tool.description,
                args_schema=tool.get_schema(),
            ))
        return lc_tools
