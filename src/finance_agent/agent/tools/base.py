"""
agent.tools.base - Base tool interface and result container.

All agent tools inherit from BaseTool and return ToolResult.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel


@dataclass
class ToolResult:
    """Result returned by a tool execution.

    output:   Text appended to the conversation as the tool-result message.
    updates:  Accumulator entries merged into AgentState, keyed by field
              name (e.g. {"expenses": [...]}). Never passed through the LLM.
    """
    output: str
    updates: dict[str, list[Any]] = field(default_factory=dict)


class BaseTool(ABC):
    """Abstract base for all agent tools."""

    name: str
    description: str

    @abstractmethod
    async def execute(self, **kwargs) -> ToolResult:
        """Execute the tool with already-validated arguments."""
        ...

    @abstractmethod
    def get_schema(self) -> type[BaseModel]:
        """Return the Pydantic schema for this tool's input arguments."""
        ...


def format_amount(amount: float) -> str:
    """Render a money amount the way users type it: 100 -> '100', 12.5 -> '12.50'."""
    if float(amount).is_integer():
        return str(int(amount))
    return f"{amount:.2f}"
