"""
Test doubles shared by the test modules.

ScriptedChatModel stands in for a LangChain chat model: it replays a
fixed list of responses and records every prompt it receives.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from finance_agent.agent.state import AgentState, state_from_dict, state_to_dict
from finance_agent.agent.tools.base import BaseTool, ToolResult


def tool_call(name: str, args: dict, call_id: str) -> dict:
    return {"name": name, "args": args, "id": call_id, "type": "tool_call"}


class ScriptedChatModel:
    """Returns scripted responses in order, repeating the last one forever.

    An Exception in the script is raised instead of returned.
    """

    def __init__(self, responses: list[Any]):
        self.responses = list(responses)
        self.calls: list[list] = []
        self.bound_tools: Optional[list] = None
        self.retry_kwargs: Optional[dict] = None

    async def ainvoke(self, messages, **kwargs):
        self.calls.append(list(messages))
        response = self.responses[min(len(self.calls), len(self.responses)) - 1]
        if isinstance(response, Exception):
            raise response
        return response

    def bind_tools(self, tools, **kwargs):
        self.bound_tools = list(tools)
        return self

    def with_retry(self, **kwargs):
        self.retry_kwargs = kwargs
        return self


class AmountInput(BaseModel):
    model_config = ConfigDict(strict=True)

    amount: float = Field(..., gt=0, description="The amount spent")


class RecordingTool(BaseTool):
    """Echoes its arguments and remembers every call it received."""

    description = "Records an amount"

    def __init__(self, name: str = "record", fail_with: Optional[Exception] = None):
        self.name = name
        self.calls: list[dict] = []
        self._fail_with = fail_with

    def get_schema(self) -> type[BaseModel]:
        return AmountInput

    async def execute(self, **kwargs) -> ToolResult:
        self.calls.append(kwargs)
        if self._fail_with is not None:
            raise self._fail_with
        return ToolResult(
            output=f"{self.name} recorded {kwargs['amount']}",
            updates={"expenses": [{"amount": kwargs["amount"], "tool": self.name}]},
        )


class InMemoryCheckpointStore:
    """Stores JSON copies, like the SQLite store, and counts saves."""

    def __init__(self):
        self._data: dict[str, str] = {}
        self.saves: list[str] = []

    async def load(self, thread_id: str) -> Optional[AgentState]:
        raw = self._data.get(thread_id)
        return state_from_dict(json.loads(raw)) if raw is not None else None

    async def save(self, thread_id: str, state: AgentState) -> None:
        self._data[thread_id] = json.dumps(state_to_dict(state))
        self.saves.append(thread_id)
