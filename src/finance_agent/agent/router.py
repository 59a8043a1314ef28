"""
agent.router - Decides where the graph goes after the model speaks.

Routing is mechanical: the latest message either carries tool calls or
it does not. The FINAL ANSWER marker plays no part here.
"""

from __future__ import annotations

from typing import Literal

from langchain_core.messages import AIMessage

from finance_agent.agent.state import AgentState

Route = Literal["tools", "end"]


def route(state: AgentState) -> Route:
    """Return "tools" iff the latest message is an assistant message with tool calls."""
    last = state.last_message
    if isinstance(last, AIMessage) and last.tool_calls:
        return "tools"
    return "end"
