"""
agent.state - Per-thread agent state and its merge policies.

AgentState is immutable: every graph step returns a partial update (a
"delta") and merge_state() folds it into a NEW state using the reducer
registered for each field. Every field is a log: values are appended,
never replaced or deleted. Corrections are new entries.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping, Optional

from langchain_core.messages import BaseMessage, messages_from_dict, messages_to_dict

from finance_agent.domain.exceptions import StateUpdateError

Reducer = Callable[[tuple, Any], tuple]


def concat(current: tuple, delta: Any) -> tuple:
    """Append *delta* (one item or a sequence of items) to *current*."""
    if isinstance(delta, (list, tuple)):
        return current + tuple(delta)
    return current + (delta,)


@dataclass(frozen=True)
class AgentState:
    """Accumulated state of one conversation thread.

    Attributes:
        messages:            Ordered conversation (user, assistant, tool results).
        expenses:            Every amount recorded by a tool, as plain dicts.
        spending_limits:     Every limit ever set; the last one is current.
        spending_categories: Categories assigned to logged expenses.
        alerts:              Over-limit notices raised by tools.
    """
    messages: tuple[BaseMessage, ...] = ()
    expenses: tuple[dict, ...] = ()
    spending_limits: tuple[dict, ...] = ()
    spending_categories: tuple[str, ...] = ()
    alerts: tuple[str, ...] = ()

    @property
    def last_message(self) -> Optional[BaseMessage]:
        return self.messages[-1] if self.messages else None

    @property
    def current_spending_limit(self) -> Optional[dict]:
        """Most recent entry of the spending_limits log, if any."""
        return self.spending_limits[-1] if self.spending_limits else None


# One reducer per field. All concatenate; see DESIGN.md for spending_limits.
REDUCERS: dict[str, Reducer] = {
    "messages": concat,
    "expenses": concat,
    "spending_limits": concat,
    "spending_categories": concat,
    "alerts": concat,
}


def merge_state(current: AgentState, delta: Mapping[str, Any]) -> AgentState:
    """Fold a partial update into *current* and return the new state.

    Raises:
        StateUpdateError: If *delta* names a field without a reducer.
    """
    unknown = sorted(set(delta) - set(REDUCERS))
    if unknown:
        raise StateUpdateError(f"No merge policy for state field(s): {', '.join(unknown)}")

    updates = {
        name: REDUCERS[name](getattr(current, name), value)
        for name, value in delta.items()
    }
    return replace(current, **updates) if updates else current


def state_to_dict(state: AgentState) -> dict[str, Any]:
    """JSON-compatible representation used by the checkpoint store."""
    return {
        "messages": messages_to_dict(list(state.messages)),
        "expenses": list(state.expenses),
        "spending_limits": list(state.spending_limits),
        "spending_categories": list(state.spending_categories),
        "alerts": list(state.alerts),
    }


def state_from_dict(data: Mapping[str, Any]) -> AgentState:
    return AgentState(
        messages=tuple(messages_from_dict(data.get("messages", []))),
        expenses=tuple(data.get("expenses", [])),
        spending_limits=tuple(data.get("spending_limits", [])),
        spending_categories=tuple(data.get("spending_categories", [])),
        alerts=tuple(data.get("alerts", [])),
    )


def message_text(message: BaseMessage) -> str:
    """Plain text of a message, joining text blocks for list-style content."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)
