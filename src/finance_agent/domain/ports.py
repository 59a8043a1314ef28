"""
domain.ports - Abstract interfaces (Protocols) for all system boundaries.

These define WHAT the agent needs without specifying HOW. Infrastructure
modules provide concrete implementations; the engine and tools depend only
on these protocols.

Using typing.Protocol (structural typing) instead of ABC: any class that
implements the methods satisfies the port without explicit inheritance.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional, Protocol, Sequence, runtime_checkable

from langchain_core.messages import BaseMessage

from finance_agent.domain.entities import Expense, Spending, SpendingLimit

if TYPE_CHECKING:
    from finance_agent.agent.state import AgentState


# ---------------------------------------------------------------------------
# AI Component Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class ChatModelPort(Protocol):
    """Anything with LangChain's async invoke signature (models, runnables)."""

    async def ainvoke(self, input: Sequence[BaseMessage], **kwargs: Any) -> Any: ...


# ---------------------------------------------------------------------------
# Repository Ports
# ---------------------------------------------------------------------------

@runtime_checkable
class CheckpointStore(Protocol):
    """Durable, overwrite-in-place storage of agent state per thread."""

    async def load(self, thread_id: str) -> Optional[AgentState]: ...

    async def save(self, thread_id: str, state: AgentState) -> None: ...


@runtime_checkable
class SpendingRepository(Protocol):
    async def save(self, spending: Spending) -> int: ...

    async def total_since(self, since: datetime) -> float: ...


@runtime_checkable
class ExpenseRepository(Protocol):
    async def save(self, expense: Expense) -> int: ...

    async def get_since(self, since: datetime) -> list[Expense]: ...

    async def total_since(self, since: datetime) -> float: ...


@runtime_checkable
class SpendingLimitRepository(Protocol):
    async def save(self, limit: SpendingLimit) -> int: ...

    async def get_latest(self) -> Optional[SpendingLimit]: ...
