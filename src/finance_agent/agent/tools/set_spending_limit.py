"""
agent.tools.set_spending_limit - Set a new spending limit.

Limits are append-only: the newest row is the one in force.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from finance_agent.agent.tools.base import BaseTool, ToolResult, format_amount
from finance_agent.domain.entities import SpendingLimit
from finance_agent.domain.ports import SpendingLimitRepository


class SetSpendingLimitInput(BaseModel):
    """Input schema for the set_spending_limit tool."""

    model_config = ConfigDict(strict=True)

    limit: float = Field(..., gt=0, description="The spending limit")


class SetSpendingLimitTool(BaseTool):
    name = "set_spending_limit"
    description = "Sets a spending limit"

    def __init__(
        self,
        limit_repo: SpendingLimitRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._repo = limit_repo
        self._clock = clock

    def get_schema(self) -> type[BaseModel]:
        return SetSpendingLimitInput

    async def execute(self, limit: float, **kwargs) -> ToolResult:
        date = self._clock().isoformat()
        await self._repo.save(SpendingLimit(limit=limit, date=date))
        return ToolResult(
            output=f"Successfully set a spending limit of ${format_amount(limit)}.",
            updates={"spending_limits": [{"limit": limit, "date": date}]},
        )
