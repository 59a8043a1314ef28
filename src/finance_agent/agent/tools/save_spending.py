"""
agent.tools.save_spending - Record a raw spending amount.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from finance_agent.agent.tools.base import BaseTool, ToolResult, format_amount
from finance_agent.agent.tools.spending import SpendingLimitMonitor
from finance_agent.domain.entities import Spending
from finance_agent.domain.ports import SpendingRepository


class SaveSpendingInput(BaseModel):
    """Input schema for the save_spending tool."""

    model_config = ConfigDict(strict=True)

    amount: float = Field(..., gt=0, description="The amount spent")


class SaveSpendingTool(BaseTool):
    """Persist a spending amount and report whether it breaks the limit."""

    name = "save_spending"
    description = "Saves the user's spending to the database"

    def __init__(
        self,
        spending_repo: SpendingRepository,
        monitor: SpendingLimitMonitor,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._repo = spending_repo
        self._monitor = monitor
        self._clock = clock

    def get_schema(self) -> type[BaseModel]:
        return SaveSpendingInput

    async def execute(self, amount: float, **kwargs) -> ToolResult:
        date = self._clock().isoformat()
        await self._repo.save(Spending(amount=amount, date=date))

        output = f"Successfully saved your spending of ${format_amount(amount)}."
        updates: dict[str, list] = {"expenses": [{"amount": amount, "date": date}]}

        alert = await self._monitor.check()
        if alert:
            output = f"{output}\n{alert}"
            updates["alerts"] = [alert]
        return ToolResult(output=output, updates=updates)
