"""
agent.tools.check_past_week_spending - Summarize the last 7 days by category.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from pydantic import BaseModel, ConfigDict

from finance_agent.agent.tools.base import BaseTool, ToolResult, format_amount
from finance_agent.agent.tools.spending import PAST_WEEK, spending_by_category
from finance_agent.domain.ports import ExpenseRepository


class CheckPastWeekSpendingInput(BaseModel):
    """The tool takes no arguments."""

    model_config = ConfigDict(strict=True)


class CheckPastWeekSpendingTool(BaseTool):
    name = "check_past_week_spending"
    description = "Checks how much the user has spent in the past week"

    def __init__(
        self,
        expense_repo: ExpenseRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._repo = expense_repo
        self._clock = clock

    def get_schema(self) -> type[BaseModel]:
        return CheckPastWeekSpendingInput

    async def execute(self, **kwargs) -> ToolResult:
        expenses = await self._repo.get_since(self._clock() - PAST_WEEK)
        totals = spending_by_category(expenses)
        if not totals:
            return ToolResult(output="You have no logged expenses in the past week.")

        summary = "\n".join(
            f"You spent ${format_amount(amount)} on {category}."
            for category, amount in totals.items()
        )
        return ToolResult(output=f"Here's your spending summary for the past week:\n{summary}")
