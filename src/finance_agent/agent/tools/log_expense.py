"""
agent.tools.log_expense - Log an expense with a model-assigned category.

Makes one auxiliary model call to pick the category, then persists the
expense. The category model is a plain chat model (no tools bound).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from langchain_core.messages import HumanMessage
from pydantic import BaseModel, ConfigDict, Field

from finance_agent.agent.state import message_text
from finance_agent.agent.tools.base import BaseTool, ToolResult, format_amount
from finance_agent.agent.tools.spending import SpendingLimitMonitor
from finance_agent.domain.entities import Expense
from finance_agent.domain.ports import ChatModelPort, ExpenseRepository

logger = logging.getLogger(__name__)

_CATEGORY_PROMPT = (
    "Classify the following expense into a single spending category such as "
    "food, transport, housing, utilities, health, entertainment, shopping or other. "
    "Reply with the category name only.\n"
    "Expense: ${amount}{details}"
)


class LogExpenseInput(BaseModel):
    """Input schema for the log_expense tool."""

    model_config = ConfigDict(strict=True)

    amount: float = Field(..., gt=0, description="The amount spent")
    description: Optional[str] = Field(
        default=None,
        description="What the money was spent on, e.g. 'groceries' or 'bus ticket'",
    )


class LogExpenseTool(BaseTool):
    name = "log_expense"
    description = "Logs the user's expense in a specific category"

    def __init__(
        self,
        expense_repo: ExpenseRepository,
        category_model: ChatModelPort,
        monitor: SpendingLimitMonitor,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._repo = expense_repo
        self._model = category_model
        self._monitor = monitor
        self._clock = clock

    def get_schema(self) -> type[BaseModel]:
        return LogExpenseInput

    async def execute(
        self,
        amount: float,
        description: Optional[str] = None,
        **kwargs,
    ) -> ToolResult:
        category = await self._classify(amount, description)
        date = self._clock().isoformat()
        await self._repo.save(Expense(
            amount=amount,
            category=category,
            description=description or "",
            date=date,
        ))

        output = (
            f"Successfully logged your expense of ${format_amount(amount)} "
            f"in category {category}."
        )
        updates: dict[str, list] = {
            "expenses": [{
                "amount": amount,
                "category": category,
                "description": description or "",
                "date": date,
            }],
            "spending_categories": [category],
        }

        alert = await self._monitor.check()
        if alert:
            output = f"{output}\n{alert}"
            updates["alerts"] = [alert]
        return ToolResult(output=output, updates=updates)

    async def _classify(self, amount: float, description: Optional[str]) -> str:
        prompt = _CATEGORY_PROMPT.format(
            amount=format_amount(amount),
            details=f" for {description}" if description else "",
        )
        response = await self._model.ainvoke([HumanMessage(content=prompt)])
        category = message_text(response).strip().strip(".").lower()
        logger.info("Expense of %s classified as '%s'", amount, category)
        return category or "uncategorized"
