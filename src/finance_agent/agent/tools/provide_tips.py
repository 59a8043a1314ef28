"""
agent.tools.provide_tips - Personalized tips from the past week's spending.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from langchain_core.messages import HumanMessage
from pydantic import BaseModel, ConfigDict

from finance_agent.agent.state import message_text
from finance_agent.agent.tools.base import BaseTool, ToolResult, format_amount
from finance_agent.agent.tools.spending import PAST_WEEK, spending_by_category
from finance_agent.domain.ports import ChatModelPort, ExpenseRepository


class ProvideTipsInput(BaseModel):
    """The tool takes no arguments."""

    model_config = ConfigDict(strict=True)


class ProvideTipsTool(BaseTool):
    name = "provide_tips"
    description = "Provides advice on the user's spending habits"

    def __init__(
        self,
        expense_repo: ExpenseRepository,
        tips_model: ChatModelPort,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._repo = expense_repo
        self._model = tips_model
        self._clock = clock

    def get_schema(self) -> type[BaseModel]:
        return ProvideTipsInput

    async def execute(self, **kwargs) -> ToolResult:
        expenses = await self._repo.get_since(self._clock() - PAST_WEEK)
        totals = spending_by_category(expenses)
        if not totals:
            return ToolResult(
                output="There is no spending data from the past week to base tips on yet."
            )

        lines = "\n".join(
            f"- Spent ${format_amount(amount)} on {category}"
            for category, amount in totals.items()
        )
        prompt = (
            "Based on the following spending data, provide personalized financial tips:\n"
            f"{lines}\n"
        )
        response = await self._model.ainvoke([HumanMessage(content=prompt)])
        return ToolResult(output=message_text(response))
