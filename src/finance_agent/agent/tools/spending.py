"""
agent.tools.spending - Helpers shared by the finance tools.

Weekly aggregation by category and the over-limit check that feeds the
``alerts`` log in AgentState.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from finance_agent.agent.tools.base import format_amount
from finance_agent.domain.entities import Expense
from finance_agent.domain.ports import (
    ExpenseRepository,
    SpendingLimitRepository,
    SpendingRepository,
)

logger = logging.getLogger(__name__)

PAST_WEEK = timedelta(days=7)


def spending_by_category(expenses: Iterable[Expense]) -> dict[str, float]:
    """Sum expense amounts per category, keeping first-seen category order."""
    totals: dict[str, float] = {}
    for expense in expenses:
        category = expense.category or "uncategorized"
        totals[category] = totals.get(category, 0.0) + expense.amount
    return totals


class SpendingLimitMonitor:
    """Compares the past week's spending with the latest spending limit."""

    def __init__(
        self,
        spending_repo: SpendingRepository,
        expense_repo: ExpenseRepository,
        limit_repo: SpendingLimitRepository,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._spending_repo = spending_repo
        self._expense_repo = expense_repo
        self._limit_repo = limit_repo
        self._clock = clock

    async def check(self) -> Optional[str]:
        """Return an alert message if the limit is exceeded, else None."""
        latest = await self._limit_repo.get_latest()
        if latest is None:
            return None

        since = self._clock() - PAST_WEEK
        total = (
            await self._spending_repo.total_since(since)
            + await self._expense_repo.total_since(since)
        )
        if total <= latest.limit:
            return None

        logger.warning(
            "Spending limit exceeded: %.2f spent in the past week, limit %.2f",
            total, latest.limit,
        )
        return (
            f"Alert: you have spent ${format_amount(total)} in the past week, "
            f"which is over your spending limit of ${format_amount(latest.limit)}."
        )
