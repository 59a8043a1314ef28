"""
infrastructure.persistence.spending_repo - SQLite spending repository.
"""

from __future__ import annotations

from datetime import datetime

from finance_agent.domain.entities import Spending
from finance_agent.infrastructure.persistence.connection import AsyncSQLiteConnection


class SQLiteSpendingRepository:
    """Async SQLite implementation of SpendingRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, spending: Spending) -> int:
        date = spending.date or datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                "INSERT INTO spendings (amount, date) VALUES (?, ?)",
                (spending.amount, date),
            )
            return cursor.lastrowid

    async def total_since(self, since: datetime) -> float:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT COALESCE(SUM(amount), 0) FROM spendings WHERE date >= ?",
                (since.isoformat(),),
            )
            return float(rows[0][0])
