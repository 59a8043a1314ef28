"""
infrastructure.persistence.expense_repo - SQLite expense repository.

Stores categorized expenses (see the log_expense tool).
"""

from __future__ import annotations

from datetime import datetime

from finance_agent.domain.entities import Expense
from finance_agent.infrastructure.persistence.connection import AsyncSQLiteConnection


class SQLiteExpenseRepository:
    """Async SQLite implementation of ExpenseRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, expense: Expense) -> int:
        date = expense.date or datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                """INSERT INTO expenses (amount, category, description, date)
                   VALUES (?, ?, ?, ?)""",
                (expense.amount, expense.category, expense.description, date),
            )
            return cursor.lastrowid

    async def get_since(self, since: datetime) -> list[Expense]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM expenses WHERE date >= ? ORDER BY date ASC",
                (since.isoformat(),),
            )
            return [self._row_to_entity(r) for r in rows]

    async def total_since(self, since: datetime) -> float:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT COALESCE(SUM(amount), 0) FROM expenses WHERE date >= ?",
                (since.isoformat(),),
            )
            return float(rows[0][0])

    @staticmethod
    def _row_to_entity(row) -> Expense:
        return Expense(
            id=row["id"],
            amount=row["amount"],
            category=row["category"] or "",
            description=row["description"] or "",
            date=row["date"] or "",
        )
