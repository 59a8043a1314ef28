"""
infrastructure.persistence.spending_limit_repo - SQLite spending limit repository.

Limits are never updated in place; the newest row is the limit in force.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from finance_agent.domain.entities import SpendingLimit
from finance_agent.infrastructure.persistence.connection import AsyncSQLiteConnection


class SQLiteSpendingLimitRepository:
    """Async SQLite implementation of SpendingLimitRepository."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def save(self, limit: SpendingLimit) -> int:
        date = limit.date or datetime.now().isoformat()
        async with self._conn.acquire() as conn:
            cursor = await conn.execute(
                "INSERT INTO spending_limits (spending_limit, date) VALUES (?, ?)",
                (limit.limit, date),
            )
            return cursor.lastrowid

    async def get_latest(self) -> Optional[SpendingLimit]:
        async with self._conn.acquire() as conn:
            rows = await conn.execute_fetchall(
                "SELECT * FROM spending_limits ORDER BY id DESC LIMIT 1"
            )
            if not rows:
                return None
            row = rows[0]
            return SpendingLimit(id=row["id"], limit=row["spending_limit"], date=row["date"])
