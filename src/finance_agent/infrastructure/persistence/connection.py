"""
infrastructure.persistence.connection - Async SQLite connection manager.

Each ``acquire()`` block is one connection and one transaction. SQLite
failures leave the block as RepositoryError, so repositories and tools
never see driver exceptions.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import aiosqlite

from finance_agent.domain.exceptions import RepositoryError

logger = logging.getLogger(__name__)


class AsyncSQLiteConnection:
    """Opens a transaction per block against one database file.

    ``timeout`` is how long a writer waits for another writer's lock
    before SQLite gives up with "database is locked".
    """

    def __init__(self, db_path: str, timeout: float = 5.0):
        self._db_path = db_path
        self._timeout = timeout

    @property
    def db_path(self) -> str:
        return self._db_path

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection; commit when the block ends, roll back if it raises.

        Raises:
            RepositoryError: If opening, querying or committing fails.
        """
        try:
            async with aiosqlite.connect(self._db_path, timeout=self._timeout) as conn:
                conn.row_factory = aiosqlite.Row
                try:
                    yield conn
                    await conn.commit()
                except Exception:
                    await conn.rollback()
                    raise
        except aiosqlite.Error as exc:
            logger.error("SQLite error on %s, transaction rolled back: %s", self._db_path, exc)
            raise RepositoryError(f"Database operation failed: {exc}") from exc
