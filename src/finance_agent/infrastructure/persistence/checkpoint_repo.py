"""
infrastructure.persistence.checkpoint_repo - SQLite checkpoint store.

One row per thread holding the JSON-serialized AgentState. Each save is
a single upsert in its own transaction: readers see either the previous
snapshot or the new one, never a partial write.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Optional

from finance_agent.agent.state import AgentState, state_from_dict, state_to_dict
from finance_agent.domain.entities import Checkpoint
from finance_agent.domain.exceptions import CheckpointError, RepositoryError
from finance_agent.infrastructure.persistence.connection import AsyncSQLiteConnection

logger = logging.getLogger(__name__)


class SQLiteCheckpointStore:
    """Async SQLite implementation of CheckpointStore."""

    def __init__(self, connection: AsyncSQLiteConnection):
        self._conn = connection

    async def load(self, thread_id: str) -> Optional[AgentState]:
        """Return the thread's last saved state, or None for a new thread."""
        checkpoint = await self.get_checkpoint(thread_id)
        if checkpoint is None:
            return None
        try:
            return state_from_dict(checkpoint.state)
        except (KeyError, TypeError, ValueError) as exc:
            raise CheckpointError(f"Checkpoint for thread '{thread_id}' is corrupt: {exc}") from exc

    async def save(self, thread_id: str, state: AgentState) -> None:
        """Overwrite the thread's checkpoint with *state*."""
        try:
            payload = json.dumps(state_to_dict(state))
        except (TypeError, ValueError) as exc:
            raise CheckpointError(
                f"State for thread '{thread_id}' is not serializable: {exc}"
            ) from exc

        now = datetime.now().isoformat()
        try:
            async with self._conn.acquire() as conn:
                await conn.execute(
                    """INSERT INTO checkpoints
                       (thread_id, state, step, created_at, updated_at)
                       VALUES (?, ?, 1, ?, ?)
                       ON CONFLICT(thread_id) DO UPDATE SET
                           state = excluded.state,
                           step = checkpoints.step + 1,
                           updated_at = excluded.updated_at""",
                    (thread_id, payload, now, now),
                )
        except RepositoryError as exc:
            raise CheckpointError(
                f"Failed to save checkpoint for thread '{thread_id}': {exc}"
            ) from exc
        logger.debug("Saved checkpoint for thread %s (%d messages)", thread_id, len(state.messages))

    async def get_checkpoint(self, thread_id: str) -> Optional[Checkpoint]:
        try:
            async with self._conn.acquire() as conn:
                rows = await conn.execute_fetchall(
                    "SELECT * FROM checkpoints WHERE thread_id = ?",
                    (thread_id,),
                )
        except RepositoryError as exc:
            raise CheckpointError(
                f"Failed to load checkpoint for thread '{thread_id}': {exc}"
            ) from exc
        return self._row_to_entity(rows[0]) if rows else None

    async def list_threads(self) -> list[Checkpoint]:
        """All checkpoints, most recently updated first (state left empty)."""
        try:
            async with self._conn.acquire() as conn:
                rows = await conn.execute_fetchall(
                    """SELECT thread_id, '{}' AS state, step, created_at, updated_at
                       FROM checkpoints ORDER BY updated_at DESC"""
                )
        except RepositoryError as exc:
            raise CheckpointError(f"Failed to list threads: {exc}") from exc
        return [self._row_to_entity(r) for r in rows]

    async def delete(self, thread_id: str) -> bool:
        """Remove a thread's checkpoint. Returns True if one existed."""
        try:
            async with self._conn.acquire() as conn:
                cursor = await conn.execute(
                    "DELETE FROM checkpoints WHERE thread_id = ?",
                    (thread_id,),
                )
                deleted = cursor.rowcount > 0
        except RepositoryError as exc:
            raise CheckpointError(
                f"Failed to delete checkpoint for thread '{thread_id}': {exc}"
            ) from exc
        if deleted:
            logger.info("Deleted checkpoint for thread %s", thread_id)
        return deleted

    @staticmethod
    def _row_to_entity(row) -> Checkpoint:
        try:
            state = json.loads(row["state"])
        except json.JSONDecodeError as exc:
            raise CheckpointError(
                f"Checkpoint for thread '{row['thread_id']}' is corrupt: {exc}"
            ) from exc
        return Checkpoint(
            thread_id=row["thread_id"],
            state=state,
            step=row["step"] or 0,
            updated_at=row["updated_at"] or "",
        )
