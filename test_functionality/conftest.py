import asyncio
from datetime import datetime

import pytest

from finance_agent.infrastructure.config import Settings
from finance_agent.infrastructure.persistence.connection import AsyncSQLiteConnection
from finance_agent.infrastructure.persistence.migrations import run_migrations

FIXED_NOW = datetime(2024, 5, 10, 12, 0, 0)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "finance.db")


@pytest.fixture
def connection(db_path):
    conn = AsyncSQLiteConnection(db_path)
    asyncio.run(run_migrations(conn))
    return conn


@pytest.fixture
def settings(tmp_path, db_path):
    return Settings(
        project_root=tmp_path,
        db_path=db_path,
        agent_max_steps=15,
        model_max_retries=0,
    )


@pytest.fixture
def clock():
    return lambda: FIXED_NOW
