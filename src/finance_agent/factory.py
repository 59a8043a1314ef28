"""
factory - Composition root for the finance agent.

ALL dependency wiring happens here. No other module constructs its own
dependencies: the storage handle, repositories, tools and models are
passed into the engine explicitly. Adapters (CLI, REST) call this factory
to get a fully configured agent.

Usage:
    from finance_agent.factory import ServiceFactory
    from finance_agent.infrastructure.config import Settings

    factory = ServiceFactory(Settings.from_env())
    await factory.initialize()  # one-time startup

    answer = await factory.call_agent("I spent $100 on food", thread_id="alice")
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import Any, Optional

from finance_agent.agent.executor import AgentExecutor
from finance_agent.agent.nodes import ModelNode, ToolExecutionNode
from finance_agent.agent.tools.check_past_week_spending import CheckPastWeekSpendingTool
from finance_agent.agent.tools.log_expense import LogExpenseTool
from finance_agent.agent.tools.provide_tips import ProvideTipsTool
from finance_agent.agent.tools.registry import ToolRegistry
from finance_agent.agent.tools.save_spending import SaveSpendingTool
from finance_agent.agent.tools.set_spending_limit import SetSpendingLimitTool
from finance_agent.agent.tools.spending import SpendingLimitMonitor
from finance_agent.infrastructure.config import Settings
from finance_agent.infrastructure.llm.llm_builder import build_llm_from_settings
from finance_agent.infrastructure.persistence.checkpoint_repo import SQLiteCheckpointStore
from finance_agent.infrastructure.persistence.connection import AsyncSQLiteConnection
from finance_agent.infrastructure.persistence.expense_repo import SQLiteExpenseRepository
from finance_agent.infrastructure.persistence.migrations import run_migrations
from finance_agent.infrastructure.persistence.spending_limit_repo import SQLiteSpendingLimitRepository
from finance_agent.infrastructure.persistence.spending_repo import SQLiteSpendingRepository

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root. Wires all dependencies together.

    Call initialize() once at startup, then create agents as needed.
    Pass ``llm`` to use a pre-built chat model instead of the one
    selected by settings (tests, notebooks).
    """

    def __init__(self, config: Settings, llm: Optional[Any] = None):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.db_path)
        self._llm = llm
        self._agent: Optional[AgentExecutor] = None
        self._thread_locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self._initialized = False

    @property
    def config(self) -> Settings:
        return self._config

    @property
    def connection(self) -> AsyncSQLiteConnection:
        return self._connection

    async def initialize(self) -> None:
        """One-time startup: run migrations.

        Must be called before creating agents.
        """
        logger.info("Initializing ServiceFactory (db=%s)...", self._config.db_path)
        await run_migrations(self._connection)
        self._initialized = True
        logger.info("ServiceFactory ready")

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def create_checkpoint_store(self) -> SQLiteCheckpointStore:
        return SQLiteCheckpointStore(self._connection)

    def create_spending_repository(self) -> SQLiteSpendingRepository:
        return SQLiteSpendingRepository(self._connection)

    def create_expense_repository(self) -> SQLiteExpenseRepository:
        return SQLiteExpenseRepository(self._connection)

    def create_spending_limit_repository(self) -> SQLiteSpendingLimitRepository:
        return SQLiteSpendingLimitRepository(self._connection)

    # ------------------------------------------------------------------
    # Tools
    # ------------------------------------------------------------------

    def create_tool_registry(self, helper_model: Any) -> ToolRegistry:
        """Register the five finance tools.

        ``helper_model`` is the plain (tool-less) chat model used by
        log_expense and provide_tips for their own model calls.
        """
        spending_repo = self.create_spending_repository()
        expense_repo = self.create_expense_repository()
        limit_repo = self.create_spending_limit_repository()
        monitor = SpendingLimitMonitor(spending_repo, expense_repo, limit_repo)

        registry = ToolRegistry()
        registry.register(SaveSpendingTool(spending_repo, monitor))
        registry.register(CheckPastWeekSpendingTool(expense_repo))
        registry.register(LogExpenseTool(expense_repo, helper_model, monitor))
        registry.register(ProvideTipsTool(expense_repo, helper_model))
        registry.register(SetSpendingLimitTool(limit_repo))
        return registry

    # ------------------------------------------------------------------
    # Agent creation
    # ------------------------------------------------------------------

    def create_agent(self) -> AgentExecutor:
        """Create a fully configured AgentExecutor backed by SQLite checkpoints."""
        self._ensure_initialized()

        llm = self._get_llm()
        helper_model = self._with_retry(llm)
        registry = self.create_tool_registry(helper_model)

        # The model sees exactly the tools the registry can dispatch.
        agent_model = self._with_retry(llm.bind_tools(registry.to_langchain_tools()))

        return AgentExecutor(
            model_node=ModelNode(agent_model, registry),
            tool_node=ToolExecutionNode(
                registry,
                surface_errors=self._config.surface_tool_errors,
            ),
            checkpoints=self.create_checkpoint_store(),
            max_steps=self._config.agent_max_steps,
        )

    async def call_agent(self, query: str, thread_id: str) -> str:
        """Run one user query on a thread and return the final answer.

        Calls on the same thread are serialized; different threads run
        concurrently.
        """
        if self._agent is None:
            self._agent = self.create_agent()
        async with self._thread_locks[thread_id]:
            return await self._agent.run(thread_id, query)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_llm(self) -> Any:
        if self._llm is None:
            self._llm = build_llm_from_settings(self._config)
        return self._llm

    def _with_retry(self, runnable: Any) -> Any:
        """Bounded retries at the model boundary; the engine never retries."""
        retries = self._config.model_max_retries
        if retries <= 0:
            return runnable
        return runnable.with_retry(stop_after_attempt=retries + 1)

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
