"""
agent.executor - Agent execution engine.

Drives the cyclic graph

    START -> MODEL -> ROUTE -> TOOLS -> MODEL ... -> END

as an explicit state machine with an iterative loop. The step bound is a
plain counter of MODEL visits, not recursion depth.

No component construction, no global state, no business logic: the
nodes and the checkpoint store are injected by factory.py.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from langchain_core.messages import HumanMessage

from finance_agent.agent.nodes import failed_tool_messages
from finance_agent.agent.router import route
from finance_agent.agent.state import AgentState, merge_state, message_text
from finance_agent.domain.exceptions import (
    DomainError,
    EmptyAnswerError,
    StepLimitExceededError,
)
from finance_agent.domain.ports import CheckpointStore

logger = logging.getLogger(__name__)

Node = Callable[[AgentState], Awaitable[dict[str, Any]]]

DEFAULT_MAX_STEPS = 15


class Step(str, Enum):
    START = "start"
    MODEL = "model"
    ROUTE = "route"
    TOOLS = "tools"
    END = "end"


def next_step(step: Step, state: AgentState) -> Step:
    """Edge-transition function of the agent graph."""
    if step is Step.START:
        return Step.MODEL
    if step is Step.MODEL:
        return Step.ROUTE
    if step is Step.ROUTE:
        return Step.TOOLS if route(state) == "tools" else Step.END
    if step is Step.TOOLS:
        return Step.MODEL
    raise ValueError(f"No transition out of terminal step '{step.value}'")


class AgentExecutor:
    """Runs the model + tool loop for one thread per call.

    Constructed by factory.py with all dependencies injected.
    Stateless per call: everything a thread knows lives in its checkpoint.
    """

    def __init__(
        self,
        model_node: Node,
        tool_node: Node,
        checkpoints: CheckpointStore,
        max_steps: int = DEFAULT_MAX_STEPS,
    ):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._model_node = model_node
        self._tool_node = tool_node
        self._checkpoints = checkpoints
        self._max_steps = max_steps

    @property
    def max_steps(self) -> int:
        return self._max_steps

    async def get_state(self, thread_id: str) -> Optional[AgentState]:
        """Return the last checkpointed state of a thread, or None."""
        return await self._checkpoints.load(thread_id)

    async def run(self, thread_id: str, user_input: str) -> str:
        """Process a user message on a thread and return the final answer.

        Resumes the thread's checkpoint (if any), appends the user message
        and drives the graph to END. A checkpoint is written after seeding
        and after every completed step.

        Raises:
            StepLimitExceededError: if the model keeps requesting tools.
            EmptyAnswerError:       if the final message carries no text.
            DomainError:            for any other fatal condition.
        """
        logger.info("Agent processing (thread=%s): %s", thread_id, user_input[:80])
        try:
            resumed = await self._checkpoints.load(thread_id)
            state = merge_state(
                resumed or AgentState(),
                {"messages": [HumanMessage(content=user_input)]},
            )
            await self._checkpoints.save(thread_id, state)

            state = await self._drive(thread_id, state)
        except DomainError:
            logger.exception("Agent execution failed for thread %s", thread_id)
            raise

        answer = message_text(state.last_message).strip()
        if not answer:
            raise EmptyAnswerError(f"Thread {thread_id} ended without an answer")
        logger.info("Agent finished (thread=%s): %s", thread_id, answer[:80])
        return answer

    async def _drive(self, thread_id: str, state: AgentState) -> AgentState:
        step = Step.START
        model_steps = 0

        while step is not Step.END:
            step = next_step(step, state)

            if step is Step.MODEL:
                if model_steps >= self._max_steps:
                    raise StepLimitExceededError(self._max_steps)
                model_steps += 1
                delta = await self._model_node(state)
            elif step is Step.TOOLS:
                try:
                    delta = await self._tool_node(state)
                except DomainError as exc:
                    # Every pending call gets a result, even on failure.
                    state = merge_state(state, {"messages": failed_tool_messages(state, exc)})
                    await self._checkpoints.save(thread_id, state)
                    raise
            else:
                continue

            state = merge_state(state, delta)
            await self._checkpoints.save(thread_id, state)
            logger.debug(
                "Thread %s: %s step done (%d/%d model steps)",
                thread_id, step.value, model_steps, self._max_steps,
            )

        return state
