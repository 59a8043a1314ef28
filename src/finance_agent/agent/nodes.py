"""
agent.nodes - The two working nodes of the agent graph.

ModelNode asks the LLM what to do next; ToolExecutionNode carries out
whatever tool calls it asked for. Each returns a partial state update
and never touches persistence.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable

from langchain_core.messages import AIMessage, BaseMessage, ToolMessage

from finance_agent.agent.prompt import (
    DEFAULT_SYSTEM_MESSAGE,
    build_prompt_template,
    format_tool_names,
)
from finance_agent.agent.state import AgentState
from finance_agent.agent.tools.registry import ToolRegistry
from finance_agent.domain.exceptions import (
    ModelInvocationError,
    ToolValidationError,
    UnknownToolError,
)
from finance_agent.domain.ports import ChatModelPort

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ModelNode:
    """Formats the prompt, invokes the model once, returns one assistant message.

    The model is expected to already have the registry's tools bound
    (see ServiceFactory); this node only needs ``ainvoke``.
    """

    def __init__(
        self,
        model: ChatModelPort,
        registry: ToolRegistry,
        system_message: str = DEFAULT_SYSTEM_MESSAGE,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._model = model
        self._registry = registry
        self._system_message = system_message
        self._clock = clock
        self._prompt = build_prompt_template()

    async def format_prompt(self, state: AgentState) -> list[BaseMessage]:
        return await self._prompt.aformat_messages(
            tool_names=format_tool_names(self._registry),
            system_message=self._system_message,
            time=self._clock().isoformat(),
            messages=list(state.messages),
        )

    async def __call__(self, state: AgentState) -> dict[str, Any]:
        prompt_messages = await self.format_prompt(state)
        try:
            response = await self._model.ainvoke(prompt_messages)
        except Exception as exc:
            logger.exception("Model invocation failed")
            raise ModelInvocationError(f"Model invocation failed: {exc}") from exc

        message = _as_ai_message(response)
        logger.info(
            "Model responded with %d tool call(s): %s",
            len(message.tool_calls),
            [call["name"] for call in message.tool_calls],
        )
        return {"messages": [message]}


class ToolExecutionNode:
    """Runs every tool call of the latest assistant message, in request order.

    Unknown tools and invalid arguments are reported back to the model as
    error tool messages when ``surface_errors`` is True (the default) and
    re-raised otherwise. Handler failures always propagate.
    """

    def __init__(self, registry: ToolRegistry, surface_errors: bool = True):
        self._registry = registry
        self._surface_errors = surface_errors

    async def __call__(self, state: AgentState) -> dict[str, Any]:
        last = state.last_message
        if not isinstance(last, AIMessage) or not last.tool_calls:
            raise ValueError("ToolExecutionNode requires a latest assistant message with tool calls")

        messages: list[ToolMessage] = []
        updates: dict[str, list] = {}

        for call in last.tool_calls:
            name = call["name"]
            call_id = call.get("id") or ""
            try:
                result = await self._registry.invoke(name, call.get("args"))
            except (UnknownToolError, ToolValidationError) as exc:
                if not self._surface_errors:
                    raise
                logger.warning("Rejected tool call '%s' (%s): %s", name, call_id, exc)
                messages.append(ToolMessage(
                    content=f"Error: {exc}\nPlease fix your mistakes.",
                    tool_call_id=call_id,
                    name=name,
                    status="error",
                ))
                continue

            messages.append(ToolMessage(
                content=result.output,
                tool_call_id=call_id,
                name=name,
            ))
            for field_name, values in result.updates.items():
                updates.setdefault(field_name, []).extend(values)

        return {"messages": messages, **updates}


def _as_ai_message(response: Any) -> AIMessage:
    if isinstance(response, AIMessage):
        return response
    if isinstance(response, str):
        return AIMessage(content=response)
    if isinstance(response, BaseMessage):
        return AIMessage(content=response.content)
    raise ModelInvocationError(
        f"Model returned {type(response).__name__}, expected an assistant message"
    )


def failed_tool_messages(state: AgentState, error: Exception) -> list[ToolMessage]:
    """Error results for every tool call of the latest message.

    Used when the tools step fails as a whole: the provider rejects a
    history in which a tool call has no result.
    """
    last = state.last_message
    if not isinstance(last, AIMessage):
        return []
    return [
        ToolMessage(
            content=f"Error: {error}",
            tool_call_id=call.get("id") or "",
            name=call["name"],
            status="error",
        )
        for call in last.tool_calls
    ]
