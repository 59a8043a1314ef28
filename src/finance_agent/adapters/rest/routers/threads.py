"""Conversation thread endpoints: talk to the agent, inspect checkpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from langchain_core.messages import AIMessage, BaseMessage, ToolMessage

from finance_agent.adapters.rest.dependencies import get_factory
from finance_agent.adapters.rest.schemas import (
    AnswerOut,
    MessageBody,
    MessageOut,
    ThreadOut,
    ThreadStateOut,
)
from finance_agent.agent.state import message_text
from finance_agent.domain.exceptions import (
    DomainError,
    ModelInvocationError,
    StepLimitExceededError,
    ToolExecutionError,
    ToolError,
)
from finance_agent.factory import ServiceFactory

router = APIRouter(tags=["threads"])

_ROLES = {"human": "user", "ai": "assistant", "tool": "tool"}


@router.post("/threads/{thread_id}/messages", response_model=AnswerOut)
async def post_message(
    thread_id: str,
    body: MessageBody,
    factory: ServiceFactory = Depends(get_factory),
):
    try:
        answer = await factory.call_agent(body.query, thread_id)
    except (ModelInvocationError, ToolExecutionError) as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    except (StepLimitExceededError, ToolError) as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except DomainError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return AnswerOut(thread_id=thread_id, answer=answer)


@router.get("/threads/{thread_id}/messages", response_model=ThreadStateOut)
async def get_messages(
    thread_id: str,
    factory: ServiceFactory = Depends(get_factory),
):
    state = await factory.create_checkpoint_store().load(thread_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Unknown thread.")
    return ThreadStateOut(
        thread_id=thread_id,
        messages=[_message_out(m) for m in state.messages],
        expenses=list(state.expenses),
        spending_limits=list(state.spending_limits),
        spending_categories=list(state.spending_categories),
        alerts=list(state.alerts),
    )


@router.get("/threads", response_model=list[ThreadOut])
async def list_threads(factory: ServiceFactory = Depends(get_factory)):
    checkpoints = await factory.create_checkpoint_store().list_threads()
    return [
        ThreadOut(thread_id=cp.thread_id, step=cp.step, updated_at=cp.updated_at)
        for cp in checkpoints
    ]


@router.delete("/threads/{thread_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_thread(
    thread_id: str,
    factory: ServiceFactory = Depends(get_factory),
):
    if not await factory.create_checkpoint_store().delete(thread_id):
        raise HTTPException(status_code=404, detail="Unknown thread.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _message_out(message: BaseMessage) -> MessageOut:
    out = MessageOut(
        role=_ROLES.get(message.type, message.type),
        content=message_text(message),
    )
    if isinstance(message, AIMessage):
        out.tool_calls = [dict(call) for call in message.tool_calls]
    elif isinstance(message, ToolMessage):
        out.name = message.name
        out.tool_call_id = message.tool_call_id
    return out
