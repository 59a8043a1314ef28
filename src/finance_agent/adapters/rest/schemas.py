"""Pydantic models for REST API request/response validation."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


# --- Agent ---

class MessageBody(BaseModel):
    query: str = Field(..., min_length=1)


class AnswerOut(BaseModel):
    thread_id: str
    answer: str


# --- Threads ---

class ThreadOut(BaseModel):
    thread_id: str
    step: int
    updated_at: str


class MessageOut(BaseModel):
    role: str
    content: str
    name: Optional[str] = None
    tool_calls: list[dict[str, Any]] = []
    tool_call_id: Optional[str] = None


class ThreadStateOut(BaseModel):
    thread_id: str
    messages: list[MessageOut]
    expenses: list[dict[str, Any]]
    spending_limits: list[dict[str, Any]]
    spending_categories: list[str]
    alerts: list[str]
