import asyncio
from dataclasses import replace

import pytest
from langchain_core.messages import AIMessage, ToolMessage

from fakes import ScriptedChatModel, tool_call
from finance_agent.factory import ServiceFactory

TOOL_NAMES = {
    "save_spending",
    "check_past_week_spending",
    "log_expense",
    "provide_tips",
    "set_spending_limit",
}


def _factory(settings, responses):
    llm = ScriptedChatModel(responses)
    factory = ServiceFactory(settings, llm=llm)
    asyncio.run(factory.initialize())
    return factory, llm


def test_create_agent_requires_initialize(settings):
    factory = ServiceFactory(settings, llm=ScriptedChatModel([]))
    with pytest.raises(RuntimeError, match="not initialized"):
        factory.create_agent()


def test_registry_has_the_five_tools(settings):
    factory, llm = _factory(settings, [])

    registry = factory.create_tool_registry(llm)

    assert set(registry.names()) == TOOL_NAMES


def test_model_is_bound_to_registry_tools(settings):
    factory, llm = _factory(settings, [])

    agent = factory.create_agent()

    assert {t.name for t in llm.bound_tools} == TOOL_NAMES
    assert agent.max_steps == settings.agent_max_steps
    assert llm.retry_kwargs is None


def test_retries_wrap_the_model(settings):
    factory, llm = _factory(replace(settings, model_max_retries=2), [])

    factory.create_agent()

    assert llm.retry_kwargs == {"stop_after_attempt": 3}


def test_spending_is_saved_end_to_end(settings):
    factory, llm = _factory(settings, [
        AIMessage(content="", tool_calls=[tool_call("save_spending", {"amount": 100}, "c1")]),
        AIMessage(content="FINAL ANSWER: I've saved your spending of $100."),
    ])

    answer = asyncio.run(factory.call_agent("I spent $100 on food", "alice"))

    assert answer.startswith("FINAL ANSWER")
    state = asyncio.run(factory.create_checkpoint_store().load("alice"))
    tool_message = state.messages[2]
    assert isinstance(tool_message, ToolMessage)
    assert tool_message.content == "Successfully saved your spending of $100."
    assert [e["amount"] for e in state.expenses] == [100]
    assert len(llm.calls) == 2


def test_conversation_continues_on_same_thread(settings):
    factory, llm = _factory(settings, [
        AIMessage(content="", tool_calls=[tool_call("set_spending_limit", {"limit": 500}, "c1")]),
        AIMessage(content="FINAL ANSWER: Your limit is set to $500."),
        AIMessage(content="", tool_calls=[tool_call("check_past_week_spending", {}, "c2")]),
        AIMessage(content="FINAL ANSWER: You have no expenses this week."),
    ])

    asyncio.run(factory.call_agent("Set my spending limit to $500", "bob"))
    first = asyncio.run(factory.create_checkpoint_store().load("bob"))
    asyncio.run(factory.call_agent("How much did I spend this week?", "bob"))
    second = asyncio.run(factory.create_checkpoint_store().load("bob"))

    assert [m.content for m in second.messages[:len(first.messages)]] == [
        m.content for m in first.messages
    ]
    assert second.spending_limits[0]["limit"] == 500
    assert second.current_spending_limit["limit"] == 500
    assert "Set my spending limit to $500" in [m.content for m in llm.calls[2]]


def test_invalid_tool_arguments_are_reported_back(settings):
    factory, llm = _factory(settings, [
        AIMessage(content="", tool_calls=[tool_call("save_spending", {"amount": -5}, "c1")]),
        AIMessage(content="FINAL ANSWER: Amounts must be positive."),
    ])

    asyncio.run(factory.call_agent("I spent -5", "carol"))

    state = asyncio.run(factory.create_checkpoint_store().load("carol"))
    assert state.messages[2].status == "error"
    assert state.expenses == ()


def test_concurrent_calls_on_one_thread_keep_both_turns(settings):
    factory, _ = _factory(settings, [AIMessage(content="FINAL ANSWER: noted")])

    async def _both():
        await asyncio.gather(
            factory.call_agent("first", "shared"),
            factory.call_agent("second", "shared"),
        )

    asyncio.run(_both())

    state = asyncio.run(factory.create_checkpoint_store().load("shared"))
    humans = [m.content for m in state.messages if m.type == "human"]
    assert sorted(humans) == ["first", "second"]
    assert len(state.messages) == 4
