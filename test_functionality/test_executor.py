import asyncio

import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from fakes import InMemoryCheckpointStore, RecordingTool, ScriptedChatModel, tool_call
from finance_agent.agent.executor import AgentExecutor, Step, next_step
from finance_agent.agent.nodes import ModelNode, ToolExecutionNode
from finance_agent.agent.state import AgentState
from finance_agent.agent.tools.registry import ToolRegistry
from finance_agent.domain.exceptions import (
    EmptyAnswerError,
    ModelInvocationError,
    StepLimitExceededError,
    ToolExecutionError,
    ToolValidationError,
)


def _save_call(call_id="c1", amount=100.0):
    return AIMessage(content="", tool_calls=[tool_call("save_spending", {"amount": amount}, call_id)])


def _build(responses, max_steps=15, store=None):
    registry = ToolRegistry()
    tool = RecordingTool("save_spending")
    registry.register(tool)
    model = ScriptedChatModel(responses)
    store = store or InMemoryCheckpointStore()
    executor = AgentExecutor(
        model_node=ModelNode(model, registry),
        tool_node=ToolExecutionNode(registry),
        checkpoints=store,
        max_steps=max_steps,
    )
    return executor, model, tool, store


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def test_transitions():
    asking = AgentState(messages=(_save_call(),))
    answered = AgentState(messages=(AIMessage(content="FINAL ANSWER: ok"),))

    assert next_step(Step.START, answered) is Step.MODEL
    assert next_step(Step.MODEL, answered) is Step.ROUTE
    assert next_step(Step.ROUTE, asking) is Step.TOOLS
    assert next_step(Step.ROUTE, answered) is Step.END
    assert next_step(Step.TOOLS, answered) is Step.MODEL


def test_end_is_terminal():
    with pytest.raises(ValueError):
        next_step(Step.END, AgentState())


def test_max_steps_must_be_positive():
    with pytest.raises(ValueError):
        _build([], max_steps=0)


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------

def test_single_tool_cycle():
    executor, model, tool, store = _build([
        _save_call("c1"),
        AIMessage(content="FINAL ANSWER: I've saved your spending of $100."),
    ])

    answer = asyncio.run(executor.run("alice", "I spent $100 on food"))

    assert answer == "FINAL ANSWER: I've saved your spending of $100."
    assert tool.calls == [{"amount": 100.0}]
    assert len(model.calls) == 2

    state = asyncio.run(executor.get_state("alice"))
    kinds = [type(m) for m in state.messages]
    assert kinds == [HumanMessage, AIMessage, ToolMessage, AIMessage]
    assert state.messages[2].tool_call_id == "c1"
    assert state.expenses == ({"amount": 100.0, "tool": "save_spending"},)


def test_checkpoint_after_seed_and_every_step():
    executor, _, _, store = _build([
        _save_call(),
        AIMessage(content="FINAL ANSWER: done"),
    ])

    asyncio.run(executor.run("alice", "I spent $100"))

    # seed, model, tools, model
    assert store.saves == ["alice"] * 4


def test_direct_answer_skips_tools():
    executor, model, tool, store = _build([AIMessage(content="FINAL ANSWER: hello")])

    assert asyncio.run(executor.run("t", "hi")) == "FINAL ANSWER: hello"
    assert tool.calls == []
    assert len(store.saves) == 2


def test_step_limit():
    executor, model, tool, store = _build([_save_call()], max_steps=3)

    with pytest.raises(StepLimitExceededError, match=r"\(3\)"):
        asyncio.run(executor.run("loop", "keep going"))

    assert len(model.calls) == 3
    assert len(tool.calls) == 3

    # Every tool request in the saved history has its result.
    state = asyncio.run(executor.get_state("loop"))
    assert isinstance(state.last_message, ToolMessage)
    assert len(state.messages) == 1 + 3 * 2


def test_empty_final_message():
    executor, _, _, _ = _build([AIMessage(content="   ")])

    with pytest.raises(EmptyAnswerError):
        asyncio.run(executor.run("t", "hi"))


def test_resume_keeps_prior_history_as_prefix():
    executor, model, _, _ = _build([
        AIMessage(content="FINAL ANSWER: first"),
        AIMessage(content="FINAL ANSWER: second"),
    ])

    asyncio.run(executor.run("alice", "one"))
    before = asyncio.run(executor.get_state("alice")).messages
    asyncio.run(executor.run("alice", "two"))
    after = asyncio.run(executor.get_state("alice")).messages

    assert [m.content for m in after[:len(before)]] == [m.content for m in before]
    assert [m.content for m in after[len(before):]] == ["two", "FINAL ANSWER: second"]
    # The second prompt carried the whole first exchange.
    assert [m.content for m in model.calls[1][1:]] == ["one", "FINAL ANSWER: first", "two"]


def test_model_failure_keeps_seeded_checkpoint():
    executor, _, _, store = _build([ConnectionError("timeout")])

    with pytest.raises(ModelInvocationError):
        asyncio.run(executor.run("t", "hello"))

    state = asyncio.run(executor.get_state("t"))
    assert [m.content for m in state.messages] == ["hello"]
    assert store.saves == ["t"]


def test_threads_are_isolated():
    executor, _, _, _ = _build([AIMessage(content="FINAL ANSWER: ok")])

    asyncio.run(executor.run("alice", "from alice"))
    asyncio.run(executor.run("bob", "from bob"))

    alice = asyncio.run(executor.get_state("alice"))
    bob = asyncio.run(executor.get_state("bob"))
    assert alice.messages[0].content == "from alice"
    assert bob.messages[0].content == "from bob"
    assert len(alice.messages) == len(bob.messages) == 2


def test_unknown_thread_has_no_state():
    executor, _, _, _ = _build([])
    assert asyncio.run(executor.get_state("nobody")) is None


# ---------------------------------------------------------------------------
# Failed tool steps
# ---------------------------------------------------------------------------

def _assert_every_call_answered(messages):
    answered = {m.tool_call_id for m in messages if isinstance(m, ToolMessage)}
    for message in messages:
        if isinstance(message, AIMessage):
            for call in message.tool_calls:
                assert call["id"] in answered, f"tool call {call['id']} has no result"


def test_failed_tool_leaves_resumable_thread():
    registry = ToolRegistry()
    registry.register(RecordingTool("save_spending", fail_with=OSError("disk full")))
    model = ScriptedChatModel([
        AIMessage(content="", tool_calls=[
            tool_call("save_spending", {"amount": 100.0}, "c1"),
            tool_call("save_spending", {"amount": 5.0}, "c2"),
        ]),
        AIMessage(content="FINAL ANSWER: sorry about that"),
    ])
    executor = AgentExecutor(
        model_node=ModelNode(model, registry),
        tool_node=ToolExecutionNode(registry),
        checkpoints=InMemoryCheckpointStore(),
    )

    with pytest.raises(ToolExecutionError):
        asyncio.run(executor.run("t", "I spent $100"))

    state = asyncio.run(executor.get_state("t"))
    assert [m.tool_call_id for m in state.messages[2:]] == ["c1", "c2"]
    assert all(m.status == "error" for m in state.messages[2:])

    assert asyncio.run(executor.run("t", "hello again")) == "FINAL ANSWER: sorry about that"
    prompt = model.calls[1][1:]
    assert [type(m) for m in prompt] == [HumanMessage, AIMessage, ToolMessage, ToolMessage, HumanMessage]
    _assert_every_call_answered(asyncio.run(executor.get_state("t")).messages)


def test_rejected_call_is_answered_when_errors_are_fatal():
    registry = ToolRegistry()
    registry.register(RecordingTool("save_spending"))
    executor = AgentExecutor(
        model_node=ModelNode(ScriptedChatModel([_save_call(amount="a lot")]), registry),
        tool_node=ToolExecutionNode(registry, surface_errors=False),
        checkpoints=InMemoryCheckpointStore(),
    )

    with pytest.raises(ToolValidationError):
        asyncio.run(executor.run("t", "I spent a lot"))

    state = asyncio.run(executor.get_state("t"))
    assert isinstance(state.last_message, ToolMessage)
    assert "Invalid arguments" in state.last_message.content
    _assert_every_call_answered(state.messages)
