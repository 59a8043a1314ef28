import pytest
from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from fakes import tool_call
from finance_agent.agent.state import (
    AgentState,
    merge_state,
    message_text,
    state_from_dict,
    state_to_dict,
)
from finance_agent.domain.exceptions import StateUpdateError

# ---------------------------------------------------------------------------
# Reducers
# ---------------------------------------------------------------------------

def test_messages_are_appended_in_order():
    first = HumanMessage(content="hi")
    second = AIMessage(content="hello")
    third = HumanMessage(content="hi")

    state = merge_state(AgentState(), {"messages": [first]})
    state = merge_state(state, {"messages": [second, third]})

    # No reordering, no dedup of equal messages
    assert state.messages == (first, second, third)


def test_merge_returns_new_state():
    original = AgentState(messages=(HumanMessage(content="a"),))
    updated = merge_state(original, {"messages": [AIMessage(content="b")]})

    assert len(original.messages) == 1
    assert len(updated.messages) == 2
    assert updated is not original


def test_single_item_delta_is_appended():
    state = merge_state(AgentState(), {"alerts": "over limit"})
    assert state.alerts == ("over limit",)


def test_accumulators_are_logs():
    state = merge_state(AgentState(), {"spending_limits": [{"limit": 500}]})
    state = merge_state(state, {"spending_limits": [{"limit": 300}]})

    assert state.spending_limits == ({"limit": 500}, {"limit": 300})
    assert state.current_spending_limit == {"limit": 300}


def test_fields_merge_independently():
    state = merge_state(AgentState(), {
        "expenses": [{"amount": 10}],
        "spending_categories": ["food"],
    })
    state = merge_state(state, {"expenses": [{"amount": 5}]})

    assert state.expenses == ({"amount": 10}, {"amount": 5})
    assert state.spending_categories == ("food",)
    assert state.messages == ()


def test_empty_delta_keeps_state():
    state = AgentState(alerts=("x",))
    assert merge_state(state, {}) is state


def test_unknown_field_is_rejected():
    with pytest.raises(StateUpdateError, match="balance"):
        merge_state(AgentState(), {"balance": [1]})


def test_current_spending_limit_empty():
    assert AgentState().current_spending_limit is None
    assert AgentState().last_message is None


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def test_state_dict_round_trip():
    state = AgentState(
        messages=(
            HumanMessage(content="I spent $100 on food"),
            AIMessage(content="", tool_calls=[tool_call("save_spending", {"amount": 100}, "call_1")]),
            ToolMessage(content="Saved.", tool_call_id="call_1", name="save_spending"),
            ToolMessage(content="Error: bad", tool_call_id="call_2", name="x", status="error"),
            AIMessage(content="FINAL ANSWER: done"),
        ),
        expenses=({"amount": 100.0, "date": "2024-05-10T12:00:00"},),
        spending_limits=({"limit": 500.0, "date": "2024-05-10T12:00:00"},),
        spending_categories=("food",),
        alerts=("Alert: over",),
    )

    restored = state_from_dict(state_to_dict(state))

    assert [type(m) for m in restored.messages] == [type(m) for m in state.messages]
    assert [m.content for m in restored.messages] == [m.content for m in state.messages]
    assert restored.expenses == state.expenses
    assert restored.spending_limits == state.spending_limits
    assert restored.spending_categories == ("food",)
    assert restored.alerts == ("Alert: over",)
    assert restored.messages[2].tool_call_id == "call_1"
    assert restored.messages[1].tool_calls[0]["args"] == {"amount": 100}
    assert restored.messages[3].status == "error"


def test_state_from_empty_dict():
    assert state_from_dict({}) == AgentState()


def test_message_text_joins_text_blocks():
    message = AIMessage(content=[
        {"type": "text", "text": "FINAL ANSWER: "},
        "",
        {"type": "text", "text": "saved"},
    ])
    assert message_text(message) == "FINAL ANSWER: saved"
    assert message_text(HumanMessage(content="plain")) == "plain"
