"""
agent.prompt - System prompt template for the finance agent.

The directive lists the registered tool names at format time, so the
prompt never advertises a tool the registry cannot dispatch.
"""

from __future__ import annotations

from langchain_core.prompts import ChatPromptTemplate, MessagesPlaceholder

from finance_agent.agent.tools.registry import ToolRegistry

FINAL_ANSWER_MARKER = "FINAL ANSWER"

SYSTEM_DIRECTIVE = (
    "You are a helpful AI finance assistant, collaborating with other specialized "
    "financial assistants. Use the provided tools to help users track their expenses, "
    "manage budgets, and receive personalized financial advice. If you are unable to "
    "fully answer, that's OK, another assistant with different capabilities will "
    "continue where you left off. Execute whatever tasks you can to move the user "
    "toward financial clarity and actionable insights. If you or any of the other "
    "assistants arrive at a complete recommendation or report, prefix your response "
    f"with {FINAL_ANSWER_MARKER} so the team knows to stop. "
    "You have access to the following tools: {tool_names}.\n"
    "{system_message}\n"
    "Current time: {time}.\n"
)

DEFAULT_SYSTEM_MESSAGE = "You are helpful Financial assistant Chatbot Agent."


def build_prompt_template() -> ChatPromptTemplate:
    """System directive followed by the full conversation history."""
    return ChatPromptTemplate.from_messages([
        ("system", SYSTEM_DIRECTIVE),
        MessagesPlaceholder(variable_name="messages"),
    ])


def format_tool_names(registry: ToolRegistry) -> str:
    return ", ".join(registry.names())
