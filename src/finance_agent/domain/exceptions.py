"""
domain.exceptions - Custom exception hierarchy for the finance agent.

All domain-level errors inherit from DomainError so callers can catch
broad or specific exceptions as needed.
"""


class DomainError(Exception):
    """Base exception for all domain-level errors."""


class ToolError(DomainError):
    """Base for errors raised while dispatching a tool call."""

    def __init__(self, tool_name: str, message: str):
        super().__init__(message)
        self.tool_name = tool_name


class UnknownToolError(ToolError):
    """Raised when the model requests a tool that is not registered."""

    def __init__(self, tool_name: str):
        super().__init__(tool_name, f"Tool '{tool_name}' is not registered")


class ToolValidationError(ToolError):
    """Raised when tool arguments do not conform to the tool's schema.

    Always raised before the tool handler runs.
    """

    def __init__(self, tool_name: str, errors: list[str]):
        self.errors = errors
        super().__init__(
            tool_name,
            f"Invalid arguments for tool '{tool_name}': " + "; ".join(errors),
        )


class ToolExecutionError(ToolError):
    """Raised when a tool handler fails. Fatal for the invocation."""


class ModelInvocationError(DomainError):
    """Raised when the language model call fails. Fatal for the invocation."""


class StepLimitExceededError(DomainError):
    """Raised when the engine hits its maximum number of model steps."""

    def __init__(self, max_steps: int):
        super().__init__(f"Exceeded maximum steps ({max_steps}) without a final answer")
        self.max_steps = max_steps


class EmptyAnswerError(DomainError):
    """Raised when the loop ends without a usable answer."""


class StateUpdateError(DomainError):
    """Raised when a state delta names a field with no merge policy."""


class RepositoryError(DomainError):
    """Raised when a database operation fails."""


class CheckpointError(RepositoryError):
    """Raised when a checkpoint cannot be loaded or saved."""
