"""Custom exception hierarchy for the agent loop.

Only TransportError (after retries), ProtocolError and BudgetExceededError
end a run. The tool-level errors are converted into result text that is
fed back to the model.
"""


class AgentError(Exception):
    """Base exception for all agent errors."""


class TransportError(AgentError):
    """Raised when a request to the model provider fails."""

    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        self.status_code = status_code
        self.url = url
        status_info = f" (HTTP {status_code})" if status_code else ""
        super().__init__(f"{message}{status_info}")


class ProtocolError(AgentError):
    """Raised when a stream frame cannot be trusted for reconstruction."""

    def __init__(self, message: str, payload: str | None = None):
        self.payload = payload
        super().__init__(message)


class ToolArgumentError(AgentError):
    """Raised when tool-call arguments are not valid JSON."""

    def __init__(self, tool_name: str, reason: str):
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Invalid JSON args: {reason}")


class ToolNotFoundError(AgentError):
    """Raised when the model calls a tool that is not registered."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool not found: {tool_name}")


class ToolExecutionError(AgentError):
    """Raised by a tool when its own logic fails."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(message)


class BudgetExceededError(AgentError):
    """Raised when a run exceeds its step budget."""

    def __init__(self, max_steps: int):
        self.max_steps = max_steps
        super().__init__("Max steps reached")
