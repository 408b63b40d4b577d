"""Exception hierarchy for sherpa.

Errors are grouped by where they are contained: per filesystem path, per
tool call, per tool provider, or per query.
"""

from typing import Optional


class SherpaError(Exception):
    """Base class for all sherpa errors."""


class ProviderConnectionError(SherpaError, ConnectionError):
    """A tool provider's transport could not be established."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"Failed to connect to '{provider}': {message}")


class ProtocolError(SherpaError):
    """A protocol client was used in an invalid state."""


class ToolError(SherpaError):
    """A tool provider reported an error result for a call."""

    def __init__(self, tool_name: str, message: str):
        self.tool_name = tool_name
        super().__init__(message)


class ToolNotFoundError(SherpaError, LookupError):
    """The model requested a tool that no connected provider exposes."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool {tool_name} not found")


class ToolInvocationError(SherpaError):
    """A single tool call failed; reported back to the model as text."""

    def __init__(self, tool_name: str, cause: Exception):
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(str(cause))


class ModelStreamError(SherpaError):
    """The model provider failed while generating a response."""

    def __init__(self, message: str, provider: Optional[str] = None):
        self.provider = provider
        super().__init__(message)


class PathAccessError(SherpaError, PermissionError):
    """A requested path is outside the allowed root or cannot be resolved."""


class UnsupportedProviderError(SherpaError, ValueError):
    """Unknown model provider identifier."""

    def __init__(self, provider: str, available: Optional[list] = None):
        self.provider = provider
        message = f"Unsupported provider '{provider}'"
        if available:
            message += f". Available: {', '.join(available)}"
        super().__init__(message)


class MaxRoundsExceededError(SherpaError):
    """A query needed more model/tool rounds than allowed."""

    def __init__(self, max_rounds: int):
        self.max_rounds = max_rounds
        super().__init__(f"Exceeded maximum of {max_rounds} model/tool rounds")


class NotInitializedError(SherpaError, RuntimeError):
    """A component was used before initialize()."""


class AlreadyInitializedError(SherpaError, RuntimeError):
    """initialize() was called twice."""
