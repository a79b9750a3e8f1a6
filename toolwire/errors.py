"""
Error taxonomy for Toolwire.

Tool-facing errors (not found, validation, execution) never cross the
dispatcher boundary: ToolServer.invoke() folds them into a ToolResult
with is_error=True. Definition and transport errors are fatal and are
raised to the caller as-is.
"""

from __future__ import annotations

from typing import Any


class ToolwireError(Exception):
    """Base class for all Toolwire errors."""

    pass


class ToolDefinitionError(ToolwireError):
    """
    Raised at declaration time when tool metadata cannot be attached.

    Examples: a parameter declared at a position the method does not
    accept, or a parameter declared after the tool was frozen.
    """

    pass


class ToolNotFoundError(ToolwireError):
    """Raised when a call names a tool that is not registered."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool {tool_name} not found")


class ToolValidationError(ToolwireError):
    """
    Raised when call arguments fail validation.

    Attributes:
        tool_name: Tool the arguments were meant for
        errors: Every failure reason, aggregated
        parameter_name: Offending parameter when only one is involved
    """

    def __init__(
        self,
        tool_name: str,
        errors: list[str] | None = None,
        *,
        parameter_name: str | None = None,
    ):
        self.tool_name = tool_name
        self.errors = list(errors or [])
        self.parameter_name = parameter_name

        if self.errors:
            message = f"Invalid arguments for tool {tool_name}: {'; '.join(self.errors)}"
        else:
            message = f"Validation failed for tool {tool_name}"
        super().__init__(message)


class ToolExecutionError(ToolwireError):
    """Wraps an exception raised by a tool handler."""

    def __init__(self, tool_name: str, cause: BaseException):
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)


class TransportError(ToolwireError):
    """Raised when a transport cannot be created, started or swapped."""

    def __init__(self, transport_type: str, message: str):
        self.transport_type = transport_type
        super().__init__(f"[{transport_type}] {message}")


class JsonRpcError(ToolwireError):
    """
    Protocol-level failure reported back as a JSON-RPC error object.

    Standard codes are defined in toolwire.protocol.
    """

    def __init__(self, code: int, message: str, data: Any = None):
        self.code = code
        self.message = message
        self.data = data
        super().__init__(message)
