"""
Toolwire - declarative tool exposure for Python services.

Toolwire lets a process declare callable tools on plain class methods,
derives a JSON-Schema parameter description for each from validation
schemas, and serves tool discovery and invocation over stdio or HTTP.

- **Declarative registration**: ``@tool`` and ``@param`` on methods
- **Schema derivation**: validation schemas translated to wire schemas
- **Strict dispatch**: unknown or invalid arguments never reach a handler
- **Pluggable transports**: standard streams or HTTP POST

Quick Start:
    >>> from toolwire import ToolServer, number, param, tool
    >>>
    >>> class Calculator:
    ...     @tool("Add two numbers")
    ...     @param(0, number(), "First operand")
    ...     @param(1, number(), "Second operand")
    ...     def add(self, a, b):
    ...         return a + b
    >>>
    >>> server = ToolServer(name="calculator")
    >>> server.register(Calculator)
    >>> result = await server.invoke("add", {"a": 2, "b": 3})
    >>> await server.serve(transport="stdio")
"""

__version__ = "0.1.0"
__license__ = "MIT"

from toolwire.config import HTTPTransportOptions, RunOptions, ServerConfig, TransportConfig
from toolwire.errors import (
    JsonRpcError,
    ToolDefinitionError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolValidationError,
    ToolwireError,
    TransportError,
)
from toolwire.schema import (
    SchemaNode,
    array,
    boolean,
    enum,
    integer,
    number,
    obj,
    optional,
    string,
    translate,
    union,
)
from toolwire.server import ToolServer, ValidationReport
from toolwire.tools import ParamSpec, ToolDescriptor, ToolResult, declare_tool, param, tool
from toolwire.transports import TransportManager, TransportStatus, TransportType

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Server
    "ToolServer",
    "ValidationReport",
    # Declaration
    "tool",
    "param",
    "declare_tool",
    "ParamSpec",
    "ToolDescriptor",
    "ToolResult",
    # Schemas
    "SchemaNode",
    "translate",
    "string",
    "number",
    "integer",
    "boolean",
    "obj",
    "array",
    "enum",
    "union",
    "optional",
    # Config
    "ServerConfig",
    "RunOptions",
    "TransportConfig",
    "HTTPTransportOptions",
    # Transports
    "TransportManager",
    "TransportStatus",
    "TransportType",
    # Errors
    "ToolwireError",
    "ToolDefinitionError",
    "ToolNotFoundError",
    "ToolValidationError",
    "ToolExecutionError",
    "TransportError",
    "JsonRpcError",
]
