"""
Toolwire Tools.

Declaring tools on service classes and holding registered tools.

Usage:
    class Greeter:
        @tool("Greet a user by name")
        @param(0, string(min_length=1), "User's name")
        def greet(self, name):
            return f"Hello, {name}!"

    get_tool_declarations(Greeter)
    # [("greet", ToolDescriptor(name="greet", ...))]
"""

from .base import ContentBlock, ContentType, ToolResult, serialize_value
from .metadata import (
    ParameterDescriptor,
    ParamSpec,
    ToolDescriptor,
    declare_param,
    declare_tool,
    get_tool_declarations,
    get_tool_descriptor,
    param,
    tool,
)
from .registry import RegisteredTool, ToolRegistry

__all__ = [
    # Results
    "ContentBlock",
    "ContentType",
    "ToolResult",
    "serialize_value",
    # Metadata
    "ParameterDescriptor",
    "ParamSpec",
    "ToolDescriptor",
    "declare_param",
    "declare_tool",
    "get_tool_declarations",
    "get_tool_descriptor",
    "param",
    "tool",
    # Registry
    "RegisteredTool",
    "ToolRegistry",
]
