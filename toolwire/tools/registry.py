"""
Tool Registry.

Maps tool names to their descriptor and bound handler. The registry is
filled when services are registered and only read while serving calls.

Registering a name twice replaces the earlier entry in place (last
registration wins); the replacement is logged as a warning.

Usage:
    registry = ToolRegistry()
    registry.register(descriptor, instance.add)

    entry = registry.get("add")
    schemas = registry.to_wire_schemas()
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator

from .metadata import ToolDescriptor

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RegisteredTool:
    """
    A tool bound to its service instance.

    Attributes:
        descriptor: Tool metadata
        handler: Bound method invoked for calls
        defaults: The handler's own positional defaults, by index
    """

    descriptor: ToolDescriptor
    handler: Callable[..., Any]
    defaults: dict[int, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.descriptor.name


class ToolRegistry:
    """
    Registry of tools available for invocation, in registration order.
    """

    def __init__(self) -> None:
        self._tools: dict[str, RegisteredTool] = {}

    def register(self, descriptor: ToolDescriptor, handler: Callable[..., Any]) -> RegisteredTool:
        """
        Register a tool.

        Args:
            descriptor: Tool metadata
            handler: Callable receiving the marshaled arguments

        Returns:
            The registry entry
        """
        if descriptor.name in self._tools:
            logger.warning(f"[tool_registry] Replacing existing tool: {descriptor.name}")

        entry = RegisteredTool(
            descriptor=descriptor,
            handler=handler,
            defaults=positional_defaults(handler),
        )
        self._tools[descriptor.name] = entry
        logger.info(f"[tool_registry] Registered tool: {descriptor.name}")
        return entry

    def unregister(self, name: str) -> bool:
        if name in self._tools:
            del self._tools[name]
            logger.info(f"[tool_registry] Unregistered tool: {name}")
            return True
        return False

    def get(self, name: str) -> RegisteredTool | None:
        return self._tools.get(name)

    def list_descriptors(self) -> list[ToolDescriptor]:
        return [entry.descriptor for entry in self._tools.values()]

    def list_names(self) -> list[str]:
        return list(self._tools.keys())

    def to_wire_schemas(self) -> list[dict[str, Any]]:
        """Tool definitions in tools/list shape."""
        return [entry.descriptor.to_dict() for entry in self._tools.values()]

    def clear(self) -> None:
        self._tools.clear()

    def __iter__(self) -> Iterator[RegisteredTool]:
        return iter(list(self._tools.values()))

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"<ToolRegistry tools={list(self._tools.keys())}>"


def positional_defaults(handler: Callable[..., Any]) -> dict[int, Any]:
    """
    Default values of a bound handler's positional parameters, by index.
    """
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return {}

    defaults: dict[int, Any] = {}
    positional = [
        p
        for p in signature.parameters.values()
        if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    for index, parameter in enumerate(positional):
        if parameter.default is not parameter.empty:
            defaults[index] = parameter.default
    return defaults
