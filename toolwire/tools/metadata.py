"""
Tool Metadata Registry.

Service authors describe tools on plain methods. Metadata is attached in
two phases:

1. Parameter declarations fill a per-method table keyed by formal
   position (``@param`` or ParamSpec entries).
2. The tool declaration freezes that table into an immutable
   ToolDescriptor (``@tool`` or declare_tool()).

Decorator form:
    class Calculator:
        @tool("Add two numbers")
        @param(0, number(), "First operand")
        @param(1, number(), "Second operand")
        def add(self, a, b):
            return a + b

Table form (no decorators):
    declare_tool(
        Calculator.add,
        "Add two numbers",
        params=[ParamSpec(0, number()), ParamSpec(1, number())],
    )

Declaration problems raise ToolDefinitionError immediately, never at
the first call. ``@tool`` must be the outermost decorator, and
``@staticmethod`` or ``@classmethod`` goes below ``@param``.
"""

from __future__ import annotations

import inspect
from dataclasses import dataclass, replace
from typing import Any, Callable, Sequence

from toolwire.errors import ToolDefinitionError
from toolwire.schema import NodeType, SchemaNode, is_optional, translate

TOOL_ATTR = "__toolwire_tool__"
PARAMS_ATTR = "__toolwire_params__"

# =============================================================================
# Descriptors
# =============================================================================


@dataclass(frozen=True, slots=True)
class ParameterDescriptor:
    """
    One declared parameter of a tool.

    Attributes:
        name: Argument name on the wire
        position: 0-based formal index, excluding the receiver
        node: Derived wire schema
        required: Whether calls must supply the argument
        description: Optional human-readable description
        schema: Original validation schema; None for raw JSON Schema
    """

    name: str
    position: int
    node: SchemaNode
    required: bool = True
    description: str | None = None
    schema: Any = None

    @property
    def default(self) -> Any:
        return self.node.default


@dataclass(frozen=True, slots=True)
class ToolDescriptor:
    """
    Immutable description of a tool.

    Attributes:
        name: Unique tool name
        description: Human-readable description
        parameters: Parameters in formal order
        attribute: Method attribute name on the service class
        receiver: Whether positions were counted after a leading receiver
            (self or cls)
    """

    name: str
    description: str
    parameters: tuple[ParameterDescriptor, ...] = ()
    attribute: str = ""
    receiver: bool = True

    @property
    def required(self) -> list[str]:
        return [p.name for p in self.parameters if p.required]

    def get_parameter(self, name: str) -> ParameterDescriptor | None:
        for parameter in self.parameters:
            if parameter.name == name:
                return parameter
        return None

    @property
    def expects_single_object(self) -> bool:
        """Exactly one parameter whose schema is an object."""
        return len(self.parameters) == 1 and self.parameters[0].node.type is NodeType.OBJECT

    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {p.name: p.node.to_dict() for p in self.parameters},
            "required": self.required,
        }

    def to_dict(self) -> dict[str, Any]:
        """Wire shape used in tools/list responses."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema(),
        }


@dataclass(frozen=True, slots=True)
class ParamSpec:
    """
    Parameter entry for the table form of declare_tool().

    ``position`` is a formal index or a parameter name.
    """

    position: int | str
    schema: Any
    description: str | None = None
    name: str | None = None
    required: bool | None = None


# =============================================================================
# Declaration
# =============================================================================


def declare_param(func: Callable[..., Any], spec: ParamSpec) -> Callable[..., Any]:
    """
    Attach a parameter declaration to a method.

    Raises:
        ToolDefinitionError: If the position cannot be resolved against
            the method, or the tool has already been declared
    """
    target, receiver = _unwrap(func)
    if not callable(target):
        raise ToolDefinitionError(f"Cannot declare a parameter on non-callable {func!r}")

    qualname = getattr(target, "__qualname__", repr(target))
    if getattr(target, TOOL_ATTR, None) is not None:
        raise ToolDefinitionError(
            f"Parameter declared after tool on {qualname}; @param must sit below @tool"
        )

    position, introspected = _resolve_position(target, spec.position, qualname, receiver)
    name = spec.name or introspected or f"param{position}"

    params: dict[int, ParameterDescriptor] = dict(getattr(target, PARAMS_ATTR, {}))
    for other in params.values():
        if other.name == name and other.position != position:
            raise ToolDefinitionError(
                f"Duplicate parameter name '{name}' on {qualname} "
                f"(positions {other.position} and {position})"
            )

    if isinstance(spec.schema, dict):
        node = SchemaNode.from_dict(spec.schema)
        schema = None
        inferred_required = True
    else:
        node = translate(spec.schema)
        schema = spec.schema
        inferred_required = not is_optional(spec.schema)

    params[position] = ParameterDescriptor(
        name=name,
        position=position,
        node=node.with_description(spec.description),
        required=spec.required if spec.required is not None else inferred_required,
        description=spec.description,
        schema=schema,
    )
    setattr(target, PARAMS_ATTR, params)
    return func


def declare_tool(
    func: Callable[..., Any],
    description: str = "",
    *,
    params: Sequence[ParamSpec] = (),
    name: str | None = None,
) -> Callable[..., Any]:
    """
    Freeze a method's parameter table into a ToolDescriptor.

    Raises:
        ToolDefinitionError: If a parameter declaration is invalid or
            the declared positions leave a gap
    """
    for spec in params:
        declare_param(func, spec)

    target, receiver = _unwrap(func)
    table: dict[int, ParameterDescriptor] = getattr(target, PARAMS_ATTR, {})
    ordered = tuple(table[position] for position in sorted(table))

    qualname = getattr(target, "__qualname__", repr(target))
    for index, parameter in enumerate(ordered):
        if parameter.position != index:
            raise ToolDefinitionError(f"Parameter {index} of {qualname} has no declaration")

    attribute = getattr(target, "__name__", "")
    descriptor = ToolDescriptor(
        name=name or attribute,
        description=description or "",
        parameters=ordered,
        attribute=attribute,
        receiver=receiver,
    )
    if not descriptor.name:
        raise ToolDefinitionError(f"Cannot derive a tool name for {func!r}")

    setattr(target, TOOL_ATTR, descriptor)
    return func


def tool(description: Any = "", *, name: str | None = None) -> Any:
    """
    Decorator declaring a method as a tool.

    Usable as ``@tool``, ``@tool("description")`` or
    ``@tool("description", name="custom_name")``.
    """
    if callable(description) or isinstance(description, (staticmethod, classmethod)):
        return declare_tool(description)

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        return declare_tool(func, description, name=name)

    return decorator


def param(
    position: int | str,
    schema: Any,
    description: str | None = None,
    *,
    name: str | None = None,
    required: bool | None = None,
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator declaring one parameter of a tool method."""
    spec = ParamSpec(
        position=position,
        schema=schema,
        description=description,
        name=name,
        required=required,
    )

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        return declare_param(func, spec)

    return decorator


def get_tool_descriptor(func: Any) -> ToolDescriptor | None:
    func = getattr(func, "__func__", func)
    return getattr(func, TOOL_ATTR, None)


def get_tool_declarations(cls: type) -> list[tuple[str, ToolDescriptor]]:
    """
    Collect tool descriptors declared on a class and its bases.

    Base-class tools come first, each class in definition order. A
    subclass attribute without tool metadata hides the base tool.

    Raises:
        ToolDefinitionError: If a tool was declared as a method and then
            wrapped in staticmethod, leaving its positions off by one

    Returns:
        (attribute name, descriptor) pairs
    """
    found: dict[str, ToolDescriptor] = {}

    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for attribute, value in vars(klass).items():
            descriptor = get_tool_descriptor(value)
            if descriptor is not None:
                if isinstance(value, staticmethod) and descriptor.receiver and descriptor.parameters:
                    raise ToolDefinitionError(
                        f"{klass.__qualname__}.{attribute}: apply @staticmethod below @tool and @param"
                    )
                if descriptor.attribute != attribute:
                    descriptor = replace(descriptor, attribute=attribute)
                found[attribute] = descriptor
            elif attribute in found:
                del found[attribute]

    return list(found.items())


# =============================================================================
# Position resolution
# =============================================================================


def _unwrap(func: Any) -> tuple[Any, bool]:
    """
    Underlying function and whether its first parameter is a receiver.

    staticmethod and classmethod objects say so directly. A plain function
    takes a receiver when it is defined directly in a class body, which
    its qualified name records (``Service.add`` but not
    ``build.<locals>.add``).
    """
    if isinstance(func, staticmethod):
        return func.__func__, False
    if isinstance(func, classmethod) or inspect.ismethod(func):
        return func.__func__, True

    scopes = getattr(func, "__qualname__", "").split(".")
    return func, len(scopes) > 1 and scopes[-2] != "<locals>"


def _resolve_position(
    func: Callable[..., Any],
    position: int | str,
    qualname: str,
    receiver: bool,
) -> tuple[int, str | None]:
    """
    Map a declared position onto the method's formal parameters,
    skipping the receiver when there is one.

    Returns:
        (index, introspected name or None)
    """
    try:
        signature = inspect.signature(func)
    except (TypeError, ValueError):
        signature = None

    if signature is None:
        if isinstance(position, int) and position >= 0:
            return position, None
        raise ToolDefinitionError(f"Cannot resolve parameter {position!r} on {qualname}")

    names: list[str] = []
    variadic = False
    for index, parameter in enumerate(signature.parameters.values()):
        if index == 0 and receiver and parameter.kind is not parameter.VAR_POSITIONAL:
            continue
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            names.append(parameter.name)
        elif parameter.kind is parameter.VAR_POSITIONAL:
            variadic = True

    if isinstance(position, str):
        if position in names:
            return names.index(position), position
        raise ToolDefinitionError(f"{qualname} has no parameter named '{position}'")

    if position < 0:
        raise ToolDefinitionError(f"Negative parameter position {position} on {qualname}")
    if position < len(names):
        return position, names[position]
    if variadic:
        return position, None

    raise ToolDefinitionError(
        f"{qualname} accepts {len(names)} parameter(s); cannot declare position {position}"
    )
