"""
Schema Node Model.

SchemaNode is the wire-shaped description of a single parameter: the
JSON-Schema fragment that ends up under inputSchema.properties in a
tools/list response. Nodes are immutable finite trees.

Enumerations are string nodes carrying an ``enum`` list, which is how
they appear on the wire.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any


class NodeType(Enum):
    """JSON-Schema type of a node."""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"


@dataclass(frozen=True, slots=True)
class SchemaNode:
    """
    A JSON-Schema-like leaf or branch node.

    Only the attributes relevant to ``type`` are populated:
    - string: min_length, max_length, pattern, enum
    - number/integer: minimum, maximum
    - object: properties, required (declaration order)
    - array: items
    """

    type: NodeType = NodeType.STRING
    description: str | None = None
    enum: tuple[Any, ...] | None = None
    items: SchemaNode | None = None
    properties: dict[str, SchemaNode] | None = None
    required: tuple[str, ...] = field(default=())
    minimum: float | None = None
    maximum: float | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    default: Any = None

    @property
    def is_enum(self) -> bool:
        return self.enum is not None

    def with_description(self, description: str | None) -> SchemaNode:
        """Return a copy carrying ``description`` (unchanged if None)."""
        if description is None:
            return self
        return replace(self, description=description)

    def with_default(self, default: Any) -> SchemaNode:
        if default is None:
            return self
        return replace(self, default=default)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-Schema fragment."""
        result: dict[str, Any] = {"type": self.type.value}

        if self.description is not None:
            result["description"] = self.description
        if self.enum is not None:
            result["enum"] = list(self.enum)
        if self.type is NodeType.ARRAY:
            result["items"] = (self.items or SchemaNode()).to_dict()
        if self.type is NodeType.OBJECT:
            result["properties"] = {
                key: node.to_dict() for key, node in (self.properties or {}).items()
            }
            result["required"] = list(self.required)
        if self.minimum is not None:
            result["minimum"] = self.minimum
        if self.maximum is not None:
            result["maximum"] = self.maximum
        if self.min_length is not None:
            result["minLength"] = self.min_length
        if self.max_length is not None:
            result["maxLength"] = self.max_length
        if self.pattern is not None:
            result["pattern"] = self.pattern
        if self.default is not None:
            result["default"] = self.default

        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SchemaNode:
        """
        Parse a JSON-Schema fragment.

        Unknown or missing types become string nodes, mirroring the
        translator's fallback.
        """
        try:
            node_type = NodeType(data.get("type", "string"))
        except ValueError:
            node_type = NodeType.STRING

        items = None
        properties = None
        required: tuple[str, ...] = ()

        if node_type is NodeType.ARRAY:
            raw_items = data.get("items")
            items = cls.from_dict(raw_items) if isinstance(raw_items, dict) else cls()
        elif node_type is NodeType.OBJECT:
            properties = {
                key: cls.from_dict(value)
                for key, value in (data.get("properties") or {}).items()
                if isinstance(value, dict)
            }
            required = tuple(name for name in data.get("required", []) if name in properties)

        enum = data.get("enum")

        return cls(
            type=node_type,
            description=data.get("description"),
            enum=tuple(enum) if isinstance(enum, list) else None,
            items=items,
            properties=properties,
            required=required,
            minimum=data.get("minimum"),
            maximum=data.get("maximum"),
            min_length=data.get("minLength"),
            max_length=data.get("maxLength"),
            pattern=data.get("pattern"),
            default=data.get("default"),
        )
