"""
Schema Translator.

Converts a validation schema into a SchemaNode. Translation is total:
every input produces a node and nothing raises. Anything that is not a
known schema variant (or that would recurse into a schema already on
the current path) becomes a plain string node.

Rules:
    string / number     -> leaf with length, range and pattern constraints
    boolean             -> boolean leaf
    array(inner)        -> array node, items = translate(inner)
    obj(fields)         -> object node; a field is required unless optional()
    enum(values)        -> string node with an enum list
    union(a, b, ...)    -> translate(a); later options are dropped
    optional(inner)     -> translate(inner); the caller tracks optionality

The union rule is lossy on purpose. Full union checking still happens
when arguments are validated against the original schema.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from .node import NodeType, SchemaNode
from .types import (
    ENUM_PLACEHOLDER,
    ArraySchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    OptionalSchema,
    SchemaKind,
    StringSchema,
    UnionSchema,
    ValidationSchema,
    schema_is_optional,
)

logger = logging.getLogger(__name__)

_Path = frozenset[int]


def translate(schema: Any) -> SchemaNode:
    """
    Translate a validation schema into a SchemaNode.

    Args:
        schema: Any object; non-schema input falls back to a string node

    Returns:
        SchemaNode describing the schema on the wire
    """
    return _translate(schema, frozenset())


def is_optional(schema: Any) -> bool:
    """Whether a schema marks its value as optional."""
    return schema_is_optional(schema)


def _translate(schema: Any, path: _Path) -> SchemaNode:
    if not isinstance(schema, ValidationSchema) or id(schema) in path:
        return SchemaNode(type=NodeType.STRING)

    handler = _HANDLERS.get(schema.kind)
    if handler is None:
        return SchemaNode(type=NodeType.STRING)

    node = handler(schema, path | {id(schema)})
    return node.with_description(schema.description)


def _string(schema: StringSchema, path: _Path) -> SchemaNode:
    return SchemaNode(
        type=NodeType.STRING,
        min_length=schema.min_length,
        max_length=schema.max_length,
        pattern=schema.pattern,
    )


def _number(schema: NumberSchema, path: _Path) -> SchemaNode:
    return SchemaNode(
        type=NodeType.INTEGER if schema.integer else NodeType.NUMBER,
        minimum=schema.minimum,
        maximum=schema.maximum,
    )


def _boolean(schema: ValidationSchema, path: _Path) -> SchemaNode:
    return SchemaNode(type=NodeType.BOOLEAN)


def _object(schema: ObjectSchema, path: _Path) -> SchemaNode:
    properties: dict[str, SchemaNode] = {}
    required: list[str] = []

    for key, field_schema in schema.fields.items():
        properties[key] = _translate(field_schema, path)
        if not schema_is_optional(field_schema):
            required.append(key)

    return SchemaNode(
        type=NodeType.OBJECT,
        properties=properties,
        required=tuple(required),
    )


def _array(schema: ArraySchema, path: _Path) -> SchemaNode:
    return SchemaNode(type=NodeType.ARRAY, items=_translate(schema.items, path))


def _enum(schema: EnumSchema, path: _Path) -> SchemaNode:
    values = schema.values or (ENUM_PLACEHOLDER,)
    return SchemaNode(type=NodeType.STRING, enum=tuple(values))


def _union(schema: UnionSchema, path: _Path) -> SchemaNode:
    if not schema.options:
        return SchemaNode(type=NodeType.STRING)
    if len(schema.options) > 1:
        logger.debug(f"[schema] Union translated from first of {len(schema.options)} options")
    return _translate(schema.options[0], path)


def _optional(schema: OptionalSchema, path: _Path) -> SchemaNode:
    return _translate(schema.inner, path).with_default(schema.default)


_HANDLERS: dict[SchemaKind, Callable[[Any, _Path], SchemaNode]] = {
    SchemaKind.STRING: _string,
    SchemaKind.NUMBER: _number,
    SchemaKind.BOOLEAN: _boolean,
    SchemaKind.OBJECT: _object,
    SchemaKind.ARRAY: _array,
    SchemaKind.ENUM: _enum,
    SchemaKind.UNION: _union,
    SchemaKind.OPTIONAL: _optional,
}
