"""
Toolwire Schemas.

Validation schemas declare tool parameters; the translator derives the
wire-level SchemaNode published in tools/list.

Usage:
    from toolwire.schema import number, obj, optional, string, translate

    schema = obj({"city": string(), "days": optional(number(minimum=1))})
    translate(schema).to_dict()
    # {"type": "object", "properties": {...}, "required": ["city"]}
"""

from .node import NodeType, SchemaNode
from .translator import is_optional, translate
from .types import (
    ENUM_PLACEHOLDER,
    ArraySchema,
    BooleanSchema,
    EnumSchema,
    NumberSchema,
    ObjectSchema,
    OptionalSchema,
    SchemaKind,
    StringSchema,
    UnionSchema,
    ValidationSchema,
    array,
    boolean,
    enum,
    integer,
    number,
    obj,
    optional,
    string,
    union,
)

__all__ = [
    # Node model
    "NodeType",
    "SchemaNode",
    # Translator
    "translate",
    "is_optional",
    # Variants
    "ENUM_PLACEHOLDER",
    "SchemaKind",
    "ValidationSchema",
    "StringSchema",
    "NumberSchema",
    "BooleanSchema",
    "ObjectSchema",
    "ArraySchema",
    "EnumSchema",
    "UnionSchema",
    "OptionalSchema",
    # Constructors
    "string",
    "number",
    "integer",
    "boolean",
    "obj",
    "array",
    "enum",
    "union",
    "optional",
]
