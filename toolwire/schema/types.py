"""
Validation Schemas.

A closed set of immutable schema variants used to declare tool
parameters. Each variant carries a ``kind`` discriminator so that the
translator can dispatch on it, and knows how to validate a value
through pydantic.

Constructors:
    string(min_length=3, max_length=20, pattern=r"^[a-z]+$")
    number(minimum=0), integer(maximum=10)
    boolean()
    obj({"name": string(), "age": optional(integer())})
    array(string())
    enum(["red", "green", "blue"])
    union(string(), number())
    optional(number(), default=10)

Validation:
    errors = number(minimum=0).validate(-1)
    # ["Input should be greater than or equal to 0"]

Validation runs in pydantic strict mode: "5" is not a number and 1 is
not a boolean. Unknown keys inside objects are ignored; strict key
checking only applies to the top-level tool arguments. A schema that
contains itself is validated down to the first repetition; below that
any value is accepted.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from functools import cached_property
from typing import Annotated, Any, ClassVar, Literal, Optional, Union

from pydantic import ConfigDict, Field, StringConstraints, TypeAdapter, ValidationError
from typing_extensions import NotRequired, TypedDict

# Substituted for an empty enumeration so the derived schema stays valid
ENUM_PLACEHOLDER = "default"

_STRICT = ConfigDict(strict=True, regex_engine="python-re")


class SchemaKind(Enum):
    """Discriminator for validation schema variants."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    ENUM = "enum"
    UNION = "union"
    OPTIONAL = "optional"


class ValidationSchema:
    """
    Base class for schema variants.

    Subclasses are frozen dataclasses and implement annotation(), which
    returns the Python type pydantic validates against.
    """

    kind: ClassVar[SchemaKind]
    description: str | None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        raise NotImplementedError

    @cached_property
    def _adapter(self) -> TypeAdapter:
        if self.kind is SchemaKind.OBJECT:
            # TypedDicts carry their own config
            return TypeAdapter(self.annotation())
        return TypeAdapter(self.annotation(), config=_STRICT)

    def validate(self, value: Any) -> list[str]:
        """
        Validate a value.

        Returns:
            Human-readable failure reasons; empty when the value is valid
        """
        try:
            self._adapter.validate_python(value)
        except ValidationError as e:
            return [_format_error(error) for error in e.errors()]
        return []

    def describe(self, description: str):
        """Return a copy of this schema carrying a description."""
        return replace(self, description=description)

    @property
    def is_optional(self) -> bool:
        return False


def _format_error(error: dict[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ()))
    if location:
        return f"{location}: {error['msg']}"
    return error["msg"]


# =============================================================================
# Variants
# =============================================================================


@dataclass(frozen=True)
class StringSchema(ValidationSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.STRING

    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    description: str | None = None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        return Annotated[
            str,
            StringConstraints(
                min_length=self.min_length,
                max_length=self.max_length,
                pattern=self.pattern,
            ),
        ]


@dataclass(frozen=True)
class NumberSchema(ValidationSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.NUMBER

    minimum: float | None = None
    maximum: float | None = None
    integer: bool = False
    description: str | None = None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        base = int if self.integer else float
        return Annotated[base, Field(ge=self.minimum, le=self.maximum)]


@dataclass(frozen=True)
class BooleanSchema(ValidationSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.BOOLEAN

    description: str | None = None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        return bool


@dataclass(frozen=True)
class ObjectSchema(ValidationSchema):
    """
    Object with named fields. A field is required unless its schema is
    wrapped in optional().
    """

    kind: ClassVar[SchemaKind] = SchemaKind.OBJECT

    fields: dict[str, ValidationSchema] = field(default_factory=dict)
    description: str | None = None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        annotations: dict[str, Any] = {}
        for key, schema in self.fields.items():
            inner = schema_annotation(schema, seen | {id(self)})
            annotations[key] = NotRequired[inner] if schema_is_optional(schema) else inner
        typed = TypedDict("ObjectArguments", annotations)
        typed.__pydantic_config__ = _STRICT
        return typed


@dataclass(frozen=True)
class ArraySchema(ValidationSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.ARRAY

    items: Any = None
    description: str | None = None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        return list[schema_annotation(self.items, seen | {id(self)})]


@dataclass(frozen=True)
class EnumSchema(ValidationSchema):
    kind: ClassVar[SchemaKind] = SchemaKind.ENUM

    values: tuple[str, ...] = ()
    description: str | None = None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        return Literal[self.values or (ENUM_PLACEHOLDER,)]


@dataclass(frozen=True)
class UnionSchema(ValidationSchema):
    """Any of several schemas. Validation checks every option."""

    kind: ClassVar[SchemaKind] = SchemaKind.UNION

    options: tuple[Any, ...] = ()
    description: str | None = None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        if not self.options:
            return Any
        path = seen | {id(self)}
        return Union[tuple(schema_annotation(option, path) for option in self.options)]


@dataclass(frozen=True)
class OptionalSchema(ValidationSchema):
    """
    Marks a schema as optional. ``default`` is substituted when the
    argument is missing from a call.
    """

    kind: ClassVar[SchemaKind] = SchemaKind.OPTIONAL

    inner: Any = None
    default: Any = None
    description: str | None = None

    def annotation(self, seen: frozenset[int] = frozenset()) -> Any:
        return Optional[schema_annotation(self.inner, seen | {id(self)})]

    @property
    def is_optional(self) -> bool:
        return True


def schema_annotation(schema: Any, seen: frozenset[int] = frozenset()) -> Any:
    """
    Annotation for any schema. Opaque objects, and schemas already on the
    current path, accept anything.
    """
    if isinstance(schema, ValidationSchema) and id(schema) not in seen:
        return schema.annotation(seen)
    return Any


def schema_is_optional(schema: Any) -> bool:
    return isinstance(schema, ValidationSchema) and schema.is_optional


# =============================================================================
# Constructors
# =============================================================================


def string(
    *,
    min_length: int | None = None,
    max_length: int | None = None,
    pattern: str | None = None,
    description: str | None = None,
) -> StringSchema:
    return StringSchema(
        min_length=min_length,
        max_length=max_length,
        pattern=pattern,
        description=description,
    )


def number(
    *,
    minimum: float | None = None,
    maximum: float | None = None,
    description: str | None = None,
) -> NumberSchema:
    return NumberSchema(minimum=minimum, maximum=maximum, description=description)


def integer(
    *,
    minimum: int | None = None,
    maximum: int | None = None,
    description: str | None = None,
) -> NumberSchema:
    return NumberSchema(minimum=minimum, maximum=maximum, integer=True, description=description)


def boolean(*, description: str | None = None) -> BooleanSchema:
    return BooleanSchema(description=description)


def obj(fields: dict[str, Any] | None = None, *, description: str | None = None) -> ObjectSchema:
    return ObjectSchema(fields=dict(fields or {}), description=description)


def array(items: Any, *, description: str | None = None) -> ArraySchema:
    return ArraySchema(items=items, description=description)


def enum(values: Any, *, description: str | None = None) -> EnumSchema:
    return EnumSchema(values=tuple(values), description=description)


def union(*options: Any, description: str | None = None) -> UnionSchema:
    return UnionSchema(options=tuple(options), description=description)


def optional(inner: Any, *, default: Any = None, description: str | None = None) -> OptionalSchema:
    return OptionalSchema(inner=inner, default=default, description=description)
