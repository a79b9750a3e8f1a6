"""
Tests for Schemas.

Tests cover:
- Validation schema constructors and pydantic-backed validation
- SchemaNode serialization and parsing
- Translation of every constructor, including fallbacks
"""

import pytest

from toolwire.schema import (
    ENUM_PLACEHOLDER,
    NodeType,
    SchemaKind,
    SchemaNode,
    array,
    boolean,
    enum,
    integer,
    is_optional,
    number,
    obj,
    optional,
    string,
    translate,
    union,
)

# =============================================================================
# Validation Tests
# =============================================================================


class TestValidation:
    """Tests for ValidationSchema.validate()."""

    def test_valid_values_return_no_errors(self):
        assert string().validate("hello") == []
        assert number().validate(2.5) == []
        assert number().validate(2) == []
        assert boolean().validate(True) == []
        assert array(number()).validate([1, 2, 3]) == []
        assert enum(["red", "green"]).validate("red") == []

    def test_strict_number_rejects_numeric_string(self):
        assert number().validate("5") != []

    def test_strict_boolean_rejects_integer(self):
        assert boolean().validate(1) != []

    def test_integer_rejects_fraction(self):
        assert integer().validate(1.5) != []
        assert integer().validate(3) == []

    def test_number_range(self):
        schema = number(minimum=0, maximum=10)
        assert schema.validate(5) == []
        assert schema.validate(-1) != []
        assert schema.validate(11) != []

    def test_string_constraints(self):
        schema = string(min_length=2, max_length=4, pattern=r"^[a-z]+$")
        assert schema.validate("abc") == []
        assert schema.validate("a") != []
        assert schema.validate("abcde") != []
        assert schema.validate("AB") != []

    def test_enum_rejects_unknown_value(self):
        errors = enum(["red", "green"]).validate("blue")
        assert len(errors) == 1

    def test_union_accepts_any_option(self):
        schema = union(string(), number())
        assert schema.validate("x") == []
        assert schema.validate(3) == []
        assert schema.validate([1]) != []

    def test_object_missing_required_field(self):
        schema = obj({"name": string(), "age": optional(integer())})
        assert schema.validate({"name": "Ada"}) == []
        errors = schema.validate({"age": 3})
        assert any("name" in e for e in errors)

    def test_object_reports_every_bad_field(self):
        schema = obj({"a": number(), "b": number()})
        errors = schema.validate({"a": "x", "b": "y"})
        assert len(errors) == 2

    def test_optional_accepts_none(self):
        assert optional(number()).validate(None) == []

    def test_array_error_mentions_index(self):
        errors = array(number()).validate([1, "two"])
        assert errors and errors[0].startswith("1:")

    def test_describe_returns_copy(self):
        base = string()
        described = base.describe("A name")
        assert described.description == "A name"
        assert base.description is None


# =============================================================================
# SchemaNode Tests
# =============================================================================


class TestSchemaNode:
    """Tests for SchemaNode serialization."""

    def test_leaf_to_dict_omits_unset_fields(self):
        assert SchemaNode(type=NodeType.NUMBER).to_dict() == {"type": "number"}

    def test_object_to_dict(self):
        node = SchemaNode(
            type=NodeType.OBJECT,
            properties={"a": SchemaNode(type=NodeType.STRING)},
            required=("a",),
        )
        assert node.to_dict() == {
            "type": "object",
            "properties": {"a": {"type": "string"}},
            "required": ["a"],
        }

    def test_constraints_use_json_schema_names(self):
        node = SchemaNode(min_length=1, max_length=5, pattern="^a")
        assert node.to_dict() == {
            "type": "string",
            "minLength": 1,
            "maxLength": 5,
            "pattern": "^a",
        }

    def test_from_dict(self):
        node = SchemaNode.from_dict(
            {
                "type": "object",
                "description": "Config",
                "properties": {
                    "theme": {"type": "string", "enum": ["light", "dark"]},
                    "size": {"type": "integer", "minimum": 1},
                },
                "required": ["theme", "missing"],
            }
        )
        assert node.type is NodeType.OBJECT
        assert node.description == "Config"
        assert node.properties["theme"].enum == ("light", "dark")
        assert node.properties["size"].type is NodeType.INTEGER
        assert node.required == ("theme",)

    def test_from_dict_unknown_type_falls_back_to_string(self):
        assert SchemaNode.from_dict({"type": "tuple"}).type is NodeType.STRING

    def test_is_immutable(self):
        node = SchemaNode()
        with pytest.raises(Exception):  # frozen dataclass
            node.type = NodeType.NUMBER


# =============================================================================
# Translator Tests
# =============================================================================


class TestTranslate:
    """Tests for translate()."""

    def test_string_with_constraints(self):
        node = translate(string(min_length=3, max_length=20, pattern=r"^\w+$"))
        assert node.to_dict() == {
            "type": "string",
            "minLength": 3,
            "maxLength": 20,
            "pattern": r"^\w+$",
        }

    def test_number_with_range(self):
        assert translate(number(minimum=0, maximum=1)).to_dict() == {
            "type": "number",
            "minimum": 0,
            "maximum": 1,
        }

    def test_integer(self):
        assert translate(integer()).to_dict() == {"type": "integer"}

    def test_boolean(self):
        assert translate(boolean()).to_dict() == {"type": "boolean"}

    def test_array(self):
        assert translate(array(number())).to_dict() == {
            "type": "array",
            "items": {"type": "number"},
        }

    def test_enum(self):
        assert translate(enum(["red", "green", "blue"])).to_dict() == {
            "type": "string",
            "enum": ["red", "green", "blue"],
        }

    def test_empty_enum_gets_placeholder(self):
        assert translate(enum([])).to_dict() == {
            "type": "string",
            "enum": [ENUM_PLACEHOLDER],
        }

    def test_union_uses_first_option(self):
        assert translate(union(number(), string())).to_dict() == {"type": "number"}

    def test_empty_union_falls_back_to_string(self):
        assert translate(union()).to_dict() == {"type": "string"}

    def test_optional_unwraps(self):
        assert translate(optional(boolean())).to_dict() == {"type": "boolean"}

    def test_optional_default_is_carried(self):
        assert translate(optional(number(), default=10)).to_dict() == {
            "type": "number",
            "default": 10,
        }

    def test_object_fields_and_descriptions(self):
        schema = obj(
            {
                "city": string(description="City name"),
                "days": optional(integer(minimum=1)),
            }
        )
        assert translate(schema).to_dict() == {
            "type": "object",
            "properties": {
                "city": {"type": "string", "description": "City name"},
                "days": {"type": "integer", "minimum": 1},
            },
            "required": ["city"],
        }

    def test_nested_object(self):
        schema = obj({"range": obj({"min": number(), "max": optional(number())})})
        node = translate(schema)
        inner = node.properties["range"]
        assert inner.type is NodeType.OBJECT
        assert inner.required == ("min",)

    def test_description_propagates(self):
        assert translate(number(description="Age")).description == "Age"

    @pytest.mark.parametrize("value", [None, 42, "string", object(), {"type": "number"}])
    def test_unsupported_input_falls_back_to_string(self, value):
        assert translate(value).to_dict() == {"type": "string"}

    def test_unsupported_array_items_fall_back(self):
        assert translate(array(object())).to_dict() == {
            "type": "array",
            "items": {"type": "string"},
        }

    @pytest.mark.parametrize("count", [0, 1, 2, 5])
    def test_required_matches_non_optional_fields(self, count):
        fields = {}
        expected = []
        for i in range(count):
            if i % 2:
                fields[f"f{i}"] = optional(string())
            else:
                fields[f"f{i}"] = number()
                expected.append(f"f{i}")

        node = translate(obj(fields))

        assert set(node.required) == set(expected)
        assert list(node.properties) == list(fields)

    def test_self_referencing_schema_terminates(self):
        schema = obj({})
        schema.fields["self"] = schema

        node = translate(schema)

        assert node.properties["self"].to_dict() == {"type": "string"}

    @pytest.mark.parametrize(
        "schema,expected",
        [
            (string(), NodeType.STRING),
            (number(), NodeType.NUMBER),
            (boolean(), NodeType.BOOLEAN),
            (obj({}), NodeType.OBJECT),
            (array(string()), NodeType.ARRAY),
        ],
    )
    def test_category_matches_constructor(self, schema, expected):
        assert translate(schema).type is expected

    def test_is_optional(self):
        assert is_optional(optional(string())) is True
        assert is_optional(string()) is False
        assert is_optional("opaque") is False

    def test_kinds_are_discriminated(self):
        assert string().kind is SchemaKind.STRING
        assert optional(string()).kind is SchemaKind.OPTIONAL
