"""
Tests for ToolServer.

Tests cover:
- Service registration and tool discovery
- Argument validation (required, unknown, per-field, aggregated)
- Argument marshaling and defaults
- Sync and async handlers
- The ToolResult error barrier in invoke()
"""

import dataclasses
from enum import Enum
from unittest.mock import MagicMock

import pytest
from pydantic import BaseModel

from toolwire import (
    ServerConfig,
    ToolExecutionError,
    ToolNotFoundError,
    ToolResult,
    ToolServer,
    ToolValidationError,
    array,
    enum,
    integer,
    number,
    obj,
    optional,
    param,
    string,
    tool,
    union,
)

# =============================================================================
# Test Services
# =============================================================================


class CountingService:
    """Records every handler call."""

    def __init__(self):
        self.calls = []

    @tool("Add two numbers")
    @param(0, number())
    @param(1, number())
    def add(self, a, b):
        self.calls.append((a, b))
        return a + b


class ProfileService:
    @tool("Create a profile")
    @param(0, string(min_length=1))
    @param(1, integer(minimum=0))
    @param(2, optional(enum(["admin", "user"]), default="user"))
    def create(self, name, age, role):
        return {"name": name, "age": age, "role": role}

    @tool("Save settings")
    @param(0, obj({"theme": string(), "size": optional(integer())}))
    def save(self, settings):
        return settings

    @tool("Scale values")
    @param(0, array(number()))
    @param(1, optional(number()))
    def scale(self, values, factor=2):
        return [v * factor for v in values]

    @tool("Identify")
    @param(0, union(string(), integer()))
    def identify(self, key):
        return f"key={key}"


# =============================================================================
# Registration Tests
# =============================================================================


class TestRegistration:
    """Tests for register() and discovery."""

    def test_register_creates_one_instance(self, server):
        first = server.registry.get("add").handler.__self__
        second = server.registry.get("greet").handler.__self__
        assert first is second

    def test_round_trip_listing(self, server):
        tools = server.list_tools()

        assert [t["name"] for t in tools] == ["add", "greet", "explode"]
        assert [len(t["inputSchema"]["properties"]) for t in tools] == [2, 2, 0]
        assert list(tools[1]["inputSchema"]["properties"]) == ["name", "greeting"]
        assert tools[1]["inputSchema"]["required"] == ["name"]

    def test_register_returns_instance(self):
        server = ToolServer()
        instance = server.register(CountingService)
        assert isinstance(instance, CountingService)
        assert server.registry.get("add").handler.__self__ is instance

    def test_register_instance(self):
        server = ToolServer()
        service = CountingService()

        descriptors = server.register_instance(service)

        assert [d.name for d in descriptors] == ["add"]
        assert server.get_tool_list() == ["add"]

    def test_duplicate_name_last_wins(self, server):
        server.register(CountingService)

        assert server.get_tool_list() == ["add", "greet", "explode"]
        assert isinstance(server.registry.get("add").handler.__self__, CountingService)

    def test_get_tool_metadata(self, server):
        descriptor = server.get_tool_metadata("add")
        assert descriptor.description == "Add two numbers"
        assert server.get_tool_metadata("missing") is None

    def test_get_tool_stats(self, server):
        assert server.get_tool_stats() == {
            "totalTools": 3,
            "toolNames": ["add", "greet", "explode"],
        }

    def test_service_without_tools(self):
        class Empty:
            pass

        server = ToolServer()
        server.register(Empty)
        assert server.list_tools() == []

    def test_keyword_overrides_config(self):
        server = ToolServer(ServerConfig(name="base", version="1.0"), version="2.0")
        assert server.name == "base"
        assert server.version == "2.0"


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidation:
    """Tests for argument validation."""

    @pytest.mark.asyncio
    async def test_valid_call(self):
        server = ToolServer()
        service = server.register(CountingService)

        result = await server.execute_tool("add", {"a": 2, "b": 3})

        assert result == 5
        assert service.calls == [(2, 3)]

    @pytest.mark.asyncio
    async def test_missing_required(self):
        server = ToolServer()
        server.register(CountingService)

        with pytest.raises(ToolValidationError) as exc_info:
            await server.execute_tool("add", {"a": 2})

        assert exc_info.value.errors == ["Missing required parameter: b"]
        assert "b" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_null_counts_as_missing(self):
        server = ToolServer()
        server.register(CountingService)

        with pytest.raises(ToolValidationError, match="Missing required parameter: a"):
            await server.execute_tool("add", {"a": None, "b": 3})

    @pytest.mark.asyncio
    async def test_unknown_argument(self):
        server = ToolServer()
        service = server.register(CountingService)

        with pytest.raises(ToolValidationError) as exc_info:
            await server.execute_tool("add", {"a": 2, "b": 3, "c": 9})

        assert exc_info.value.errors == ["Unknown parameter: c"]
        assert service.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "extra",
        [{"c": 1}, {"A": 1}, {"": None}, {"b ": 2}, {"nested": {"a": 1}}],
    )
    async def test_unknown_keys_never_reach_handler(self, extra):
        server = ToolServer()
        service = server.register(CountingService)

        result = await server.invoke("add", {"a": 1, "b": 2, **extra})

        assert result.is_error
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_handler_double_sees_only_valid_calls(self):
        server = ToolServer()
        server.register(CountingService)
        handler = MagicMock(return_value=3)
        server.registry.register(server.get_tool_metadata("add"), handler)

        await server.invoke("add", {"a": 1, "b": 2, "z": 0})
        handler.assert_not_called()

        result = await server.invoke("add", {"a": 1, "b": 2})
        handler.assert_called_once_with(1, 2)
        assert result.text == "3"

    @pytest.mark.asyncio
    async def test_tool_not_found(self):
        server = ToolServer()

        with pytest.raises(ToolNotFoundError) as exc_info:
            await server.execute_tool("missing", {})

        assert str(exc_info.value) == "Tool missing not found"

    @pytest.mark.asyncio
    async def test_type_mismatch(self):
        server = ToolServer()
        service = server.register(CountingService)

        with pytest.raises(ToolValidationError) as exc_info:
            await server.execute_tool("add", {"a": "2", "b": 3})

        assert exc_info.value.errors[0].startswith("Parameter a:")
        assert service.calls == []

    @pytest.mark.asyncio
    async def test_errors_are_aggregated(self):
        server = ToolServer()
        server.register(ProfileService)

        with pytest.raises(ToolValidationError) as exc_info:
            await server.execute_tool(
                "create", {"name": "", "age": -1, "role": "root", "extra": True}
            )

        errors = exc_info.value.errors
        assert "Unknown parameter: extra" in errors
        assert any(e.startswith("Parameter name:") for e in errors)
        assert any(e.startswith("Parameter age:") for e in errors)
        assert any(e.startswith("Parameter role:") for e in errors)

    @pytest.mark.asyncio
    async def test_union_checks_every_option(self):
        server = ToolServer()
        server.register(ProfileService)

        assert await server.execute_tool("identify", {"key": "abc"}) == "key=abc"
        assert await server.execute_tool("identify", {"key": 7}) == "key=7"
        with pytest.raises(ToolValidationError):
            await server.execute_tool("identify", {"key": [1]})

    @pytest.mark.asyncio
    async def test_nested_object_fields_are_validated(self):
        server = ToolServer()
        server.register(ProfileService)

        with pytest.raises(ToolValidationError, match="theme"):
            await server.execute_tool("save", {"settings": {"size": 3}})

    def test_validate_tool(self):
        server = ToolServer()
        server.register(CountingService)

        assert server.validate_tool("add", {"a": 1, "b": 2}).is_valid
        report = server.validate_tool("add", {"a": 1})
        assert not report.is_valid
        assert report.errors == ("Missing required parameter: b",)

    def test_validate_unknown_tool(self):
        report = ToolServer().validate_tool("missing", {})
        assert report.is_valid is False
        assert report.errors == ("Tool missing not found",)

    def test_validate_non_object_arguments(self):
        server = ToolServer()
        server.register(CountingService)

        report = server.validate_tool("add", [1, 2])
        assert report.errors == ("Arguments must be an object, got list",)


# =============================================================================
# Marshaling Tests
# =============================================================================


class TestMarshaling:
    """Tests for argument marshaling."""

    @pytest.mark.asyncio
    async def test_schema_default_is_substituted(self):
        server = ToolServer()
        server.register(ProfileService)

        result = await server.execute_tool("create", {"name": "Ada", "age": 36})

        assert result == {"name": "Ada", "age": 36, "role": "user"}

    @pytest.mark.asyncio
    async def test_handler_default_applies(self):
        server = ToolServer()
        server.register(ProfileService)

        assert await server.execute_tool("scale", {"values": [1, 2]}) == [2, 4]
        assert await server.execute_tool("scale", {"values": [1, 2], "factor": 3}) == [3, 6]

    @pytest.mark.asyncio
    async def test_single_object_parameter(self):
        server = ToolServer()
        server.register(ProfileService)

        result = await server.execute_tool("save", {"settings": {"theme": "dark"}})

        assert result == {"theme": "dark"}

    @pytest.mark.asyncio
    async def test_missing_middle_optional_is_none(self):
        class Service:
            @tool("Join")
            @param(0, string())
            @param(1, optional(string()))
            @param(2, string())
            def join(self, a, sep, b):
                return f"{a}{sep}{b}"

        server = ToolServer()
        server.register(Service)

        assert await server.execute_tool("join", {"a": "x", "b": "y"}) == "xNoney"

    @pytest.mark.asyncio
    async def test_zero_parameter_tool(self):
        class Service:
            @tool("Ping")
            def ping(self):
                return "pong"

        server = ToolServer()
        server.register(Service)

        assert await server.execute_tool("ping") == "pong"
        assert await server.execute_tool("ping", {}) == "pong"


# =============================================================================
# Execution Tests
# =============================================================================


class TestExecution:
    """Tests for invoke() and result normalization."""

    @pytest.mark.asyncio
    async def test_invoke_success(self, server):
        result = await server.invoke("add", {"a": 2, "b": 3})

        assert result.is_error is False
        assert result.text == "5"
        assert result.to_dict() == {"content": [{"type": "text", "text": "5"}]}

    @pytest.mark.asyncio
    async def test_async_handler(self, server, service):
        result = await server.invoke("greet", {"name": "Ada"})

        assert result.text == "Hello, Ada!"
        assert service.calls == [("greet", "Ada", "Hello")]

    @pytest.mark.asyncio
    async def test_handler_exception_is_wrapped(self, server):
        with pytest.raises(ToolExecutionError) as exc_info:
            await server.execute_tool("explode", {})

        assert isinstance(exc_info.value.cause, RuntimeError)
        assert str(exc_info.value) == "boom"

    @pytest.mark.asyncio
    async def test_invoke_handler_exception(self, server):
        result = await server.invoke("explode", {})

        assert result.to_dict() == {
            "content": [{"type": "text", "text": "Error: boom"}],
            "isError": True,
        }

    @pytest.mark.asyncio
    async def test_invoke_not_found(self, server):
        result = await server.invoke("missing", {})

        assert result.is_error
        assert result.text == "Error: Tool missing not found"

    @pytest.mark.asyncio
    async def test_invoke_validation_failure(self, server):
        result = await server.invoke("add", {"a": 2})

        assert result.is_error
        assert result.text == (
            "Error: Invalid arguments for tool add: Missing required parameter: b"
        )

    @pytest.mark.asyncio
    async def test_invoke_with_no_arguments(self, server):
        result = await server.invoke("explode")
        assert result.is_error

    @pytest.mark.asyncio
    async def test_exception_without_message(self):
        class Service:
            @tool("Fail")
            def fail(self):
                raise KeyError()

        server = ToolServer()
        server.register(Service)

        result = await server.invoke("fail", {})
        assert result.text == "Error: KeyError"


# =============================================================================
# Result Serialization Tests
# =============================================================================


class Color(Enum):
    RED = "red"


@dataclasses.dataclass
class Point:
    x: int
    y: int


class Summary(BaseModel):
    total: int


class TestToolResult:
    """Tests for ToolResult.from_value()."""

    def test_string_passes_verbatim(self):
        assert ToolResult.from_value("plain").text == "plain"

    @pytest.mark.parametrize(
        "value,expected",
        [
            (5, "5"),
            (None, "null"),
            (True, "true"),
            ({"sum": 5}, '{"sum": 5}'),
            ([1, "a"], '[1, "a"]'),
            (Color.RED, '"red"'),
            (Point(1, 2), '{"x": 1, "y": 2}'),
            (Summary(total=3), '{"total": 3}'),
        ],
    )
    def test_values_are_serialized(self, value, expected):
        assert ToolResult.from_value(value).text == expected

    def test_error_prefix(self):
        result = ToolResult.error("boom")
        assert result.is_error
        assert result.text == "Error: boom"


# =============================================================================
# Receiver Tests
# =============================================================================


class TestReceiverMarshaling:
    """Arguments line up with the formals whatever the receiver is called."""

    @pytest.mark.asyncio
    async def test_receiver_not_named_self(self):
        class Service:
            @tool("Subtract b from a")
            @param(0, number())
            @param(1, number())
            def subtract(this, a, b):
                return a - b

        server = ToolServer()
        server.register(Service)

        assert await server.execute_tool("subtract", {"a": 10, "b": 4}) == 6

    @pytest.mark.asyncio
    async def test_static_and_class_methods(self):
        class Service:
            @tool("Shout")
            @param(0, string())
            @staticmethod
            def shout(text):
                return text.upper()

            @tool("Name")
            @param(0, string())
            @classmethod
            def name(cls, suffix):
                return cls.__name__ + suffix

        server = ToolServer()
        server.register(Service)

        assert await server.execute_tool("shout", {"text": "hi"}) == "HI"
        assert await server.execute_tool("name", {"suffix": "!"}) == "Service!"


# =============================================================================
# Recursive Schema Tests
# =============================================================================


def tree_schema():
    node = obj({"name": string()})
    node.fields["children"] = optional(array(node))
    return node


class TreeService:
    @tool("Count nodes in a tree")
    @param(0, tree_schema())
    def count(self, tree):
        return 1 + sum(self.count(child) for child in tree.get("children") or [])


class TestRecursiveSchema:
    """Tools whose parameter schema contains itself."""

    def test_listing(self):
        server = ToolServer()
        server.register(TreeService)

        schema = server.list_tools()[0]["inputSchema"]["properties"]["tree"]
        assert schema["required"] == ["name"]
        assert schema["properties"]["children"]["items"] == {"type": "string"}

    @pytest.mark.asyncio
    async def test_invoke(self):
        server = ToolServer()
        server.register(TreeService)

        result = await server.invoke(
            "count", {"tree": {"name": "root", "children": [{"name": "leaf"}]}}
        )

        assert result.is_error is False
        assert result.text == "2"

    def test_validate_reports_missing_field(self):
        server = ToolServer()
        server.register(TreeService)

        report = server.validate_tool("count", {"tree": {"children": []}})

        assert report.is_valid is False
        assert any("name" in error for error in report.errors)
