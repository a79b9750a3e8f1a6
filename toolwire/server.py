"""
Tool Server: service registration and call dispatch.

ToolServer turns decorated service classes into callable tools and
answers list-tools / call-tool requests arriving over a transport.

Call pipeline (invoke):
    1. Look up the tool                      -> ToolNotFoundError
    2. Check required and unknown arguments  -> ToolValidationError
    3. Re-validate each value against its original schema, aggregating
       every failure                         -> ToolValidationError
    4. Marshal arguments into positional order
    5. Call the handler, awaiting it when it is a coroutine
    6. Wrap the outcome in a ToolResult

invoke() is the outermost failure barrier: whatever the handler raises
comes back as a ToolResult with is_error=True.

Usage:
    class Calculator:
        @tool("Add two numbers")
        @param(0, number(), "First operand")
        @param(1, number(), "Second operand")
        def add(self, a, b):
            return a + b

    server = ToolServer(name="calculator", version="1.0.0")
    server.register(Calculator)

    result = await server.invoke("add", {"a": 2, "b": 3})
    result.text  # "5"

    await server.serve(RunOptions(transport="http", port=8000))
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any

from toolwire.config import RunOptions, ServerConfig, TransportConfig
from toolwire.errors import (
    JsonRpcError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolValidationError,
)
from toolwire.protocol import (
    INTERNAL_ERROR,
    METHOD_CALL_TOOL,
    METHOD_INITIALIZE,
    METHOD_LIST_TOOLS,
    METHOD_NOT_FOUND,
    METHOD_PING,
    JsonRpcRequest,
    error_response,
    is_response,
    parse_call_params,
    parse_request,
    success_response,
)
from toolwire.schema import ValidationSchema
from toolwire.tools import (
    RegisteredTool,
    ToolDescriptor,
    ToolRegistry,
    ToolResult,
    get_tool_declarations,
)
from toolwire.transports import TransportManager, TransportStatus

logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass(frozen=True, slots=True)
class ValidationReport:
    """Outcome of validating call arguments."""

    is_valid: bool
    errors: tuple[str, ...] = ()


class ToolServer:
    """
    Registers services and dispatches tool calls.

    All calls to one tool share the single service instance created at
    registration. Calls are not serialized; instance state under
    concurrency is the service's responsibility.
    """

    def __init__(
        self,
        config: ServerConfig | None = None,
        *,
        name: str | None = None,
        version: str | None = None,
        instructions: str | None = None,
        transport_manager: TransportManager | None = None,
    ):
        """
        Initialize the server.

        Args:
            config: Server identity; keyword arguments override its fields
            name: Server name reported to clients
            version: Server version reported to clients
            instructions: Optional instructions reported to clients
            transport_manager: Manager owning the current transport
        """
        config = config or ServerConfig()
        overrides = {
            key: value
            for key, value in (("name", name), ("version", version), ("instructions", instructions))
            if value is not None
        }
        self._config = config.model_copy(update=overrides)
        self._registry = ToolRegistry()
        self._transports = transport_manager or TransportManager()

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def version(self) -> str:
        return self._config.version

    @property
    def config(self) -> ServerConfig:
        return self._config

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    @property
    def transport_manager(self) -> TransportManager:
        return self._transports

    # =========================================================================
    # Registration
    # =========================================================================

    def register(self, service_class: type) -> Any:
        """
        Instantiate a service class and register its tools.

        Exactly one instance is created; every tool of the class is bound
        to it. A tool name registered earlier is replaced.

        Returns:
            The service instance
        """
        instance = service_class()
        self.register_instance(instance)
        return instance

    def register_instance(self, instance: Any) -> list[ToolDescriptor]:
        """
        Register the tools of an already-constructed service.

        Returns:
            Descriptors registered, in declaration order
        """
        declarations = get_tool_declarations(type(instance))
        for attribute, descriptor in declarations:
            self._registry.register(descriptor, getattr(instance, attribute))

        logger.info(
            f"[tool_server] Registered {len(declarations)} tool(s) from {type(instance).__name__}"
        )
        return [descriptor for _, descriptor in declarations]

    # =========================================================================
    # Discovery
    # =========================================================================

    def list_tools(self) -> list[dict[str, Any]]:
        """Tool definitions in tools/list wire shape."""
        return self._registry.to_wire_schemas()

    def get_tools(self) -> list[ToolDescriptor]:
        return self._registry.list_descriptors()

    def get_tool_list(self) -> list[str]:
        return self._registry.list_names()

    def get_tool_metadata(self, name: str) -> ToolDescriptor | None:
        entry = self._registry.get(name)
        return entry.descriptor if entry else None

    def get_tool_stats(self) -> dict[str, Any]:
        return {
            "totalTools": len(self._registry),
            "toolNames": self.get_tool_list(),
        }

    # =========================================================================
    # Validation
    # =========================================================================

    def validate_tool(self, name: str, arguments: Any) -> ValidationReport:
        """
        Validate arguments for a tool without calling it.

        An unknown tool yields an invalid report rather than an error.
        """
        entry = self._registry.get(name)
        if entry is None:
            return ValidationReport(is_valid=False, errors=(f"Tool {name} not found",))

        errors = self._validate_arguments(entry, arguments)
        return ValidationReport(is_valid=not errors, errors=tuple(errors))

    def _validate_arguments(self, entry: RegisteredTool, arguments: Any) -> list[str]:
        if not isinstance(arguments, dict):
            return [f"Arguments must be an object, got {type(arguments).__name__}"]

        descriptor = entry.descriptor
        errors: list[str] = []

        for parameter in descriptor.parameters:
            if parameter.required and arguments.get(parameter.name) is None:
                errors.append(f"Missing required parameter: {parameter.name}")

        known = {parameter.name for parameter in descriptor.parameters}
        for key in arguments:
            if key not in known:
                errors.append(f"Unknown parameter: {key}")

        for parameter in descriptor.parameters:
            value = arguments.get(parameter.name)
            if value is None or not isinstance(parameter.schema, ValidationSchema):
                continue
            for reason in parameter.schema.validate(value):
                errors.append(f"Parameter {parameter.name}: {reason}")

        return errors

    # =========================================================================
    # Execution
    # =========================================================================

    async def execute_tool(self, name: str, arguments: dict[str, Any] | None = None) -> Any:
        """
        Validate, marshal and call a tool.

        Returns:
            The handler's return value

        Raises:
            ToolNotFoundError: If no tool has this name
            ToolValidationError: If the arguments are invalid
            ToolExecutionError: If the handler raises
        """
        entry = self._registry.get(name)
        if entry is None:
            raise ToolNotFoundError(name)

        if arguments is None:
            arguments = {}

        errors = self._validate_arguments(entry, arguments)
        if errors:
            logger.warning(f"[tool_server] Invalid arguments for {name}: {'; '.join(errors)}")
            raise ToolValidationError(name, errors)

        args = self._marshal_arguments(entry, arguments)

        try:
            result = entry.handler(*args)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning(f"[tool_server] Tool {name} raised {type(e).__name__}: {e}")
            raise ToolExecutionError(name, e) from e

        return result

    async def invoke(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """
        Call a tool and normalize the outcome. Never raises for tool
        failures.

        Returns:
            ToolResult; is_error is set for unknown tools, invalid
            arguments and handler exceptions
        """
        try:
            value = await self.execute_tool(name, arguments)
            return ToolResult.from_value(value)
        except Exception as e:
            return ToolResult.error(str(e) or type(e).__name__)

    def _marshal_arguments(self, entry: RegisteredTool, arguments: dict[str, Any]) -> list[Any]:
        """
        Build the positional argument list in declaration order.

        Missing optional arguments take the schema default, else the
        handler's own default, else None. Trailing missing arguments are
        omitted so the handler's defaults apply.
        """
        descriptor = entry.descriptor
        parameters = descriptor.parameters

        if descriptor.expects_single_object:
            # A lone object parameter receives the object supplied under its name
            value = arguments.get(parameters[0].name)
            if isinstance(value, dict):
                return [value]

        args: list[Any] = []
        for parameter in parameters:
            value = arguments.get(parameter.name)
            if value is not None:
                args.append(value)
            elif parameter.default is not None:
                args.append(parameter.default)
            elif not parameter.required:
                args.append(_MISSING)
            else:
                raise ToolValidationError(
                    descriptor.name,
                    [f"Missing required parameter: {parameter.name}"],
                    parameter_name=parameter.name,
                )

        return self._fill_missing(entry, args)

    def _fill_missing(self, entry: RegisteredTool, args: list[Any]) -> list[Any]:
        while args and args[-1] is _MISSING:
            args.pop()
        return [
            entry.defaults.get(index) if value is _MISSING else value
            for index, value in enumerate(args)
        ]

    # =========================================================================
    # Protocol
    # =========================================================================

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        """
        Answer a decoded JSON-RPC message.

        Returns:
            Response dict, or None for notifications and peer responses
        """
        if is_response(message):
            return None

        try:
            request = parse_request(message)
        except JsonRpcError as e:
            request_id = message.get("id") if isinstance(message, dict) else None
            return error_response(request_id, e.code, e.message, e.data)

        try:
            result = await self._dispatch(request)
        except JsonRpcError as e:
            if request.is_notification:
                return None
            return error_response(request.id, e.code, e.message, e.data)
        except Exception as e:
            logger.exception(f"[tool_server] Error handling {request.method}: {e}")
            if request.is_notification:
                return None
            return error_response(request.id, INTERNAL_ERROR, f"Internal error: {e}")

        if request.is_notification:
            return None
        return success_response(request.id, result)

    async def _dispatch(self, request: JsonRpcRequest) -> dict[str, Any]:
        method = request.method

        if method == METHOD_INITIALIZE:
            return self._initialize_result(request.params)
        if method == METHOD_PING:
            return {}
        if method == METHOD_LIST_TOOLS:
            return {"tools": self.list_tools()}
        if method == METHOD_CALL_TOOL:
            params = parse_call_params(request.params)
            result = await self.invoke(params.name, params.arguments)
            return result.to_dict()
        if method.startswith("notifications/"):
            return {}

        raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    def _initialize_result(self, params: dict[str, Any]) -> dict[str, Any]:
        requested = params.get("protocolVersion")
        result: dict[str, Any] = {
            "protocolVersion": requested if isinstance(requested, str) else self._config.protocol_version,
            "capabilities": {"tools": {}},
            "serverInfo": {"name": self.name, "version": self.version},
        }
        if self._config.instructions:
            result["instructions"] = self._config.instructions
        return result

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def run(self, options: RunOptions | None = None, **overrides: Any) -> None:
        """
        Create, install and start a transport.

        Args:
            options: Transport selection; keyword arguments build one
                when omitted (e.g. ``run(transport="http", port=0)``)

        Raises:
            TransportError: If the transport cannot start
        """
        options = options or RunOptions(**overrides)
        transport = self._transports.create_transport(_transport_config(options))
        self._transports.set_current(transport)
        await self._transports.start_current(self)

        logger.info(
            f"[tool_server] {self.name} v{self.version} started "
            f"(transport={transport.type}, tools={len(self._registry)})"
        )

    async def serve(self, options: RunOptions | None = None, **overrides: Any) -> None:
        """Run until the transport finishes or the task is cancelled."""
        await self.run(options, **overrides)
        transport = self._transports.current
        try:
            if transport is not None:
                await transport.wait_closed()
        finally:
            await self.stop_server()

    async def stop_server(self) -> None:
        await self._transports.stop_current()

    def is_server_running(self) -> bool:
        status = self._transports.status()
        return status.is_running if status else False

    def get_transport_status(self) -> TransportStatus | None:
        return self._transports.status()

    def get_transport_stats(self) -> dict[str, Any]:
        return self._transports.get_stats()


def _transport_config(options: RunOptions) -> TransportConfig:
    if options.transport == "http":
        return TransportConfig(
            type="http",
            options={"host": options.host, "port": options.port, "path": options.path},
        )
    return TransportConfig(type=options.transport)
