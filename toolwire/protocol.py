"""
JSON-RPC 2.0 envelope for the list-tools / call-tool protocol.

Only the subset needed to expose tools is understood:

    initialize                 -> server identity and capabilities
    notifications/initialized  -> acknowledged, no response
    ping                       -> empty result
    tools/list                 -> {"tools": [...]}
    tools/call                 -> ToolResult wire shape

Transports hand decoded messages to a MessageHandler and write back
whatever it returns (None means "no response", e.g. for notifications).
"""

from __future__ import annotations

from typing import Any, Literal, Protocol, runtime_checkable

from pydantic import BaseModel, Field, ValidationError

from toolwire.errors import JsonRpcError

JSONRPC_VERSION = "2.0"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

METHOD_INITIALIZE = "initialize"
METHOD_INITIALIZED = "notifications/initialized"
METHOD_PING = "ping"
METHOD_LIST_TOOLS = "tools/list"
METHOD_CALL_TOOL = "tools/call"


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request or notification."""

    jsonrpc: Literal["2.0"]
    method: str
    id: int | str | None = None
    params: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class CallToolParams(BaseModel):
    """Parameters of a tools/call request."""

    name: str
    arguments: dict[str, Any] | None = None


@runtime_checkable
class MessageHandler(Protocol):
    """Anything that can answer a decoded JSON-RPC message."""

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        ...


def parse_request(message: Any) -> JsonRpcRequest:
    """
    Validate a decoded message as a request.

    Raises:
        JsonRpcError: INVALID_REQUEST if the envelope is malformed
    """
    if not isinstance(message, dict):
        raise JsonRpcError(INVALID_REQUEST, "Invalid Request: expected a JSON object")
    try:
        return JsonRpcRequest.model_validate(message)
    except ValidationError as e:
        raise JsonRpcError(INVALID_REQUEST, f"Invalid Request: {e.errors()[0]['msg']}") from e


def parse_call_params(params: dict[str, Any]) -> CallToolParams:
    """
    Raises:
        JsonRpcError: INVALID_PARAMS if name/arguments are malformed
    """
    try:
        return CallToolParams.model_validate(params)
    except ValidationError as e:
        reasons = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise JsonRpcError(INVALID_PARAMS, f"Invalid params: {reasons}") from e


def is_response(message: Any) -> bool:
    """Whether a message is a response sent by the peer (no method)."""
    return (
        isinstance(message, dict)
        and "method" not in message
        and ("result" in message or "error" in message)
    )


def success_response(request_id: int | str | None, result: dict[str, Any]) -> dict[str, Any]:
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "result": result}


def error_response(
    request_id: int | str | None,
    code: int,
    message: str,
    data: Any = None,
) -> dict[str, Any]:
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": request_id, "error": error}
