"""
Configuration models for Toolwire.

Plain pydantic models; the package never reads the environment itself.
Host applications build these from whatever source they like.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_PROTOCOL_VERSION = "2025-03-26"
DEFAULT_HTTP_PATH = "/mcp"


class ServerConfig(BaseModel):
    """
    Identity reported to clients during the initialize handshake.
    """

    name: str = Field("toolwire", description="Server name reported in serverInfo")
    version: str = Field("0.0.1", description="Server version reported in serverInfo")
    instructions: str | None = Field(None, description="Optional usage instructions for clients")
    protocol_version: str = Field(
        DEFAULT_PROTOCOL_VERSION,
        description="Protocol revision answered when the client does not ask for one",
    )


class RunOptions(BaseModel):
    """
    Runtime transport selection for ToolServer.run().
    """

    transport: Literal["stdio", "http"] = "stdio"
    host: str = "127.0.0.1"
    port: int = Field(8000, ge=0, le=65535)
    path: str = DEFAULT_HTTP_PATH


class HTTPTransportOptions(BaseModel):
    """
    Listener settings for the HTTP-streaming transport.

    A port of 0 lets the operating system pick a free port; the bound
    port is reported in the transport status details.
    In-flight requests are not awaited when the transport stops.
    """

    host: str = "127.0.0.1"
    port: int = Field(8000, ge=0, le=65535)
    path: str = DEFAULT_HTTP_PATH
    log_level: str = "warning"
    shutdown_timeout: float = Field(
        1.0,
        ge=0,
        description="Seconds stop() gives the listener to close before cancelling it",
    )

    @field_validator("path")
    @classmethod
    def _path_is_absolute(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("path must start with '/'")
        return value


class TransportConfig(BaseModel):
    """
    Transport selection passed to TransportManager.create_transport().

    Attributes:
        type: Transport type value ("stdio", "http" or a custom type)
        options: Transport-specific options
    """

    type: str
    options: dict[str, Any] = Field(default_factory=dict)
