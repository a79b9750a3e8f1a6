"""
Toolwire Transport Layer.

Transports bridge an external request source to a ToolServer:

- StdioTransport: newline-delimited JSON over stdin/stdout
- HTTPTransport: JSON-RPC over HTTP POST (FastAPI + uvicorn)
- TransportManager: factories plus the single current transport

Adding a transport:
    class MyTransport(BaseTransport):
        @property
        def type(self) -> str:
            return "custom"

        async def create_channel(self, handler): ...
        async def start(self, handler, channel): ...
        async def stop(self, channel): ...
        def status(self) -> TransportStatus: ...

    manager.register_transport("custom", lambda config: MyTransport())
"""

from .base import BaseTransport, TransportStatus, TransportType
from .http import ErrorBarrierMiddleware, HTTPChannel, HTTPTransport
from .manager import TransportFactory, TransportManager
from .stdio import StdioChannel, StdioTransport

__all__ = [
    # Contract
    "BaseTransport",
    "TransportStatus",
    "TransportType",
    # Implementations
    "StdioChannel",
    "StdioTransport",
    "HTTPChannel",
    "HTTPTransport",
    "ErrorBarrierMiddleware",
    # Manager
    "TransportFactory",
    "TransportManager",
]
