"""
Transport contract.

A transport bridges an external request source to a MessageHandler
(normally a ToolServer). Lifecycle:

    channel = await transport.create_channel(handler)
    await transport.start(handler, channel)
    ...
    await transport.stop(channel)    # idempotent
    transport.status()               # TransportStatus

The channel is the live, transport-specific connection. Transports are
single-use: create a new one to serve again after stop().
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from toolwire.protocol import MessageHandler


class TransportType(str, Enum):
    """Built-in transport types."""

    STDIO = "stdio"
    HTTP = "http"


@dataclass(frozen=True, slots=True)
class TransportStatus:
    """
    Snapshot of a transport's state.

    Attributes:
        type: Transport type value
        is_running: Whether the transport is serving requests
        details: Transport-specific information
    """

    type: str
    is_running: bool
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "isRunning": self.is_running,
            "details": dict(self.details),
        }


class BaseTransport(ABC):
    """Base class for all transports."""

    @property
    @abstractmethod
    def type(self) -> str:
        """Transport type value, e.g. "stdio"."""
        ...

    @abstractmethod
    async def create_channel(self, handler: MessageHandler) -> Any:
        """Create the transport-specific channel."""
        ...

    @abstractmethod
    async def start(self, handler: MessageHandler, channel: Any) -> None:
        """
        Wire the handler to the channel and begin serving.

        Raises:
            TransportError: If the channel cannot be connected
        """
        ...

    @abstractmethod
    async def stop(self, channel: Any) -> None:
        """Stop serving. Calling stop() more than once is a no-op."""
        ...

    @abstractmethod
    def status(self) -> TransportStatus:
        ...

    @property
    def is_running(self) -> bool:
        return self.status().is_running

    async def wait_closed(self) -> None:
        """Wait until the transport stops serving on its own."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} type={self.type} running={self.is_running}>"
