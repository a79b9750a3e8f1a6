"""
Transport Manager.

Creates transports from configuration and owns the single current one.

Ownership handoff:
    set_current() refuses to replace a transport that is still running;
    stop it first (stop_current()). This keeps at most one live channel
    per manager.

Usage:
    manager = TransportManager()
    transport = manager.create_transport(TransportConfig(type="http", options={"port": 0}))
    manager.set_current(transport)
    await manager.start_current(server)
    manager.status()        # TransportStatus
    await manager.stop_current()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from toolwire.config import TransportConfig
from toolwire.errors import TransportError

from .base import BaseTransport, TransportStatus, TransportType
from .http import HTTPTransport
from .stdio import StdioTransport

if TYPE_CHECKING:
    from toolwire.protocol import MessageHandler

logger = logging.getLogger(__name__)

TransportFactory = Callable[[TransportConfig], BaseTransport]


class TransportManager:
    """
    Registry of transport factories plus the current transport slot.
    """

    def __init__(self) -> None:
        self._factories: dict[str, TransportFactory] = {}
        self._current: BaseTransport | None = None
        self._channel: Any = None
        self._register_builtin_transports()

    def _register_builtin_transports(self) -> None:
        self._factories[TransportType.STDIO.value] = lambda config: StdioTransport()
        self._factories[TransportType.HTTP.value] = lambda config: HTTPTransport(config.options)

    def register_transport(self, transport_type: str, factory: TransportFactory) -> None:
        """
        Register a factory for a transport type.

        Replaces any factory already registered for the type.
        """
        transport_type = _type_value(transport_type)
        if transport_type in self._factories:
            logger.info(f"[transport_manager] Replacing transport factory: {transport_type}")
        self._factories[transport_type] = factory

    def create_transport(self, config: TransportConfig) -> BaseTransport:
        """
        Build a transport for ``config.type``.

        Raises:
            TransportError: If the type is unknown or the factory fails
        """
        transport_type = _type_value(config.type)
        factory = self._factories.get(transport_type)
        if factory is None:
            raise TransportError(transport_type, "Unsupported transport type")

        try:
            return factory(config)
        except Exception as e:
            raise TransportError(transport_type, f"Failed to create transport: {e}") from e

    def set_current(self, transport: BaseTransport) -> None:
        """
        Install the current transport.

        Raises:
            TransportError: If the current transport is still running
        """
        previous = self._current
        if previous is not None and previous is not transport and previous.is_running:
            raise TransportError(
                previous.type,
                "Current transport is still running; stop it before installing another",
            )
        self._current = transport
        self._channel = None
        logger.info(f"[transport_manager] Current transport: {transport.type}")

    @property
    def current(self) -> BaseTransport | None:
        return self._current

    @property
    def channel(self) -> Any:
        return self._channel

    async def start_current(self, handler: MessageHandler) -> None:
        """
        Create a channel for the current transport and start it.

        Raises:
            TransportError: If no transport is set or it fails to start
        """
        transport = self._current
        if transport is None:
            raise TransportError("none", "No current transport set")

        try:
            channel = await transport.create_channel(handler)
            await transport.start(handler, channel)
        except TransportError:
            self._channel = None
            raise
        except Exception as e:
            self._channel = None
            raise TransportError(transport.type, f"Failed to start transport: {e}") from e

        self._channel = channel
        logger.info(f"[transport_manager] Transport {transport.type} started")

    async def stop_current(self) -> None:
        """
        Stop the current transport and clear the slot.

        Errors raised while stopping are logged; the slot is cleared
        regardless.
        """
        transport = self._current
        if transport is None or self._channel is None:
            return

        try:
            await transport.stop(self._channel)
            logger.info(f"[transport_manager] Transport {transport.type} stopped")
        except Exception as e:
            logger.error(f"[transport_manager] Error stopping transport {transport.type}: {e}", exc_info=True)
        finally:
            self._current = None
            self._channel = None

    def status(self) -> TransportStatus | None:
        if self._current is None:
            return None
        return self._current.status()

    def get_registered_transport_types(self) -> list[str]:
        return list(self._factories.keys())

    def is_transport_type_registered(self, transport_type: str) -> bool:
        return _type_value(transport_type) in self._factories

    def get_stats(self) -> dict[str, Any]:
        stats: dict[str, Any] = {
            "registeredTypes": self.get_registered_transport_types(),
            "isRunning": self._current is not None and self._current.is_running,
        }
        if self._current is not None:
            stats["currentType"] = self._current.type
        return stats

    async def reset(self) -> None:
        """Stop the current transport (if started) and clear the slot."""
        await self.stop_current()
        self._current = None
        self._channel = None


def _type_value(transport_type: Any) -> str:
    if isinstance(transport_type, TransportType):
        return transport_type.value
    return str(transport_type)
