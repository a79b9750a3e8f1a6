"""
Standard-stream transport.

Reads newline-delimited JSON-RPC messages from stdin and writes one JSON
response per line to stdout. Messages are handled strictly one at a
time, in arrival order. Logs must never go to stdout while this
transport is running.

Stdin is read with a MAX_LINE_BYTES line limit. A longer line is
dropped and answered with an Invalid Request error; reading continues
with the next line.

The reader and writer can be injected, which is how the tests drive it:

    reader = asyncio.StreamReader()
    transport = StdioTransport(reader=reader, writer=io.StringIO())
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sys
from typing import TYPE_CHECKING, Any, TextIO

from toolwire.errors import TransportError
from toolwire.protocol import INTERNAL_ERROR, INVALID_REQUEST, PARSE_ERROR, error_response

from .base import BaseTransport, TransportStatus, TransportType

if TYPE_CHECKING:
    from toolwire.protocol import MessageHandler

logger = logging.getLogger(__name__)

# Longest accepted line when reading the process's own stdin
MAX_LINE_BYTES = 16 * 1024 * 1024


class StdioChannel:
    """
    Duplex line channel over a stream reader and a text writer.

    Args:
        reader: Source of request lines; stdin when None
        writer: Destination of response lines; stdout when None
    """

    def __init__(
        self,
        reader: asyncio.StreamReader | None = None,
        writer: TextIO | None = None,
    ):
        self._reader = reader
        self._writer = writer
        self._pipe: asyncio.BaseTransport | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def open(self) -> None:
        """Connect stdin when no reader was injected."""
        if self._reader is not None:
            return
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
        protocol = asyncio.StreamReaderProtocol(reader)
        self._pipe, _ = await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        self._reader = reader

    async def serve(self, handler: MessageHandler) -> None:
        """Answer messages until EOF or close()."""
        if self._reader is None:
            raise TransportError(TransportType.STDIO.value, "Channel is not open")

        while not self._closed:
            line, too_long = await self._read_line()
            if too_long:
                logger.warning("[stdio] Dropped a message longer than the line limit")
                self.send(
                    error_response(None, INVALID_REQUEST, "Invalid Request: message too large")
                )
                if line:
                    continue
            if not line:
                logger.info("[stdio] Input closed")
                break

            text = line.decode("utf-8", errors="replace").strip()
            if not text:
                continue

            try:
                message = json.loads(text)
            except ValueError:
                self.send(error_response(None, PARSE_ERROR, "Parse error"))
                continue

            try:
                response = await handler.handle_message(message)
            except Exception as e:
                logger.exception(f"[stdio] Handler failed: {e}")
                request_id = message.get("id") if isinstance(message, dict) else None
                response = error_response(request_id, INTERNAL_ERROR, str(e) or "Internal error")

            if response is not None:
                self.send(response)

    async def _read_line(self) -> tuple[bytes, bool]:
        """
        Read one line; an empty result means EOF.

        A line longer than the reader's limit is consumed and dropped, and
        reported as (b"\n", True), or (b"", True) when input ends inside it.
        """
        too_long = False
        while True:
            try:
                line = await self._reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                return (b"" if too_long else e.partial), too_long
            except asyncio.LimitOverrunError as e:
                too_long = True
                await self._reader.readexactly(e.consumed)
                continue
            return (b"\n" if too_long else line), too_long

    def send(self, message: dict[str, Any]) -> None:
        if self._closed:
            return
        writer = self._writer or sys.stdout
        writer.write(json.dumps(message, ensure_ascii=False) + "\n")
        writer.flush()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._pipe is not None:
            self._pipe.close()
            self._pipe = None


class StdioTransport(BaseTransport):
    """
    Transport over the process's standard streams.

    One long-lived channel per process. stop() closes it and may be
    called repeatedly.
    """

    def __init__(
        self,
        *,
        reader: asyncio.StreamReader | None = None,
        writer: TextIO | None = None,
    ):
        self._reader = reader
        self._writer = writer
        self._channel: StdioChannel | None = None
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def type(self) -> str:
        return TransportType.STDIO.value

    async def create_channel(self, handler: MessageHandler) -> StdioChannel:
        channel = StdioChannel(reader=self._reader, writer=self._writer)
        try:
            await channel.open()
        except (OSError, ValueError) as e:
            raise TransportError(self.type, f"Cannot open standard input: {e}") from e
        self._channel = channel
        return channel

    async def start(self, handler: MessageHandler, channel: StdioChannel) -> None:
        if channel.closed:
            raise TransportError(self.type, "Cannot start on a closed channel")
        self._channel = channel
        self._task = asyncio.create_task(channel.serve(handler), name="toolwire-stdio")
        self._task.add_done_callback(self._on_serve_done)
        self._running = True
        logger.info("[stdio] Transport started")

    def _on_serve_done(self, task: asyncio.Task) -> None:
        self._running = False
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"[stdio] Serve loop failed: {task.exception()}")

    async def stop(self, channel: StdioChannel | None = None) -> None:
        channel = channel or self._channel
        if channel is not None:
            await channel.close()

        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if self._running:
            logger.info("[stdio] Transport stopped")
        self._running = False

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})

    def status(self) -> TransportStatus:
        return TransportStatus(
            type=self.type,
            is_running=self._running,
            details={
                "transportType": self.type,
                "description": "Standard input/output transport",
                "hasChannel": self._channel is not None and not self._channel.closed,
            },
        )
