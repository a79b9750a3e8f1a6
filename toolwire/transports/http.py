"""
HTTP-streaming transport.

Serves JSON-RPC messages POSTed to ``http://<host>:<port><path>``
(default path ``/mcp``) through a FastAPI application run by uvicorn.

Responses:
    POST <path>, valid JSON        -> 200 JSON-RPC response
    POST <path>, notification      -> 202, empty body
    POST <path>, malformed JSON    -> 400 {"error": "Invalid JSON"}
    any other method or path       -> 404
    request after stop() began     -> 503 {"error": "Transport closed"}
    unexpected failure             -> 500 {"error", "message"}

Requests are handled concurrently. stop() closes the channel before the
listener; requests already in flight are not awaited.
"""

from __future__ import annotations

import asyncio
import json
import logging
import socket
from typing import TYPE_CHECKING, Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from toolwire.config import HTTPTransportOptions
from toolwire.errors import TransportError

from .base import BaseTransport, TransportStatus, TransportType

if TYPE_CHECKING:
    from toolwire.protocol import MessageHandler

logger = logging.getLogger(__name__)

_ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS"]


class ErrorBarrierMiddleware:
    """
    Turns unexpected exceptions into a 500 JSON response.

    If the response has already started, the body is terminated instead
    of writing a second set of headers.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers_sent = False

        async def tracking_send(message: Message) -> None:
            nonlocal headers_sent
            if message["type"] == "http.response.start":
                headers_sent = True
            await send(message)

        try:
            await self.app(scope, receive, tracking_send)
        except Exception as e:
            logger.exception(f"[http] Error handling request: {e}")
            if headers_sent:
                await send({"type": "http.response.body", "body": b"", "more_body": False})
                return

            body = json.dumps({"error": "Internal server error", "message": str(e)}).encode()
            await send(
                {
                    "type": "http.response.start",
                    "status": 500,
                    "headers": [
                        (b"content-type", b"application/json"),
                        (b"content-length", str(len(body)).encode()),
                    ],
                }
            )
            await send({"type": "http.response.body", "body": body})


class HTTPChannel:
    """
    The request-handling side of the HTTP transport.

    Owns the ASGI application; the listener lives in HTTPTransport.
    """

    def __init__(self, path: str = "/mcp"):
        self.path = path
        self._handler: MessageHandler | None = None
        self._closed = False
        self.app = self._build_app()

    @property
    def closed(self) -> bool:
        return self._closed

    def attach(self, handler: MessageHandler) -> None:
        self._handler = handler

    async def close(self) -> None:
        self._closed = True

    def _build_app(self) -> FastAPI:
        app = FastAPI(
            title="toolwire",
            docs_url=None,
            redoc_url=None,
            openapi_url=None,
        )
        app.add_middleware(ErrorBarrierMiddleware)
        app.add_api_route(
            "/{full_path:path}",
            self._endpoint,
            methods=_ALL_METHODS,
            include_in_schema=False,
        )
        return app

    async def _endpoint(self, request: Request) -> Response:
        if request.method != "POST" or request.url.path != self.path:
            return Response(status_code=404)

        body = await request.body()
        try:
            message = json.loads(body)
        except ValueError:
            return JSONResponse({"error": "Invalid JSON"}, status_code=400)

        return await self.handle_message(message)

    async def handle_message(self, message: Any) -> Response:
        if self._closed or self._handler is None:
            return JSONResponse({"error": "Transport closed"}, status_code=503)

        response = await self._handler.handle_message(message)
        if response is None:
            return Response(status_code=202)
        return JSONResponse(response)


class HTTPTransport(BaseTransport):
    """
    Transport serving JSON-RPC over HTTP POST.

    Args:
        options: Listener settings; a port of 0 picks a free port
    """

    def __init__(self, options: HTTPTransportOptions | dict[str, Any] | None = None):
        if isinstance(options, dict):
            options = HTTPTransportOptions(**options)
        self._options = options or HTTPTransportOptions()
        self._channel: HTTPChannel | None = None
        self._server: uvicorn.Server | None = None
        self._socket: socket.socket | None = None
        self._serve_task: asyncio.Task | None = None
        self._running = False

    @property
    def type(self) -> str:
        return TransportType.HTTP.value

    @property
    def options(self) -> HTTPTransportOptions:
        return self._options

    @property
    def channel(self) -> HTTPChannel | None:
        return self._channel

    @property
    def port(self) -> int:
        """Bound port once started, else the configured port."""
        if self._socket is not None:
            return self._socket.getsockname()[1]
        return self._options.port

    @property
    def url(self) -> str:
        return f"http://{self._options.host}:{self.port}{self._options.path}"

    async def create_channel(self, handler: MessageHandler) -> HTTPChannel:
        self._channel = HTTPChannel(path=self._options.path)
        return self._channel

    async def start(self, handler: MessageHandler, channel: HTTPChannel) -> None:
        if channel.closed:
            raise TransportError(self.type, "Cannot start on a closed channel")

        channel.attach(handler)
        self._channel = channel
        self._socket = self._bind()

        config = uvicorn.Config(
            channel.app,
            log_level=self._options.log_level,
            lifespan="off",
            timeout_graceful_shutdown=self._options.shutdown_timeout,
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(
            self._server.serve(sockets=[self._socket]),
            name="toolwire-http",
        )

        while not self._server.started:
            if self._serve_task.done():
                error = self._serve_task.exception()
                self._release_socket()
                raise TransportError(self.type, f"Listener failed to start: {error}")
            await asyncio.sleep(0.01)

        self._running = True
        logger.info(f"[http] Listening on {self.url}")

    async def stop(self, channel: HTTPChannel | None = None) -> None:
        channel = channel or self._channel
        if channel is not None:
            await channel.close()

        server, self._server = self._server, None
        task, self._serve_task = self._serve_task, None
        if server is not None:
            # Open connections are dropped, not drained
            server.should_exit = True
            server.force_exit = True
        if task is not None:
            done, _ = await asyncio.wait({task}, timeout=self._options.shutdown_timeout + 1)
            if not done:
                logger.warning("[http] Listener did not close in time; cancelling it")
                task.cancel()
                await asyncio.wait({task})

        self._release_socket()

        if self._running:
            logger.info("[http] Transport stopped")
        self._running = False

    async def wait_closed(self) -> None:
        if self._serve_task is not None:
            await asyncio.wait({self._serve_task})

    def status(self) -> TransportStatus:
        return TransportStatus(
            type=self.type,
            is_running=self._running,
            details={
                "transportType": self.type,
                "description": "HTTP transport",
                "host": self._options.host,
                "port": self.port,
                "path": self._options.path,
                "url": self.url,
                "hasListener": self._server is not None,
                "hasChannel": self._channel is not None and not self._channel.closed,
            },
        )

    def _bind(self) -> socket.socket:
        family = socket.AF_INET6 if ":" in self._options.host else socket.AF_INET
        sock = socket.socket(family, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self._options.host, self._options.port))
        except OSError as e:
            sock.close()
            raise TransportError(
                self.type,
                f"Cannot listen on {self._options.host}:{self._options.port}: {e}",
            ) from e
        return sock

    def _release_socket(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
