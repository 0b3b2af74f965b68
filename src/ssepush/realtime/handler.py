"""Request-scoped adapter: one stream client per inbound request.

``EventSource`` is an ASGI application. For every HTTP request it:

1. Binds a ``Client`` to the response (500 if the transport can't stream).
2. Calls the handler with the request and the client. The client is also
   published via ``ssepush.context.get_client()`` for the whole request.
3. After the handler returns, runs the client's write loop until the peer
   disconnects, the app shuts down, or the configured timeout passes.

The handler and the write loop never run at the same time. A handler that
wants to push events starts its own producers (tasks or threads) and
returns; events sent before the loop starts wait for it.

Usage::

    producers = set()

    @event_source
    async def clock(request, client):
        async def tick():
            while True:
                await client.send(Message(event="time", data=now()))
                await asyncio.sleep(2)

        task = asyncio.create_task(tick())
        producers.add(task)
        task.add_done_callback(producers.discard)
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from ssepush._internal.asgi import Receive, Scope, Send
from ssepush._internal.invoke import invoke
from ssepush.config import StreamConfig
from ssepush.context import client_var
from ssepush.errors import TransportError, UnsupportedTransport
from ssepush.http.request import Request
from ssepush.realtime.client import Client
from ssepush.realtime.transport import ASGIConnection, Connection

logger = logging.getLogger("ssepush.server")

Handler = Callable[[Request, Client], Any]
ConnectionFactory = Callable[[Send, Receive], Connection]


async def _send_error(send: Send, status: int, detail: str = "") -> None:
    """Send a plain-text error response."""
    body = (detail or "Internal Server Error").encode("utf-8")
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [
                (b"content-type", b"text/plain; charset=utf-8"),
                (b"content-length", str(len(body)).encode("latin-1")),
            ],
        }
    )
    await send({"type": "http.response.body", "body": body})


class EventSource:
    """ASGI application serving one SSE stream per request."""

    __slots__ = ("_active", "_config", "_connection_factory", "_handler", "_shutdown")

    def __init__(
        self,
        handler: Handler,
        *,
        config: StreamConfig | None = None,
        connection_factory: ConnectionFactory = ASGIConnection,
    ) -> None:
        self._handler = handler
        self._config = config or StreamConfig()
        self._connection_factory = connection_factory
        self._shutdown = asyncio.Event()
        self._active: set[Client] = set()

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def active_clients(self) -> frozenset[Client]:
        """Clients whose write loop is currently running."""
        return frozenset(self._active)

    def shutdown(self) -> None:
        """Cancel every open stream. Each ends with a ``close`` event."""
        self._shutdown.set()

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        if scope["type"] != "http":
            logger.warning("Ignoring unsupported ASGI scope type %r", scope["type"])
            return
        await self._handle_stream(scope, receive, send)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()
            msg_type = message["type"]
            if msg_type == "lifespan.startup":
                # Each lifespan cycle starts with a fresh shutdown signal
                self._shutdown = asyncio.Event()
                await send({"type": "lifespan.startup.complete"})
            elif msg_type == "lifespan.shutdown":
                self.shutdown()
                await send({"type": "lifespan.shutdown.complete"})
                return

    async def _handle_stream(self, scope: Scope, receive: Receive, send: Send) -> None:
        connection = self._connection_factory(send, receive)
        try:
            client = Client.from_connection(connection, config=self._config)
        except UnsupportedTransport as exc:
            logger.warning("Cannot stream %s: %s", scope.get("path", "/"), exc)
            await _send_error(send, 500, str(exc))
            return

        request = Request.from_asgi(scope, cancelled=self._shutdown)
        token = client_var.set(client)
        try:
            try:
                await invoke(self._handler, request, client)
            except Exception:
                logger.exception("Stream handler failed: %s %s", request.method, request.path)
                # Producers the handler already started get ClientClosed
                await client.close()
                await _send_error(send, 500)
                return

            self._active.add(client)
            try:
                await client.run(request.cancelled, timeout=self._config.timeout)
            finally:
                self._active.discard(client)
                with contextlib.suppress(OSError, RuntimeError, TransportError):
                    await connection.close()
        finally:
            client_var.reset(token)


def event_source(
    handler: Handler | None = None,
    *,
    config: StreamConfig | None = None,
) -> Any:
    """Decorator turning a stream handler into an ``EventSource`` app.

    Works bare or with arguments::

        @event_source
        def events(request, client): ...

        @event_source(config=StreamConfig(heartbeat_interval=15.0))
        async def events(request, client): ...
    """
    if handler is not None:
        return EventSource(handler, config=config)

    def decorator(func: Handler) -> EventSource:
        return EventSource(func, config=config)

    return decorator
