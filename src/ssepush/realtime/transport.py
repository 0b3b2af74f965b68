"""Connection capability consumed by the streaming client.

The client never touches a socket. It needs four things from the
connection: set headers before the body starts, write bytes, flush them
immediately, and learn when the peer has gone away. ``Connection``
names that contract; ``ASGIConnection`` implements it over ASGI
``send``/``receive``.

Capabilities are declared, not discovered: ``supports_flush`` and
``supports_disconnect`` are checked once by ``Client.from_connection()``.
"""

import logging
from typing import Protocol

from ssepush._internal.asgi import Receive, Send
from ssepush.errors import TransportError

logger = logging.getLogger("ssepush.server")


class Connection(Protocol):
    """The writable, flushable, disconnect-aware side of one response."""

    @property
    def supports_flush(self) -> bool: ...

    @property
    def supports_disconnect(self) -> bool: ...

    def set_header(self, name: str, value: str) -> None: ...

    async def write(self, data: bytes) -> None: ...

    async def flush(self) -> None: ...

    async def wait_disconnected(self) -> None: ...

    async def close(self) -> None: ...


class ASGIConnection:
    """A ``Connection`` over one ASGI HTTP response.

    Headers are buffered until the first ``write()`` or ``flush()``, which
    sends ``http.response.start``. Every write becomes one
    ``http.response.body`` message with ``more_body=True``; ASGI servers
    forward body messages as they arrive, so nothing is held back.
    """

    __slots__ = ("_closed", "_disconnected", "_headers", "_receive", "_send", "_started")

    supports_flush = True
    supports_disconnect = True

    def __init__(self, send: Send, receive: Receive) -> None:
        self._send = send
        self._receive = receive
        self._headers: dict[str, str] = {}
        self._started = False
        self._closed = False
        self._disconnected = False

    @property
    def started(self) -> bool:
        """True once ``http.response.start`` has been sent."""
        return self._started

    def set_header(self, name: str, value: str) -> None:
        if self._started:
            msg = f"Cannot set header {name!r}: response already started"
            raise TransportError(msg)
        self._headers[name.lower()] = value

    async def _start(self, status: int = 200) -> None:
        if self._started:
            return
        self._started = True
        await self._send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    (name.encode("latin-1"), value.encode("latin-1"))
                    for name, value in self._headers.items()
                ],
            }
        )

    async def write(self, data: bytes) -> None:
        if self._closed:
            raise TransportError("Response already finished")
        await self._start()
        await self._send({"type": "http.response.body", "body": data, "more_body": True})

    async def flush(self) -> None:
        if self._closed:
            raise TransportError("Response already finished")
        await self._start()

    async def wait_disconnected(self) -> None:
        """Block until the client sends ``http.disconnect``."""
        while not self._disconnected:
            message = await self._receive()
            if message.get("type") == "http.disconnect":
                self._disconnected = True
                logger.debug("Peer disconnected")

    async def close(self) -> None:
        """Finish the response body. Safe to call more than once."""
        if self._closed:
            return
        await self._start()
        self._closed = True
        await self._send({"type": "http.response.body", "body": b"", "more_body": False})
