"""Request-scoped access to the active stream client via ContextVar.

Provides:
- ``client_var``: The ``Client`` streaming the current request.
- ``get_client()``: Read it, raising ``LookupError`` outside a request.

Handlers receive the client as an argument; this is for code further
down the call stack that would otherwise need it threaded through.
It is set by ``EventSource`` around the handler call and reset after.

Thread safety:
    ``ContextVar`` is task-local under asyncio, and ``anyio.to_thread``
    copies the context into the worker thread that runs sync handlers.
"""

from contextvars import ContextVar

from ssepush.realtime.client import Client

client_var: ContextVar[Client] = ContextVar("ssepush_client")
"""The current stream client. Set by the adapter before the handler runs."""


def get_client() -> Client:
    """Return the stream client for the current request.

    Raises ``LookupError`` if called outside a stream handler.
    """
    return client_var.get()
