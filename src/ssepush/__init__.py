"""ssepush — Server-Sent Events streams over ASGI.

One long-lived server-to-client event stream per HTTP connection. Any
number of producers push events; one write loop per connection puts
them on the wire, bracketed by ``open`` and ``close`` events.

Basic usage::

    import asyncio
    from ssepush import Message, event_source

    producers = set()

    @event_source
    async def app(request, client):
        async def tick():
            while True:
                await client.send(Message(event="time", data=now()))
                await asyncio.sleep(2)

        task = asyncio.create_task(tick())
        producers.add(task)
        task.add_done_callback(producers.discard)

Serve ``app`` with any ASGI server.
"""

__version__ = "0.1.0-dev"
__all__ = [
    "Client",
    "ClientClosed",
    "ClientState",
    "ClientStateError",
    "Comment",
    "ConfigurationError",
    "Event",
    "EventSource",
    "Message",
    "Request",
    "SSEPushError",
    "StreamConfig",
    "TransportError",
    "UnsupportedTransport",
    "event_source",
    "get_client",
    "render",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import ssepush`` fast while providing a clean top-level API.
    """
    if name in ("Message", "Comment", "Event", "render"):
        from ssepush.realtime import events as _events

        return getattr(_events, name)

    if name in ("Client", "ClientState"):
        from ssepush.realtime import client as _client

        return getattr(_client, name)

    if name in ("EventSource", "event_source"):
        from ssepush.realtime import handler as _handler

        return getattr(_handler, name)

    if name == "StreamConfig":
        from ssepush.config import StreamConfig

        return StreamConfig

    if name == "Request":
        from ssepush.http.request import Request

        return Request

    if name == "get_client":
        from ssepush.context import get_client

        return get_client

    if name in (
        "SSEPushError",
        "ConfigurationError",
        "UnsupportedTransport",
        "ClientClosed",
        "ClientStateError",
        "TransportError",
    ):
        from ssepush import errors as _errors

        return getattr(_errors, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
