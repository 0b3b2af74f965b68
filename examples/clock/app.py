"""Clock — push the server time to every connected browser.

A single ticker broadcasts a ``time`` event to all open streams every
``SSEPUSH_CLOCK_TICK`` seconds (default 2). Each new stream also gets the
current time immediately. Browsers listen with::

    const source = new EventSource("/");
    source.addEventListener("time", (e) => console.log(e.data));

Run with any ASGI server, pointing it at ``app:app``.
"""

import asyncio
import os
from collections.abc import Coroutine
from datetime import UTC, datetime
from typing import Any

from ssepush import Client, ClientClosed, Message, Request, StreamConfig, event_source

TICK_SECONDS = float(os.environ.get("SSEPUSH_CLOCK_TICK", "2.0"))

clients: set[Client] = set()
# The loop keeps only weak references to tasks
tasks: set[asyncio.Task[None]] = set()
_ticker: asyncio.Task[None] | None = None


def _spawn(coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
    task = asyncio.create_task(coro)
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    return task


def _now() -> Message:
    return Message(event="time", data=datetime.now(UTC).isoformat(timespec="seconds"))


async def _deliver(client: Client, message: Message) -> None:
    try:
        await client.send(message)
    except ClientClosed:
        clients.discard(client)


async def _tick() -> None:
    """Broadcast the time until the last client leaves."""
    while clients:
        await asyncio.sleep(TICK_SECONDS)
        message = _now()
        # Concurrent so one slow browser doesn't hold up the rest
        await asyncio.gather(*(_deliver(client, message) for client in list(clients)))


async def _forget(client: Client) -> None:
    await client.done()
    clients.discard(client)


@event_source(config=StreamConfig(heartbeat_interval=15.0))
async def app(request: Request, client: Client) -> None:
    """Register the stream, greet it, and make sure the ticker is running."""
    global _ticker

    clients.add(client)
    _spawn(_forget(client))
    _spawn(_deliver(client, _now()))
    if _ticker is None or _ticker.done():
        _ticker = _spawn(_tick())
