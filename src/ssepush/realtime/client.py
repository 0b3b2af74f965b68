"""Per-connection SSE client: lifecycle, handoff, and the write loop.

One ``Client`` owns one connection. Producers call ``send()`` from any
number of tasks (or ``send_threadsafe()`` from other threads); a single
task runs ``run()`` and is the only writer of the connection.

Handoff is a rendezvous, not a buffer. ``send()`` parks the caller with
its event until the write loop takes it or the client closes, so a slow
connection slows its producers instead of growing a queue.

Lifecycle::

    initialized --run()--> running --(disconnect | cancel | close | timeout)--> closed

``open`` is written when the loop starts and ``close`` when it ends,
exactly once each.
"""

import asyncio
import concurrent.futures
import contextlib
import enum
import logging
from collections import deque
from typing import Any, Protocol

from ssepush.config import StreamConfig
from ssepush.errors import ClientClosed, ClientStateError, TransportError, UnsupportedTransport
from ssepush.realtime.events import Comment, Event, Message, render
from ssepush.realtime.transport import Connection

logger = logging.getLogger("ssepush.client")

STREAM_HEADERS: tuple[tuple[str, str], ...] = (
    ("content-type", "text/event-stream"),
    ("cache-control", "no-cache"),
    ("connection", "keep-alive"),
)

OPEN_EVENT = "open"
CLOSE_EVENT = "close"

# Transport faults that end the stream as if the peer had gone away
_WRITE_ERRORS = (OSError, RuntimeError, TransportError)


class Cancellation(Protocol):
    """A one-shot signal the write loop can wait on (e.g. ``asyncio.Event``)."""

    async def wait(self) -> Any: ...


class ClientState(enum.Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    CLOSED = "closed"


async def _wait_for(signal: Cancellation) -> None:
    await signal.wait()


class Client:
    """One Server-Sent Events connection.

    Create with ``Client.from_connection()``, start ``run()`` on its own
    task, then ``send()`` events from anywhere on the same loop::

        client = Client.from_connection(connection)
        task = asyncio.create_task(client.run(shutdown_event))
        await client.send(Message(event="time", data="12:00"))
    """

    __slots__ = (
        "_accepting",
        "_close_requested",
        "_config",
        "_connection",
        "_done",
        "_events_sent",
        "_loop",
        "_ready",
        "_senders",
        "_state",
    )

    def __init__(self, connection: Connection, config: StreamConfig | None = None) -> None:
        self._connection = connection
        self._config = config or StreamConfig()
        self._state = ClientState.INITIALIZED
        self._accepting = True
        self._senders: deque[tuple[Event, asyncio.Future[None]]] = deque()
        self._ready = asyncio.Event()
        self._close_requested = asyncio.Event()
        self._done = asyncio.Event()
        self._events_sent = 0
        try:
            self._loop: asyncio.AbstractEventLoop | None = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

    @classmethod
    def from_connection(
        cls,
        connection: Connection,
        *,
        config: StreamConfig | None = None,
    ) -> "Client":
        """Prepare a connection for streaming and bind a client to it.

        Checks once that the connection can flush after each write and can
        report peer disconnects, then sets the SSE response headers.

        Raises:
            UnsupportedTransport: If either capability is missing.
        """
        missing: list[str] = []
        if not getattr(connection, "supports_flush", False):
            missing.append("flush")
        if not getattr(connection, "supports_disconnect", False):
            missing.append("disconnect notification")
        if missing:
            raise UnsupportedTransport(tuple(missing))

        config = config or StreamConfig()
        for name, value in (*STREAM_HEADERS, *config.extra_headers):
            connection.set_header(name, value)
        return cls(connection, config)

    # -- Introspection --

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def closed(self) -> bool:
        """True once the write loop has exited. Never reverts."""
        return self._done.is_set()

    @property
    def events_sent(self) -> int:
        """Application events written so far (open/close/heartbeats excluded)."""
        return self._events_sent

    def __repr__(self) -> str:
        return f"<Client {self._state.value} sent={self._events_sent}>"

    # -- Producer side --

    async def send(self, event: Event) -> None:
        """Hand an event to the write loop.

        Waits until the loop takes the event or the client closes. A sender
        cancelled while still parked is withdrawn and its event is never
        written; once the loop has taken the event it is written even if
        the sender is cancelled before it resumes.

        Raises:
            ClientClosed: If the client closed before taking the event.
        """
        if not self._accepting:
            raise ClientClosed
        accepted: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        entry = (event, accepted)
        self._senders.append(entry)
        self._ready.set()
        try:
            await accepted
        except asyncio.CancelledError:
            if not accepted.done() or accepted.cancelled():
                with contextlib.suppress(ValueError):
                    self._senders.remove(entry)
            raise

    def send_threadsafe(self, event: Event, timeout: float | None = None) -> None:
        """Blocking ``send()`` for threads outside the client's event loop.

        The withdrawal on timeout is decided on the loop thread, so the
        outcome is exact: either the event is written and this returns, or
        it is withdrawn and ``TimeoutError`` is raised.

        Raises:
            ClientClosed: If the client closed before taking the event.
            ClientStateError: If the client has no loop yet, or if called
                from the loop thread (use ``await client.send()`` there).
            TimeoutError: If ``timeout`` elapsed before the loop took the
                event. The event is never written.
        """
        loop = self._loop
        if loop is None:
            msg = "Client is not bound to an event loop; start run() first"
            raise ClientStateError(msg)
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is loop:
            msg = "send_threadsafe() called from the event loop thread; use 'await client.send()'"
            raise ClientStateError(msg)
        if not self._accepting or loop.is_closed():
            raise ClientClosed

        outcome: concurrent.futures.Future[None] = concurrent.futures.Future()
        parked: list[asyncio.Future[None]] = []

        def relay(accepted: asyncio.Future[None]) -> None:
            if accepted.cancelled():
                outcome.cancel()
            elif accepted.exception() is not None:
                outcome.set_exception(accepted.exception())
            else:
                outcome.set_result(None)

        def offer() -> None:
            if not self._accepting:
                outcome.set_exception(ClientClosed())
                return
            accepted: asyncio.Future[None] = loop.create_future()
            accepted.add_done_callback(relay)
            parked.append(accepted)
            self._senders.append((event, accepted))
            self._ready.set()

        def withdraw() -> None:
            # Runs after offer(); a taken event has a result already
            for accepted in parked:
                if not accepted.done():
                    accepted.cancel()

        try:
            loop.call_soon_threadsafe(offer)
        except RuntimeError:
            raise ClientClosed from None
        try:
            outcome.result(timeout)
        except TimeoutError:
            try:
                loop.call_soon_threadsafe(withdraw)
            except RuntimeError:
                raise ClientClosed from None
            try:
                outcome.result()
            except concurrent.futures.CancelledError:
                raise TimeoutError("event not taken before the timeout") from None

    async def done(self) -> None:
        """Wait until the write loop has exited."""
        await self._done.wait()

    async def close(self) -> None:
        """Request termination and wait for ``run()`` to finish.

        Idempotent. A client whose loop never started is closed in place,
        with no ``open``/``close`` events written.
        """
        if self._state is ClientState.INITIALIZED:
            self._finish()
            return
        self._close_requested.set()
        await self._done.wait()

    # -- Writer side --

    async def run(self, cancel: Cancellation | None = None, *, timeout: float | None = None) -> None:
        """Write events until the stream ends. Call exactly once.

        Ends on whichever comes first: peer disconnect, ``cancel`` firing,
        ``close()``, or ``timeout`` seconds (default ``config.timeout``).

        Raises:
            ClientStateError: If the loop has already been started.
        """
        if self._state is not ClientState.INITIALIZED:
            msg = f"run() called on a {self._state.value} client"
            raise ClientStateError(msg)
        self._state = ClientState.RUNNING
        loop = asyncio.get_running_loop()
        self._loop = loop
        if timeout is None:
            timeout = self._config.timeout

        watchers: dict[asyncio.Task[Any], str] = {}
        reason = "transport error"
        try:
            retry = str(self._config.retry_ms) if self._config.retry_ms is not None else ""
            if await self._write(Message(event=OPEN_EVENT, retry=retry)):
                logger.debug("SSE stream opened")
                watchers[asyncio.create_task(self._connection.wait_disconnected())] = "disconnect"
                watchers[asyncio.create_task(_wait_for(self._close_requested))] = "close"
                if cancel is not None:
                    watchers[asyncio.create_task(_wait_for(cancel))] = "cancelled"
                deadline = loop.time() + timeout if timeout is not None else None
                reason = await self._serve(watchers, deadline)
        except asyncio.CancelledError:
            reason = "task cancelled"
            raise
        finally:
            self._accepting = False
            for task in watchers:
                task.cancel()
            for task in watchers:
                with contextlib.suppress(asyncio.CancelledError, Exception):
                    await task
            self._fail_senders()
            if reason != "transport error":
                await self._write(Message(event=CLOSE_EVENT), final=True)
            logger.debug("SSE stream closed (%s, %d events)", reason, self._events_sent)
            self._finish()

    async def _serve(self, watchers: dict[asyncio.Task[Any], str], deadline: float | None) -> str:
        """The select loop. Returns the reason the stream ended."""
        loop = asyncio.get_running_loop()
        heartbeat = self._config.heartbeat_interval
        last_write = loop.time()
        ready: asyncio.Task[Any] | None = None
        try:
            while True:
                if ready is None:
                    ready = asyncio.create_task(self._ready.wait())

                # Whichever timer is nearer decides what an empty wakeup means
                now = loop.time()
                wait_for: float | None = None
                timer = "heartbeat"
                if heartbeat is not None:
                    wait_for = max(0.0, last_write + heartbeat - now)
                if deadline is not None:
                    remaining = max(0.0, deadline - now)
                    if wait_for is None or remaining <= wait_for:
                        wait_for = remaining
                        timer = "timeout"

                done, _ = await asyncio.wait(
                    {ready, *watchers},
                    timeout=wait_for,
                    return_when=asyncio.FIRST_COMPLETED,
                )

                # A terminal trigger wins over a ready sender in the same wakeup
                for task in done:
                    if task in watchers:
                        if not task.cancelled() and task.exception() is not None:
                            logger.warning(
                                "SSE %s watcher failed: %s", watchers[task], task.exception()
                            )
                        return watchers[task]

                if not done:
                    if timer == "timeout":
                        return "timeout"
                    if not await self._write(Comment("heartbeat")):
                        return "transport error"
                    logger.debug("SSE heartbeat")
                    last_write = loop.time()
                    continue

                ready = None
                taken = self._take()
                if taken is None:
                    continue
                event, accepted = taken
                try:
                    payload = render(event).encode("utf-8")
                except Exception as exc:
                    # The sender gets the encoding error; the stream carries on
                    accepted.set_exception(exc)
                    continue
                accepted.set_result(None)
                if not await self._write_bytes(payload):
                    return "transport error"
                self._events_sent += 1
                last_write = loop.time()
        finally:
            if ready is not None:
                ready.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await ready

    def _take(self) -> tuple[Event, asyncio.Future[None]] | None:
        """Pop the next sender that is still waiting."""
        taken = None
        while self._senders:
            event, accepted = self._senders.popleft()
            if not accepted.done():
                taken = (event, accepted)
                break
        if not self._senders:
            self._ready.clear()
        return taken

    async def _write(self, event: Event, *, final: bool = False) -> bool:
        return await self._write_bytes(render(event).encode("utf-8"), final=final)

    async def _write_bytes(self, payload: bytes, *, final: bool = False) -> bool:
        """Write and flush one block. False if the transport failed."""
        try:
            await self._connection.write(payload)
            await self._connection.flush()
        except _WRITE_ERRORS as exc:
            if final:
                logger.debug("SSE close event not delivered: %s", exc)
            else:
                logger.warning("SSE write failed, ending stream: %s", exc)
            return False
        return True

    def _fail_senders(self) -> None:
        while self._senders:
            _, accepted = self._senders.popleft()
            if not accepted.done():
                accepted.set_exception(ClientClosed())
        self._ready.clear()

    def _finish(self) -> None:
        self._accepting = False
        self._fail_senders()
        self._state = ClientState.CLOSED
        self._done.set()
