"""ssepush exception hierarchy.

Shared across the client, the transport, and the request adapter so every
module raises and catches the same types.
"""


class SSEPushError(Exception):
    """Base for all ssepush-specific errors."""


class ConfigurationError(SSEPushError):
    """Raised when stream configuration is invalid.

    Typically raised by ``StreamConfig.__post_init__`` at construction.
    """


class UnsupportedTransport(SSEPushError):  # noqa: N818 (mirrors the protocol vocabulary)
    """The connection cannot stream events.

    Raised by ``Client.from_connection()`` when the connection cannot flush
    after every write or cannot report that the peer went away. Fatal to
    the request: no client is created.
    """

    def __init__(self, missing: tuple[str, ...]) -> None:
        self.missing = missing
        super().__init__(f"Connection does not support streaming: missing {', '.join(missing)}")


class ClientClosed(SSEPushError):  # noqa: N818 (conventional name for a closed-channel error)
    """An event was sent to a client whose stream has already ended.

    Recoverable: drop the event or redirect it elsewhere. This is not a
    transport fault.
    """

    def __init__(self, detail: str = "message sent on closed client") -> None:
        super().__init__(detail)


class ClientStateError(SSEPushError):
    """A client lifecycle method was called at the wrong time.

    For example ``run()`` called twice, or ``send_threadsafe()`` called
    before the client is bound to an event loop.
    """


class TransportError(SSEPushError):
    """The connection can no longer accept response body bytes."""
