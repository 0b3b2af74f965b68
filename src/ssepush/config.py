"""Stream configuration.

StreamConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass

from ssepush.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class StreamConfig:
    """Per-stream configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = StreamConfig(heartbeat_interval=15.0, timeout=600.0)
    """

    # Keep-alive comment after this many idle seconds (None disables)
    heartbeat_interval: float | None = None

    # Maximum stream lifetime in seconds (None = until disconnect or cancel)
    timeout: float | None = None

    # Reconnection hint carried on the "open" event
    retry_ms: int | None = None

    # Extra response headers, e.g. (("x-accel-buffering", "no"),)
    extra_headers: tuple[tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        if self.heartbeat_interval is not None and self.heartbeat_interval <= 0:
            msg = f"heartbeat_interval must be positive, got {self.heartbeat_interval!r}"
            raise ConfigurationError(msg)
        if self.timeout is not None and self.timeout <= 0:
            msg = f"timeout must be positive, got {self.timeout!r}"
            raise ConfigurationError(msg)
        if self.retry_ms is not None and self.retry_ms < 0:
            msg = f"retry_ms must not be negative, got {self.retry_ms!r}"
            raise ConfigurationError(msg)
