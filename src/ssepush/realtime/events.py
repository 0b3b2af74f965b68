"""Message and Comment event types.

Frozen dataclasses for Server-Sent Events. Each knows how to encode
itself into the SSE wire protocol; the client writes whatever
``encode()`` returns.
"""

import json as json_module
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Event(Protocol):
    """Anything that can render itself as an SSE block."""

    def encode(self) -> str: ...


def _field(name: str, value: str) -> str:
    """One field, with embedded newlines continued as same-named lines."""
    prefix = f"{name}: "
    return prefix + value.replace("\n", "\n" + prefix) + "\n"


@dataclass(frozen=True, slots=True)
class Message:
    """A Server-Sent Event message.

    Empty fields are left out of the encoded block entirely.
    """

    event: str = ""
    data: str = ""
    id: str = ""
    retry: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.retry, int):
            object.__setattr__(self, "retry", str(self.retry))

    def encode(self) -> str:
        """Serialize to SSE wire format."""
        parts = [
            _field(name, value)
            for name, value in (
                ("event", self.event),
                ("data", self.data),
                ("id", self.id),
                ("retry", self.retry),
            )
            if value
        ]
        parts.append("\n")  # Blank line terminates the event
        return "".join(parts)

    @classmethod
    def from_value(cls, value: Any, *, event: str = "") -> "Message":
        """Build a message from a plain value.

        - ``Message``: returned as-is
        - ``str``: sent as data
        - ``dict`` / ``list``: JSON-serialized as data
        - anything else: ``str(value)`` as data
        """
        if isinstance(value, Message):
            return value
        if isinstance(value, str):
            return cls(event=event, data=value)
        if isinstance(value, (dict, list)):
            return cls(event=event, data=json_module.dumps(value, default=str))
        return cls(event=event, data=str(value))


@dataclass(frozen=True, slots=True)
class Comment:
    """A Server-Sent Event comment.

    Ignored by the browser's ``EventSource`` parser. Used for keep-alives.
    """

    text: str = ""

    def encode(self) -> str:
        """Serialize to SSE wire format."""
        return ": " + self.text.replace("\n", "\n: ") + "\n\n"


def render(event: Event) -> str:
    """Render any event to its SSE wire text."""
    return event.encode()
