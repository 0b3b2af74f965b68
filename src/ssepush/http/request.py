"""Immutable HTTP request for event-stream handlers.

Frozen metadata plus the request's cancellation signal. The request is
honest about what it is: received data that doesn't change.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl

from ssepush._internal.asgi import HTTPScope


def _decode_headers(raw: tuple[tuple[bytes, bytes], ...]) -> dict[str, str]:
    """Lower-cased header names; the first occurrence of a name wins."""
    headers: dict[str, str] = {}
    for name, value in raw:
        headers.setdefault(name.decode("latin-1").lower(), value.decode("latin-1"))
    return headers


@dataclass(frozen=True, slots=True)
class Request:
    """An immutable HTTP request.

    ``cancelled`` is set when the request should stop streaming for
    reasons other than the peer leaving (server shutdown). The adapter
    passes it to ``Client.run()`` as the cancellation source.
    """

    method: str
    path: str
    headers: Mapping[str, str]
    query: Mapping[str, str]
    http_version: str
    client: tuple[str, int] | None
    cancelled: asyncio.Event = field(default_factory=asyncio.Event, repr=False, compare=False)

    @property
    def last_event_id(self) -> str | None:
        """The ``Last-Event-ID`` header a reconnecting ``EventSource`` sends."""
        return self.headers.get("last-event-id")

    @classmethod
    def from_asgi(cls, scope: Mapping[str, Any], cancelled: asyncio.Event | None = None) -> Request:
        """Create a Request from an ASGI scope."""
        http = HTTPScope.from_scope(scope)
        return cls(
            method=http.method,
            path=http.path,
            headers=_decode_headers(http.headers),
            query=dict(parse_qsl(http.query_string.decode("latin-1"), keep_blank_values=True)),
            http_version=http.http_version,
            client=http.client,
            cancelled=cancelled if cancelled is not None else asyncio.Event(),
        )
