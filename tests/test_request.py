"""Tests for ssepush.http.request."""

import asyncio

from ssepush.http.request import Request


def _scope(**overrides: object) -> dict[str, object]:
    scope: dict[str, object] = {
        "type": "http",
        "method": "GET",
        "path": "/events",
        "headers": [],
        "query_string": b"",
        "http_version": "1.1",
    }
    scope.update(overrides)
    return scope


class TestRequest:
    def test_from_asgi(self) -> None:
        request = Request.from_asgi(
            _scope(query_string=b"topic=news&empty=", client=("10.0.0.1", 5000))
        )
        assert request.method == "GET"
        assert request.path == "/events"
        assert request.query == {"topic": "news", "empty": ""}
        assert request.client == ("10.0.0.1", 5000)
        assert request.http_version == "1.1"

    def test_last_event_id(self) -> None:
        request = Request.from_asgi(_scope(headers=[(b"last-event-id", b"42")]))
        assert request.last_event_id == "42"

    def test_last_event_id_missing(self) -> None:
        assert Request.from_asgi(_scope()).last_event_id is None

    def test_shared_cancellation_signal(self) -> None:
        cancelled = asyncio.Event()
        request = Request.from_asgi(_scope(), cancelled=cancelled)
        assert request.cancelled is cancelled

    def test_own_cancellation_signal_by_default(self) -> None:
        request = Request.from_asgi(_scope())
        assert not request.cancelled.is_set()


class TestRequestHeaders:
    def test_names_are_lower_cased(self) -> None:
        request = Request.from_asgi(_scope(headers=[(b"Last-Event-ID", b"7")]))
        assert request.headers == {"last-event-id": "7"}
        assert request.last_event_id == "7"

    def test_first_repeated_header_wins(self) -> None:
        request = Request.from_asgi(
            _scope(headers=[(b"last-event-id", b"1"), (b"Last-Event-Id", b"2")])
        )
        assert request.last_event_id == "1"
