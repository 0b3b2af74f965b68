"""Tests for the ssepush exception hierarchy."""

import pytest

from ssepush.errors import (
    ClientClosed,
    ClientStateError,
    ConfigurationError,
    SSEPushError,
    TransportError,
    UnsupportedTransport,
)


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_type",
        [ClientClosed, ClientStateError, ConfigurationError, TransportError, UnsupportedTransport],
    )
    def test_all_derive_from_base(self, exc_type: type[Exception]) -> None:
        assert issubclass(exc_type, SSEPushError)

    def test_client_closed_is_not_a_transport_error(self) -> None:
        assert not issubclass(ClientClosed, TransportError)


class TestUnsupportedTransport:
    def test_carries_missing_capabilities(self) -> None:
        err = UnsupportedTransport(("flush",))
        assert err.missing == ("flush",)
        assert "flush" in str(err)

    def test_message_lists_all(self) -> None:
        err = UnsupportedTransport(("flush", "disconnect notification"))
        assert str(err) == (
            "Connection does not support streaming: missing flush, disconnect notification"
        )


class TestClientClosed:
    def test_default_message(self) -> None:
        assert str(ClientClosed()) == "message sent on closed client"
