"""Tests for ssepush.config — StreamConfig frozen dataclass."""

import pytest

from ssepush.config import StreamConfig
from ssepush.errors import ConfigurationError


class TestStreamConfig:
    def test_defaults(self) -> None:
        cfg = StreamConfig()

        assert cfg.heartbeat_interval is None
        assert cfg.timeout is None
        assert cfg.retry_ms is None
        assert cfg.extra_headers == ()

    def test_override(self) -> None:
        cfg = StreamConfig(
            heartbeat_interval=15.0,
            timeout=60.0,
            retry_ms=3000,
            extra_headers=(("x-accel-buffering", "no"),),
        )

        assert cfg.heartbeat_interval == 15.0
        assert cfg.timeout == 60.0
        assert cfg.retry_ms == 3000
        assert cfg.extra_headers == (("x-accel-buffering", "no"),)

    def test_frozen(self) -> None:
        cfg = StreamConfig()

        with pytest.raises(AttributeError):
            cfg.timeout = 1.0  # type: ignore[misc]

    @pytest.mark.parametrize("value", [0, -1.0])
    def test_rejects_non_positive_heartbeat(self, value: float) -> None:
        with pytest.raises(ConfigurationError, match="heartbeat_interval"):
            StreamConfig(heartbeat_interval=value)

    @pytest.mark.parametrize("value", [0, -5.0])
    def test_rejects_non_positive_timeout(self, value: float) -> None:
        with pytest.raises(ConfigurationError, match="timeout"):
            StreamConfig(timeout=value)

    def test_rejects_negative_retry(self) -> None:
        with pytest.raises(ConfigurationError, match="retry_ms"):
            StreamConfig(retry_ms=-1)

    def test_zero_retry_allowed(self) -> None:
        assert StreamConfig(retry_ms=0).retry_ms == 0
