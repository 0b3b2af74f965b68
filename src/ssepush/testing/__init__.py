"""Test utilities for ssepush applications.

Provides an ASGI test client, an in-memory connection for driving a
``Client`` directly, and an SSE frame parser::

    from ssepush.testing import MemoryConnection, TestClient, parse_sse_frames
"""

from ssepush.testing.client import TestClient
from ssepush.testing.sse import SSETestResult, parse_sse_frames
from ssepush.testing.transport import MemoryConnection

__all__ = [
    "MemoryConnection",
    "SSETestResult",
    "TestClient",
    "parse_sse_frames",
]
