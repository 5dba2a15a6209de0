"""Pytest configuration and shared fixtures."""

from typing import Any
from unittest.mock import MagicMock

import pytest

from exception_middleware.core.config import Settings


def make_scope(
    path: str = "/",
    query_string: bytes = b"",
    scheme: str = "http",
    host: str | None = "testserver",
    root_path: str = "",
    scope_type: str = "http",
) -> dict[str, Any]:
    """Build a minimal ASGI scope."""
    headers = []
    if host is not None:
        headers.append((b"host", host.encode("latin-1")))
    return {
        "type": scope_type,
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": scheme,
        "path": path,
        "raw_path": path.encode("latin-1"),
        "root_path": root_path,
        "query_string": query_string,
        "headers": headers,
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 50000),
    }


class RecordingSend:
    """ASGI send callable that records every message."""

    def __init__(self) -> None:
        self.messages: list[dict[str, Any]] = []

    async def __call__(self, message: dict[str, Any]) -> None:
        self.messages.append(message)

    @property
    def start(self) -> dict[str, Any] | None:
        for message in self.messages:
            if message["type"] == "http.response.start":
                return message
        return None

    @property
    def status(self) -> int | None:
        start = self.start
        return start["status"] if start else None

    @property
    def headers(self) -> dict[bytes, bytes]:
        start = self.start
        return dict(start["headers"]) if start else {}

    @property
    def body(self) -> bytes:
        return b"".join(
            message.get("body", b"")
            for message in self.messages
            if message["type"] == "http.response.body"
        )


async def empty_receive() -> dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment."""
    return Settings(_env_file=None, environment="testing")


@pytest.fixture
def mock_logger() -> MagicMock:
    """Mock structlog logger for asserting log calls."""
    return MagicMock()


@pytest.fixture
def recording_send() -> RecordingSend:
    return RecordingSend()
