"""Shared test fixtures for all test modules."""

from collections.abc import Iterator
from datetime import datetime, timezone

import pytest

from influxreport.adapters.transports.capture import CaptureTransport
from influxreport.core.errors import set_error_handler


@pytest.fixture
def report_time() -> datetime:
    """Fixed report timestamp, 2024-01-01T00:00:00Z (1704067200 seconds)."""
    return datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture
def capture() -> CaptureTransport:
    """Capture transport that keeps payloads in memory."""
    return CaptureTransport()


@pytest.fixture
def error_sink() -> Iterator[list[tuple[BaseException, str]]]:
    """Install a process-wide error handler that records every failure.

    The default handler is restored afterwards.
    """
    errors: list[tuple[BaseException, str]] = []
    set_error_handler(lambda exc, message: errors.append((exc, message)))
    yield errors
    set_error_handler(None)


# === Failing transports ===


class FailingTransport:
    """Transport whose sends always raise."""

    required_precision = None
    destination = "failing://nowhere"

    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or ConnectionError("connection refused")
        self.attempts = 0

    def encode(self, records):
        from influxreport.core.encoding import line_protocol

        return line_protocol.encode(records)

    def write_to_transport(self, data: bytes) -> bytes:
        self.attempts += 1
        raise self.exc

    async def write_to_transport_async(self, data: bytes) -> bytes:
        return self.write_to_transport(data)


@pytest.fixture
def failing_transport() -> FailingTransport:
    """Transport that raises on every send."""
    return FailingTransport()
