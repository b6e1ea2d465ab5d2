"""In-memory transport that captures batches instead of sending them."""

from collections.abc import Sequence

from influxreport.core.encoding import line_protocol
from influxreport.core.models import Batch, Precision, Record


class CaptureTransport:
    """Transport that keeps every payload in memory.

    Suitable for testing and for dry runs where no server is available.
    Payloads are line protocol; ``batches`` decodes them back into records.

    Args:
        required_precision: Precision forced on every record before
            encoding, to mimic transports that need one.
    """

    def __init__(self, required_precision: Precision | None = None) -> None:
        self.required_precision = required_precision
        self.payloads: list[bytes] = []

    @property
    def destination(self) -> str:
        return "capture://memory"

    def encode(self, records: Sequence[Record]) -> bytes:
        return line_protocol.encode(records)

    def write_to_transport(self, data: bytes) -> bytes:
        """Store the payload."""
        self.payloads.append(bytes(data))
        return b""

    async def write_to_transport_async(self, data: bytes) -> bytes:
        """Store the payload."""
        return self.write_to_transport(data)

    @property
    def lines(self) -> list[str]:
        """Every captured point as a line protocol string, in send order."""
        return [
            line
            for payload in self.payloads
            for line in payload.decode("utf-8").split("\n")
        ]

    @property
    def batches(self) -> list[Batch]:
        """Captured payloads decoded into records.

        Timestamps are read with ``required_precision``, or seconds when none
        is set.
        """
        precision = self.required_precision or Precision.SECONDS
        return [line_protocol.decode(payload, precision) for payload in self.payloads]

    @property
    def last_batch(self) -> Batch:
        """The most recently captured batch, or an empty list."""
        batches = self.batches
        return batches[-1] if batches else []

    def clear(self) -> None:
        """Forget every captured payload."""
        self.payloads.clear()
