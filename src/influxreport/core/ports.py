"""Port interfaces for transport adapters.

These protocols define the contract every transport implements. The writer
depends only on these interfaces, never on a concrete transport.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from influxreport.core.models import Precision, Record


@runtime_checkable
class TransportPort(Protocol):
    """Port for delivering an encoded batch to InfluxDB.

    Adapters implementing this protocol own the wire encoding and the network
    call. Examples: HttpTransport, UdpTransport, JsonTransport,
    CaptureTransport.

    Attributes:
        required_precision: Timestamp precision the transport needs every
            record to use, or None if records keep their own precision.
    """

    required_precision: Precision | None

    @property
    def destination(self) -> str:
        """Describe the target endpoint for error messages."""
        ...

    def encode(self, records: Sequence[Record]) -> bytes:
        """Encode a batch into the transport's wire format."""
        ...

    def write_to_transport(self, data: bytes) -> bytes:
        """Send encoded bytes and return the raw response.

        Raises:
            TransportError: If the server rejected the batch or could not be
                reached.
        """
        ...


@runtime_checkable
class AsyncTransportPort(TransportPort, Protocol):
    """Port for transports that can also send without blocking the event loop."""

    async def write_to_transport_async(self, data: bytes) -> bytes:
        """Send encoded bytes and return the raw response."""
        ...
