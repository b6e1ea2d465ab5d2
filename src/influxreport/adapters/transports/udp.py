"""UDP transport sending line protocol in a single datagram."""

import asyncio
import logging
import socket
from collections.abc import Sequence

from influxreport.config import ConnectionConfig
from influxreport.core.encoding import line_protocol
from influxreport.core.errors import TransportError
from influxreport.core.models import Precision, Record

logger = logging.getLogger(__name__)


class UdpTransport:
    """Best-effort delivery of a batch as one UDP datagram.

    The InfluxDB UDP listener only accepts nanosecond timestamps, so the
    writer switches every record to nanosecond precision before encoding.
    Socket errors are raised as TransportError; the writer reports them to
    its error handler and drops the batch, like any other send failure.

    Args:
        config: Connection settings. Hostname and a non-zero port are required.
    """

    required_precision: Precision | None = Precision.NANOSECONDS

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config

    @property
    def address(self) -> tuple[str, int]:
        return self.config.hostname, self.config.port or 0

    @property
    def destination(self) -> str:
        host, port = self.address
        if ":" in host:
            host = f"[{host}]"
        return f"net.udp://{host}:{port}/"

    def encode(self, records: Sequence[Record]) -> bytes:
        return line_protocol.encode(records)

    def write_to_transport(self, data: bytes) -> bytes:
        """Send the datagram. Returns an empty response; UDP has no reply.

        Raises:
            TransportError: If the host cannot be resolved or the send fails.
        """
        host, port = self.address
        try:
            family, kind, proto, _, sockaddr = socket.getaddrinfo(
                host, port, type=socket.SOCK_DGRAM
            )[0]
            with socket.socket(family, kind, proto) as sock:
                sent = sock.sendto(data, sockaddr)
        except OSError as exc:
            raise TransportError(
                f"UDP send to {self.destination} failed: {exc}", self.destination
            ) from exc
        logger.debug("Sent %d bytes to %s", sent, self.destination)
        return b""

    async def write_to_transport_async(self, data: bytes) -> bytes:
        """Send the datagram from a worker thread."""
        return await asyncio.to_thread(self.write_to_transport, data)
