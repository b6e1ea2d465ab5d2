"""Integration tests for the UDP line protocol transport."""

import socket
from collections.abc import Iterator

import pytest

from influxreport.adapters.transports.udp import UdpTransport
from influxreport.config import ConnectionConfig
from influxreport.core.errors import TransportError
from influxreport.core.models import Field, Precision, Record, Tag
from influxreport.core.writer import AsyncBatchingWriter, BatchingWriter

pytestmark = [
    pytest.mark.integration,
    pytest.mark.transport,
    pytest.mark.tier(2),
    pytest.mark.tra("Adapter.Transport.Udp"),
]


@pytest.fixture
def listener() -> Iterator[socket.socket]:
    """A UDP socket bound to a free local port."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2.0)
    yield sock
    sock.close()


@pytest.fixture
def transport(listener: socket.socket) -> UdpTransport:
    port = listener.getsockname()[1]
    return UdpTransport(ConnectionConfig.from_uri(f"net.udp://127.0.0.1:{port}/"))


class TestUdpTransport:
    """Tests for UdpTransport datagrams."""

    def test_destination(self) -> None:
        transport = UdpTransport(ConnectionConfig.from_uri("net.udp://metrics.local:8089/"))
        assert transport.destination == "net.udp://metrics.local:8089/"
        assert transport.required_precision is Precision.NANOSECONDS

    def test_flush_sends_nanosecond_line_protocol(self, listener, transport, report_time) -> None:
        """Every record in a UDP batch is written with nanosecond timestamps."""
        writer = BatchingWriter(transport)
        writer.write(
            [
                Record("cpu", [Tag("host", "a")], [Field("value", 1.5)], report_time),
                Record("mem", [], [Field("value", 2)], report_time, Precision.MILLISECONDS),
            ]
        )

        writer.flush()

        datagram, _ = listener.recvfrom(65535)
        assert datagram == (
            b"cpu,host=a value=1.5 1704067200000000000\n"
            b"mem value=2 1704067200000000000"
        )

    def test_send_failure_raises_transport_error(self) -> None:
        transport = UdpTransport(
            ConnectionConfig.from_uri("net.udp://no-such-host.invalid:8089/")
        )

        with pytest.raises(TransportError) as excinfo:
            transport.write_to_transport(b"cpu value=1")

        assert excinfo.value.destination == "net.udp://no-such-host.invalid:8089/"
        assert isinstance(excinfo.value.__cause__, OSError)

    def test_writer_handler_receives_send_failure(self, error_sink) -> None:
        """A UDP failure reaches the writer's handler, not the process-wide one."""
        seen: list[tuple[BaseException, str]] = []
        transport = UdpTransport(
            ConnectionConfig.from_uri("net.udp://no-such-host.invalid:8089/")
        )
        writer = BatchingWriter(
            transport, error_handler=lambda exc, message: seen.append((exc, message))
        )
        writer.write([Record("cpu", fields=[Field("value", 1)])])

        writer.flush()

        assert len(seen) == 1
        assert isinstance(seen[0][0], TransportError)
        assert "1 measurements" in seen[0][1]
        assert "net.udp://no-such-host.invalid:8089/" in seen[0][1]
        assert error_sink == []
        assert writer.pending == 0

    def test_ipv6_destination_is_bracketed(self) -> None:
        transport = UdpTransport(ConnectionConfig(hostname="::1", port=8089, transport="udp"))
        assert transport.destination == "net.udp://[::1]:8089/"

    @pytest.mark.asyncio
    async def test_async_send(self, listener, transport) -> None:
        writer = AsyncBatchingWriter(transport)
        await writer.write([Record("cpu", fields=[Field("value", 1)])])

        await writer.flush()

        datagram, _ = listener.recvfrom(65535)
        assert datagram == b"cpu value=1"
