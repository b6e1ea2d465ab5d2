"""Tests for port interfaces."""

from collections.abc import Sequence

import pytest

from influxreport.adapters.transports import (
    CaptureTransport,
    HttpTransport,
    JsonTransport,
    UdpTransport,
)
from influxreport.config import ConnectionConfig
from influxreport.core.models import Precision, Record
from influxreport.core.ports import AsyncTransportPort, TransportPort

pytestmark = [
    pytest.mark.unit,
    pytest.mark.core,
    pytest.mark.tier(1),
    pytest.mark.tra("Core.Ports"),
]


class TestTransportPort:
    """Tests for TransportPort protocol."""

    def test_protocol_has_write_method(self) -> None:
        """TransportPort must define write_to_transport(data: bytes) -> bytes."""
        assert hasattr(TransportPort, "write_to_transport")

    def test_protocol_has_encode_method(self) -> None:
        assert hasattr(TransportPort, "encode")

    def test_class_implementing_protocol_is_recognized(self) -> None:
        """A class with the port members should satisfy TransportPort."""

        class FakeTransport:
            required_precision: Precision | None = None
            destination = "fake://"

            def encode(self, records: Sequence[Record]) -> bytes:
                return b""

            def write_to_transport(self, data: bytes) -> bytes:
                return b""

        transport: TransportPort = FakeTransport()
        assert isinstance(transport, TransportPort)
        assert not isinstance(transport, AsyncTransportPort)

    def test_incomplete_class_is_rejected(self) -> None:
        class NoEncode:
            required_precision = None
            destination = "x"

            def write_to_transport(self, data: bytes) -> bytes:
                return b""

        assert not isinstance(NoEncode(), TransportPort)


class TestShippedTransports:
    """All shipped transports implement the async port."""

    @pytest.mark.filterwarnings("ignore::DeprecationWarning")
    def test_transports_satisfy_async_port(self) -> None:
        http_config = ConnectionConfig(hostname="localhost", database="metrics")
        udp_config = ConnectionConfig(hostname="localhost", port=8089, transport="udp")

        transports = [
            HttpTransport(http_config),
            JsonTransport(http_config),
            UdpTransport(udp_config),
            CaptureTransport(),
        ]

        for transport in transports:
            assert isinstance(transport, AsyncTransportPort)
