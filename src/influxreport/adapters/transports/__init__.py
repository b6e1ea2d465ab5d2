"""Transport adapters implementing TransportPort."""

from collections.abc import Callable

from influxreport.adapters.transports.capture import CaptureTransport
from influxreport.adapters.transports.http import DEFAULT_HTTP_PORT, HttpTransport
from influxreport.adapters.transports.legacy_json import JsonTransport
from influxreport.adapters.transports.udp import UdpTransport
from influxreport.config import ConnectionConfig, TransportKind
from influxreport.core.ports import TransportPort

_FACTORIES: dict[TransportKind, Callable[[ConnectionConfig], TransportPort]] = {
    TransportKind.HTTP: HttpTransport,
    TransportKind.UDP: UdpTransport,
    TransportKind.JSON: JsonTransport,
    TransportKind.CAPTURE: lambda config: CaptureTransport(),
}


def create_transport(config: ConnectionConfig) -> TransportPort:
    """Build the transport selected by ``config.transport``."""
    return _FACTORIES[config.transport](config)


__all__ = [
    "DEFAULT_HTTP_PORT",
    "CaptureTransport",
    "HttpTransport",
    "JsonTransport",
    "UdpTransport",
    "create_transport",
]
