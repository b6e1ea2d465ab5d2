"""HTTP transport writing line protocol to the InfluxDB ``/write`` endpoint."""

import logging
from collections.abc import Sequence

import httpx

from influxreport.config import ConnectionConfig
from influxreport.core.encoding import line_protocol
from influxreport.core.errors import TransportError
from influxreport.core.models import Precision, Record

logger = logging.getLogger(__name__)

DEFAULT_HTTP_PORT = 8086


class HttpTransport:
    """Posts line protocol batches to InfluxDB over HTTP(S).

    The request declares one ``precision`` for the whole body, so the writer
    switches every record to the configured precision before encoding.
    Any non-2xx response or network failure raises TransportError, which the
    writer reports and absorbs.

    Args:
        config: Connection settings.
        http_transport: Optional httpx transport for the sync client (tests
            pass ``httpx.MockTransport``).
        async_http_transport: Optional httpx transport for the async client.
    """

    required_precision: Precision | None
    content_type = "text/plain; charset=utf-8"
    path = "/write"

    def __init__(
        self,
        config: ConnectionConfig,
        http_transport: httpx.BaseTransport | None = None,
        async_http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config
        self.required_precision = config.precision
        self._http_transport = http_transport
        self._async_http_transport = async_http_transport

    @property
    def url(self) -> str:
        host = self.config.hostname
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        port = self.config.port or DEFAULT_HTTP_PORT
        return f"{self.config.scheme}://{host}:{port}{self.path}"

    @property
    def destination(self) -> str:
        return self.url

    @property
    def params(self) -> dict[str, str]:
        """Query string parameters, omitting unset values."""
        params = {
            "db": self.config.database,
            "u": self.config.username,
            "p": self.config.password,
            "rp": self.config.retention_policy,
            "precision": self.config.precision.value,
        }
        return {key: value for key, value in params.items() if value}

    def encode(self, records: Sequence[Record]) -> bytes:
        return line_protocol.encode(records)

    def write_to_transport(self, data: bytes) -> bytes:
        """POST the encoded batch and return the response body."""
        try:
            with httpx.Client(
                timeout=self.config.timeout_seconds, transport=self._http_transport
            ) as client:
                response = client.post(
                    self.url,
                    params=self.params,
                    content=data,
                    headers={"Content-Type": self.content_type},
                )
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Request to {self.destination} failed: {exc}", self.destination
            ) from exc
        return self._check(response)

    async def write_to_transport_async(self, data: bytes) -> bytes:
        """POST the encoded batch without blocking the event loop."""
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds,
                transport=self._async_http_transport,
            ) as client:
                response = await client.post(
                    self.url,
                    params=self.params,
                    content=data,
                    headers={"Content-Type": self.content_type},
                )
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Request to {self.destination} failed: {exc}", self.destination
            ) from exc
        return self._check(response)

    def _check(self, response: httpx.Response) -> bytes:
        if not response.is_success:
            raise TransportError(
                f"InfluxDB at {self.destination} answered {response.status_code}: "
                f"{response.text.strip()}",
                self.destination,
                response.status_code,
            )
        logger.debug("InfluxDB at %s answered %d", self.destination, response.status_code)
        return response.content
