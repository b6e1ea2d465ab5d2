"""Deprecated HTTP transport for the pre-0.9.1 InfluxDB JSON protocol."""

import logging
import warnings
from collections.abc import Sequence

import httpx

from influxreport.adapters.transports.http import HttpTransport
from influxreport.config import ConnectionConfig
from influxreport.core.encoding import json_series
from influxreport.core.models import Precision, Record

logger = logging.getLogger(__name__)

JSON_DEPRECATION_MESSAGE = (
    "The JSON write protocol was removed in InfluxDB v0.9.1; "
    "use the HTTP or UDP line protocol transports instead."
)


class JsonTransport(HttpTransport):
    """Posts batches as JSON series to ``/db/{database}/series``.

    Deprecated. Kept for old servers only; do not add features here.

    The series endpoint takes one ``time_precision`` per request, so every
    record is switched to that precision before encoding.
    """

    content_type = "application/json"

    def __init__(
        self,
        config: ConnectionConfig,
        http_transport: httpx.BaseTransport | None = None,
        async_http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        warnings.warn(JSON_DEPRECATION_MESSAGE, DeprecationWarning, stacklevel=2)
        logger.warning(JSON_DEPRECATION_MESSAGE)
        super().__init__(config, http_transport, async_http_transport)
        self.required_precision = json_series.time_precision_for(
            config.precision
        )

    @property
    def path(self) -> str:  # type: ignore[override]
        return f"/db/{self.config.database}/series"

    @property
    def params(self) -> dict[str, str]:
        precision = self.required_precision or Precision.SECONDS
        params = {
            "u": self.config.username,
            "p": self.config.password,
            "time_precision": json_series.JSON_TIME_PRECISIONS[precision],
        }
        return {key: value for key, value in params.items() if value}

    def encode(self, records: Sequence[Record]) -> bytes:
        return json_series.encode(records)
