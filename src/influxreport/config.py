"""Connection configuration for InfluxDB reports.

``ConnectionConfig`` is a frozen pydantic model validated at construction.
It can be built from keyword arguments, from a URI such as::

    http://localhost:8086/write?db=metrics&u=user&p=secret&precision=ms&rp=week
    net.udp://localhost:8089/

or from the environment through ``InfluxSettings``.
"""

from enum import Enum
from typing import Any
from urllib.parse import parse_qs, unquote, urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from influxreport.core.converter import Converter
from influxreport.core.errors import ConfigurationError
from influxreport.core.formatter import DefaultFormatter, Formatter
from influxreport.core.models import Precision
from influxreport.core.writer import BatchingWriter


class TransportKind(str, Enum):
    """Which transport delivers the batches."""

    HTTP = "http"
    UDP = "udp"
    JSON = "json"
    CAPTURE = "capture"


_SCHEME_TRANSPORTS = {
    "http": TransportKind.HTTP,
    "https": TransportKind.HTTP,
    "net.udp": TransportKind.UDP,
    "udp": TransportKind.UDP,
}

_HTTP_SCHEMES = {"http", "https"}


class ConnectionConfig(BaseModel):
    """Resolved settings for one InfluxDB report.

    Attributes:
        transport: Transport used to deliver batches.
        scheme: URI scheme, ``http`` or ``https`` for the HTTP transports.
        hostname: Server host name or address. Required.
        port: Server port. HTTP defaults to 8086; UDP requires one.
        database: Target database. Required for HTTP and JSON, forbidden for
            UDP (the server's UDP listener names the database).
        username: Optional user name.
        password: Optional password.
        retention_policy: Optional retention policy for written points.
        precision: Timestamp precision of the converter and the HTTP request.
        batch_size: Records per implicit flush, zero to flush only at the end
            of a report.
        timeout_seconds: Deadline for one HTTP request.
        global_tags: Tags added to every record by the default converter.
        converter: Converter to use instead of the default.
        formatter: Formatter to use instead of the default.
        writer: Writer to use instead of the default.

    Raises:
        ConfigurationError: If the settings are invalid.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    transport: TransportKind = TransportKind.HTTP
    scheme: str = "http"
    hostname: str
    port: int | None = Field(default=None, ge=0, le=65535)
    database: str | None = None
    username: str | None = None
    password: str | None = Field(default=None, repr=False)
    retention_policy: str | None = None
    precision: Precision = Precision.SECONDS
    batch_size: int = Field(default=0, ge=0)
    timeout_seconds: float = Field(default=10.0, gt=0)
    global_tags: dict[str, str] = Field(default_factory=dict)
    converter: Converter | None = None
    formatter: Formatter | None = None
    writer: BatchingWriter | None = None

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"InfluxDB configuration invalid: {exc}") from exc

    @field_validator("precision", mode="before")
    @classmethod
    def _parse_precision(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Precision.parse(value)
        return value

    @model_validator(mode="after")
    def _check_transport_settings(self) -> "ConnectionConfig":
        if not self.hostname.strip():
            raise ValueError("hostname is required")
        if self.transport is TransportKind.UDP:
            if not self.port:
                raise ValueError("port is required for UDP connections")
            if self.database:
                raise ValueError(
                    "database must not be set for UDP connections; "
                    "the UDP listener defines it"
                )
        elif self.transport in (TransportKind.HTTP, TransportKind.JSON):
            if self.scheme.lower() not in _HTTP_SCHEMES:
                raise ValueError(f"unsupported scheme for HTTP: {self.scheme!r}")
            if not self.database:
                raise ValueError("database is required for HTTP connections")
        return self

    @classmethod
    def from_uri(cls, uri: str, **overrides: Any) -> "ConnectionConfig":
        """Parse a connection URI.

        Supported forms are ``http(s)://host[:port][/database|/write]?db=&u=&p=&precision=&rp=``
        and ``net.udp://host:port/``. The transport is chosen from the scheme.

        Args:
            uri: Connection URI.
            **overrides: Fields that replace or complete the parsed values.

        Raises:
            ConfigurationError: If the URI cannot be parsed or is invalid.
        """
        parts = urlsplit(uri.strip())
        scheme = parts.scheme.lower()
        transport = _SCHEME_TRANSPORTS.get(scheme)
        if transport is None:
            raise ConfigurationError(f"Unsupported InfluxDB URI scheme {scheme!r}: {uri!r}")
        try:
            port = parts.port
        except ValueError as exc:
            raise ConfigurationError(f"Invalid port in InfluxDB URI: {uri!r}") from exc

        query = parse_qs(parts.query)

        def first(key: str) -> str | None:
            values = query.get(key)
            return values[0] if values else None

        database = first("db")
        path = unquote(parts.path.strip("/"))
        if not database and path and path != "write":
            database = path

        settings: dict[str, Any] = {
            "transport": transport,
            "scheme": scheme,
            "hostname": parts.hostname or "",
            "port": port,
            "database": database,
            "username": first("u") or (unquote(parts.username) if parts.username else None),
            "password": first("p") or (unquote(parts.password) if parts.password else None),
            "retention_policy": first("rp"),
        }
        precision = first("precision")
        if precision:
            settings["precision"] = precision
        settings.update(overrides)
        return cls(**settings)

    def with_defaults(self) -> "ConnectionConfig":
        """Return a copy with a default converter, formatter and writer filled in.

        The default writer wraps the transport selected by ``transport`` and
        uses ``batch_size``.
        """
        from influxreport.adapters.transports import create_transport

        update: dict[str, Any] = {}
        if self.converter is None:
            update["converter"] = Converter(
                global_tags=self.global_tags, precision=self.precision
            )
        if self.formatter is None:
            update["formatter"] = DefaultFormatter()
        if self.writer is None:
            update["writer"] = BatchingWriter(
                create_transport(self), batch_size=self.batch_size
            )
        return self.model_copy(update=update) if update else self


class InfluxSettings(BaseSettings):
    """Report settings read from ``INFLUXREPORT_*`` environment variables or ``.env``.

    Attributes:
        uri: Connection URI, see ``ConnectionConfig.from_uri``.
        transport: Transport override, e.g. ``json`` for old servers.
        batch_size: Records per implicit flush.
        timeout_seconds: Deadline for one HTTP request.
        global_tags: JSON object of tags added to every record.
    """

    model_config = SettingsConfigDict(
        env_prefix="INFLUXREPORT_",
        env_file=".env",
        extra="ignore",
    )

    uri: str
    transport: TransportKind | None = None
    batch_size: int = Field(default=0, ge=0)
    timeout_seconds: float = Field(default=10.0, gt=0)
    global_tags: dict[str, str] = Field(default_factory=dict)

    def to_config(self, **overrides: Any) -> ConnectionConfig:
        """Build the ConnectionConfig described by these settings."""
        settings: dict[str, Any] = {
            "batch_size": self.batch_size,
            "timeout_seconds": self.timeout_seconds,
            "global_tags": self.global_tags,
        }
        if self.transport is not None:
            settings["transport"] = self.transport
        settings.update(overrides)
        return ConnectionConfig.from_uri(self.uri, **settings)
