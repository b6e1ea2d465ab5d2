"""Export metrics to InfluxDB over HTTP, UDP or the legacy JSON protocol.

Example:
    report = InfluxdbReport.from_uri("http://localhost:8086/write?db=metrics")
    report.start_report("app", datetime.now(timezone.utc))
    report.report_gauge("memory", 42.5, unit="bytes", tags={"env": "prod"})
    report.end_report("app")
"""

from influxreport.adapters.transports import (
    CaptureTransport,
    HttpTransport,
    JsonTransport,
    UdpTransport,
    create_transport,
)
from influxreport.config import ConnectionConfig, InfluxSettings, TransportKind
from influxreport.core.converter import Converter
from influxreport.core.errors import (
    ConfigurationError,
    InfluxReportError,
    InvalidRecordError,
    TransportError,
    get_error_handler,
    set_error_handler,
)
from influxreport.core.formatter import DefaultFormatter, Formatter
from influxreport.core.metric_values import (
    CounterItem,
    CounterValue,
    HealthCheckResult,
    HealthStatus,
    HistogramValue,
    MeterItem,
    MeterValue,
    TimerValue,
    TimeUnit,
)
from influxreport.core.models import Batch, Field, Precision, Record, Tag
from influxreport.core.writer import AsyncBatchingWriter, BatchingWriter
from influxreport.report import InfluxdbReport

__all__ = [
    # Report
    "InfluxdbReport",
    # Configuration
    "ConnectionConfig",
    "InfluxSettings",
    "TransportKind",
    # Pipeline
    "Converter",
    "DefaultFormatter",
    "Formatter",
    "AsyncBatchingWriter",
    "BatchingWriter",
    # Transports
    "CaptureTransport",
    "HttpTransport",
    "JsonTransport",
    "UdpTransport",
    "create_transport",
    # Models
    "Batch",
    "Field",
    "Precision",
    "Record",
    "Tag",
    # Metric values
    "CounterItem",
    "CounterValue",
    "HealthCheckResult",
    "HealthStatus",
    "HistogramValue",
    "MeterItem",
    "MeterValue",
    "TimerValue",
    "TimeUnit",
    # Errors
    "ConfigurationError",
    "InfluxReportError",
    "InvalidRecordError",
    "TransportError",
    "get_error_handler",
    "set_error_handler",
]
