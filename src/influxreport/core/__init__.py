"""Domain core: records, encoders, converter, formatter and writer."""

from influxreport.core.converter import Converter
from influxreport.core.errors import (
    ConfigurationError,
    InfluxReportError,
    InvalidRecordError,
    TransportError,
)
from influxreport.core.formatter import DefaultFormatter, Formatter
from influxreport.core.models import Batch, Field, Precision, Record, Tag
from influxreport.core.writer import AsyncBatchingWriter, BatchingWriter

__all__ = [
    "AsyncBatchingWriter",
    "Batch",
    "BatchingWriter",
    "ConfigurationError",
    "Converter",
    "DefaultFormatter",
    "Field",
    "Formatter",
    "InfluxReportError",
    "InvalidRecordError",
    "Precision",
    "Record",
    "Tag",
    "TransportError",
]
