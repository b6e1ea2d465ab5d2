"""Scheduler-facing report that drives the InfluxDB pipeline.

A scheduler runs one pass per interval::

    report.start_report("app", now)
    report.start_context("app", now)
    report.report_gauge("memory", 42.5, unit="bytes", tags={"env": "prod"})
    report.end_context("app")
    report.end_report("app")

Each ``report_*`` call converts the value into records, formats them and
hands them to the writer; ``end_report`` flushes the writer.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from influxreport.config import ConnectionConfig
from influxreport.core.converter import Converter, MetricTags, tag_pairs
from influxreport.core.errors import ConfigurationError, InvalidRecordError, handle_error
from influxreport.core.formatter import Formatter
from influxreport.core.metric_values import (
    CounterValue,
    HealthStatus,
    HistogramValue,
    MeterValue,
    TimerValue,
    TimeUnit,
)
from influxreport.core.models import Record
from influxreport.core.writer import BatchingWriter

logger = logging.getLogger(__name__)


class InfluxdbReport:
    """Reports metric values to InfluxDB.

    Args:
        config: Connection settings. A missing converter, formatter or writer
            is filled in with the defaults for the configured transport.

    Raises:
        ConfigurationError: If the pipeline cannot be assembled.
    """

    def __init__(self, config: ConnectionConfig) -> None:
        self.config = config.with_defaults()
        for part in ("converter", "formatter", "writer"):
            if getattr(self.config, part) is None:
                raise ConfigurationError(
                    f"InfluxDB configuration invalid: {part} cannot be None"
                )
        self.converter: Converter = self.config.converter
        self.formatter: Formatter = self.config.formatter
        self.writer: BatchingWriter = self.config.writer
        self._contexts: list[tuple[str, str]] = []

    @classmethod
    def from_uri(cls, uri: str, **overrides: Any) -> "InfluxdbReport":
        """Create a report from a connection URI, see ``ConnectionConfig.from_uri``."""
        return cls(ConnectionConfig.from_uri(uri, **overrides))

    @property
    def context(self) -> str:
        """Formatted name of the innermost open context, or an empty string."""
        return self._contexts[-1][1] if self._contexts else ""

    # --- Report lifecycle ---

    def start_report(self, context_name: str, timestamp: datetime | None = None) -> None:
        """Begin a reporting pass; records are stamped with ``timestamp`` (default now)."""
        self.converter.timestamp = timestamp or datetime.now(timezone.utc)
        self._contexts.clear()
        logger.debug("Starting report %r", context_name)

    def start_context(self, context_name: str, timestamp: datetime | None = None) -> None:
        """Open a nested context. Metric names reported inside are prefixed with it."""
        if timestamp is not None:
            self.converter.timestamp = timestamp
        stack = [raw for raw, _ in self._contexts]
        formatted = self.formatter.format_context_name(stack, context_name)
        self._contexts.append((context_name, formatted))

    def end_context(self, context_name: str) -> None:
        if not self._contexts:
            logger.debug("end_context(%r) without an open context", context_name)
            return
        raw, _ = self._contexts.pop()
        if raw != context_name:
            logger.debug("Closed context %r while ending %r", raw, context_name)

    def end_report(self, context_name: str) -> None:
        """Finish the pass and flush every buffered record."""
        self._contexts.clear()
        self.writer.flush()
        logger.debug("Finished report %r", context_name)

    def close(self) -> None:
        """Flush any records still buffered."""
        self.writer.flush()

    def __enter__(self) -> "InfluxdbReport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Metric kinds ---

    def report_gauge(
        self, name: str, value: float, unit: str = "", tags: MetricTags = None
    ) -> None:
        self._report(
            name,
            unit,
            tags,
            lambda metric, pairs: self.converter.get_gauge_records(
                metric, pairs, unit, value
            ),
        )

    def report_counter(
        self, name: str, value: CounterValue, unit: str = "", tags: MetricTags = None
    ) -> None:
        self._report(
            name,
            unit,
            tags,
            lambda metric, pairs: self.converter.get_counter_records(
                metric, pairs, unit, value
            ),
        )

    def report_meter(
        self,
        name: str,
        value: MeterValue,
        unit: str = "",
        tags: MetricTags = None,
        rate_unit: TimeUnit | None = None,
    ) -> None:
        self._report(
            name,
            unit,
            tags,
            lambda metric, pairs: self.converter.get_meter_records(
                metric, pairs, unit, value, rate_unit=rate_unit
            ),
        )

    def report_histogram(
        self, name: str, value: HistogramValue, unit: str = "", tags: MetricTags = None
    ) -> None:
        self._report(
            name,
            unit,
            tags,
            lambda metric, pairs: self.converter.get_histogram_records(
                metric, pairs, unit, value
            ),
        )

    def report_timer(
        self,
        name: str,
        value: TimerValue,
        unit: str = "",
        tags: MetricTags = None,
        rate_unit: TimeUnit | None = None,
        duration_unit: TimeUnit | None = None,
    ) -> None:
        self._report(
            name,
            unit,
            tags,
            lambda metric, pairs: self.converter.get_timer_records(
                metric,
                pairs,
                unit,
                value,
                rate_unit=rate_unit,
                duration_unit=duration_unit,
            ),
        )

    def report_health(self, status: HealthStatus) -> None:
        """Write one aggregate health record and one record per check."""
        self._write(lambda: self.converter.get_health_records(status), "health checks")

    # --- Pipeline ---

    def _report(
        self,
        name: str,
        unit: str,
        tags: MetricTags,
        convert: Callable[[str, list[tuple[str, str]]], list[Record]],
    ) -> None:
        # Tags may be a one-shot iterator; read them once for naming and conversion.
        pairs = tag_pairs(tags)
        metric = self.formatter.format_metric_name(self.context, name, unit, dict(pairs))
        self._write(lambda: convert(metric, pairs), metric)

    def _write(self, convert: Callable[[], list[Record]], label: str) -> None:
        try:
            records = [self.formatter.format_record(r) for r in convert()]
        except InvalidRecordError as exc:
            handle_error(exc, f"Skipping invalid metric {label!r}")
            return
        if records:
            self.writer.write(records)
