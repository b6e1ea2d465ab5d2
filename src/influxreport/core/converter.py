"""Conversion of metric snapshots into InfluxDB records."""

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import datetime

from influxreport.core.errors import InvalidRecordError
from influxreport.core.metric_values import (
    CounterValue,
    HealthStatus,
    HistogramValue,
    MeterValue,
    TimerValue,
    TimeUnit,
)
from influxreport.core.models import Field, FieldValue, Precision, Record, Tag

logger = logging.getLogger(__name__)

HEALTH_CHECKS_MEASUREMENT = "health_checks"

MetricTags = Mapping[str, str] | Iterable[tuple[str, str]] | None


def _is_finite(value: FieldValue) -> bool:
    return not isinstance(value, float) or math.isfinite(value)


def tag_pairs(tags: MetricTags) -> list[tuple[str, str]]:
    """Read metric tags into a list of ``(key, value)`` pairs.

    Iterators are consumed once, so callers that need the tags more than
    once pass the returned list along.
    """
    if not tags:
        return []
    if isinstance(tags, Mapping):
        return list(tags.items())
    return list(tags)


class Converter:
    """Builds InfluxDB records from metric values.

    Every record gets the metric's own tags followed by the global tags, the
    current ``timestamp`` and the configured ``precision``. The timestamp is
    set by the report once per report or context, so all records produced in
    one pass share it.

    Non-finite values are dropped field by field; a record left without any
    field is not produced.

    Args:
        global_tags: Tags added to every record.
        precision: Precision stamped on every record.
    """

    def __init__(
        self,
        global_tags: Mapping[str, str] | None = None,
        precision: Precision = Precision.SECONDS,
    ) -> None:
        self.global_tags: dict[str, str] = dict(global_tags or {})
        self.precision = precision
        self.timestamp: datetime | None = None

    # --- Metric kinds ---

    def get_gauge_records(
        self, name: str, tags: MetricTags, unit: str, value: float
    ) -> list[Record]:
        """Convert a gauge reading into a single ``value`` record."""
        tags = tag_pairs(tags)
        return self._records(name, tags, [("value", float(value))])

    def get_counter_records(
        self, name: str, tags: MetricTags, unit: str, value: CounterValue
    ) -> list[Record]:
        """Convert a counter into an aggregate record plus one record per item."""
        tags = tag_pairs(tags)
        records = self._records(name, tags, [("count", int(value.count))])
        for item in value.items:
            records += self._records(
                name,
                tags,
                [("count", int(item.count)), ("percent", float(item.percent))],
                item=item.item,
            )
        return records

    def get_meter_records(
        self,
        name: str,
        tags: MetricTags,
        unit: str,
        value: MeterValue,
        rate_unit: TimeUnit | None = None,
    ) -> list[Record]:
        """Convert a meter into an aggregate record plus one record per item."""
        tags = tag_pairs(tags)
        if rate_unit is not None:
            value = value.scale(rate_unit)
        records = self._records(
            name, tags, [("count", int(value.count))] + self._rate_fields(value)
        )
        for item in value.items:
            records += self._records(
                name,
                tags,
                [("count", int(item.value.count)), ("percent", float(item.percent))]
                + self._rate_fields(item.value),
                item=item.item,
            )
        return records

    def get_histogram_records(
        self, name: str, tags: MetricTags, unit: str, value: HistogramValue
    ) -> list[Record]:
        """Convert a histogram into a single record of distribution statistics."""
        tags = tag_pairs(tags)
        return self._records(
            name, tags, [("count", int(value.count))] + self._histogram_fields(value)
        )

    def get_timer_records(
        self,
        name: str,
        tags: MetricTags,
        unit: str,
        value: TimerValue,
        rate_unit: TimeUnit | None = None,
        duration_unit: TimeUnit | None = None,
    ) -> list[Record]:
        """Convert a timer into a single record with rate and duration statistics."""
        tags = tag_pairs(tags)
        value = value.scale(rate_unit, duration_unit)
        fields: list[tuple[str, FieldValue]] = [
            ("count", int(value.rate.count)),
            ("active_sessions", int(value.active_sessions)),
            ("total_time", float(value.total_time)),
        ]
        fields += self._rate_fields(value.rate)
        fields += self._histogram_fields(value.histogram)
        return self._records(name, tags, fields)

    def get_health_records(self, status: HealthStatus) -> list[Record]:
        """Convert health check results into records.

        Produces one aggregate record with the overall state followed by one
        record per check, tagged with the check name.
        """
        healthy = [r for r in status.results if r.is_healthy]
        records = self._records(
            HEALTH_CHECKS_MEASUREMENT,
            [],
            [
                ("healthy", status.is_healthy),
                ("healthy_count", len(healthy)),
                ("unhealthy_count", len(status.results) - len(healthy)),
            ],
        )
        for result in status.results:
            fields: list[tuple[str, FieldValue]] = [("healthy", result.is_healthy)]
            if result.message and result.message.strip():
                fields.append(("message", result.message))
            check_tags = [("name", result.name), *tag_pairs(result.tags)]
            records += self._records(HEALTH_CHECKS_MEASUREMENT, check_tags, fields)
        return records

    # --- Field sets ---

    @staticmethod
    def _rate_fields(value: MeterValue) -> list[tuple[str, FieldValue]]:
        return [
            ("mean_rate", float(value.mean_rate)),
            ("1_min_rate", float(value.one_minute_rate)),
            ("5_min_rate", float(value.five_minute_rate)),
            ("15_min_rate", float(value.fifteen_minute_rate)),
        ]

    @staticmethod
    def _histogram_fields(value: HistogramValue) -> list[tuple[str, FieldValue]]:
        fields: list[tuple[str, FieldValue]] = [
            ("last", float(value.last_value)),
            ("min", float(value.min)),
            ("mean", float(value.mean)),
            ("max", float(value.max)),
            ("stddev", float(value.std_dev)),
            ("median", float(value.median)),
            ("sample_size", int(value.sample_size)),
            ("percentile_75", float(value.percentile_75)),
            ("percentile_95", float(value.percentile_95)),
            ("percentile_98", float(value.percentile_98)),
            ("percentile_99", float(value.percentile_99)),
            ("percentile_999", float(value.percentile_999)),
        ]
        for key, user_value in (
            ("last_user_value", value.last_user_value),
            ("min_user_value", value.min_user_value),
            ("max_user_value", value.max_user_value),
        ):
            if user_value and user_value.strip():
                fields.append((key, user_value))
        return fields

    # --- Record assembly ---

    def _tags(self, tags: list[tuple[str, str]], item: str | None = None) -> list[Tag]:
        pairs = list(tags)
        if item is not None:
            pairs.append(("item", item))
        seen = {key for key, _ in pairs}
        pairs += [(k, v) for k, v in self.global_tags.items() if k not in seen]

        result: list[Tag] = []
        for key, value in pairs:
            try:
                result.append(Tag(key, value))
            except InvalidRecordError:
                logger.debug("Skipping invalid tag %r=%r", key, value)
        return result

    def _records(
        self,
        name: str,
        tags: list[tuple[str, str]],
        fields: list[tuple[str, FieldValue]],
        item: str | None = None,
    ) -> list[Record]:
        """Build a one-element record list, or an empty list if no field is usable."""
        usable = [Field(key, value) for key, value in fields if _is_finite(value)]
        if len(usable) < len(fields):
            logger.debug("Dropped non-finite values from %r", name)
        if not usable:
            return []
        return [
            Record(
                name=name,
                tags=self._tags(tags, item),
                fields=usable,
                timestamp=self.timestamp,
                precision=self.precision,
            )
        ]
