"""Snapshot values handed to a report by the metrics scheduler.

These mirror what the instrumentation library produces for each metric kind.
Only the shape matters here; the values are computed elsewhere.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from enum import Enum


class TimeUnit(Enum):
    """Time unit used to express rates and durations."""

    NANOSECONDS = "ns"
    MICROSECONDS = "us"
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "min"
    HOURS = "h"
    DAYS = "d"

    @property
    def seconds(self) -> float:
        """Length of one unit in seconds."""
        return _UNIT_SECONDS[self]


_UNIT_SECONDS = {
    TimeUnit.NANOSECONDS: 1e-9,
    TimeUnit.MICROSECONDS: 1e-6,
    TimeUnit.MILLISECONDS: 1e-3,
    TimeUnit.SECONDS: 1.0,
    TimeUnit.MINUTES: 60.0,
    TimeUnit.HOURS: 3600.0,
    TimeUnit.DAYS: 86400.0,
}


@dataclass(frozen=True)
class CounterItem:
    """One labelled sub-count of a counter."""

    item: str
    count: int
    percent: float


@dataclass(frozen=True)
class CounterValue:
    """Counter snapshot with optional per-item breakdown."""

    count: int
    items: tuple[CounterItem, ...] = ()


@dataclass(frozen=True)
class MeterValue:
    """Meter snapshot. Rates are events per ``rate_unit``."""

    count: int
    mean_rate: float
    one_minute_rate: float
    five_minute_rate: float
    fifteen_minute_rate: float
    rate_unit: TimeUnit = TimeUnit.SECONDS
    items: tuple["MeterItem", ...] = ()

    def scale(self, rate_unit: TimeUnit) -> "MeterValue":
        """Return the snapshot with all rates expressed per ``rate_unit``."""
        if rate_unit == self.rate_unit:
            return self
        factor = rate_unit.seconds / self.rate_unit.seconds
        return replace(
            self,
            mean_rate=self.mean_rate * factor,
            one_minute_rate=self.one_minute_rate * factor,
            five_minute_rate=self.five_minute_rate * factor,
            fifteen_minute_rate=self.fifteen_minute_rate * factor,
            rate_unit=rate_unit,
            items=tuple(
                replace(item, value=item.value.scale(rate_unit)) for item in self.items
            ),
        )


@dataclass(frozen=True)
class MeterItem:
    """One labelled sub-meter of a meter."""

    item: str
    percent: float
    value: MeterValue


@dataclass(frozen=True)
class HistogramValue:
    """Histogram snapshot of a sampled distribution."""

    count: int
    last_value: float
    max: float
    mean: float
    min: float
    std_dev: float
    median: float
    percentile_75: float
    percentile_95: float
    percentile_98: float
    percentile_99: float
    percentile_999: float
    sample_size: int
    last_user_value: str | None = None
    max_user_value: str | None = None
    min_user_value: str | None = None

    def scale(self, factor: float) -> "HistogramValue":
        """Return the snapshot with every distribution value multiplied by ``factor``."""
        if factor == 1.0:
            return self
        return replace(
            self,
            last_value=self.last_value * factor,
            max=self.max * factor,
            mean=self.mean * factor,
            min=self.min * factor,
            std_dev=self.std_dev * factor,
            median=self.median * factor,
            percentile_75=self.percentile_75 * factor,
            percentile_95=self.percentile_95 * factor,
            percentile_98=self.percentile_98 * factor,
            percentile_99=self.percentile_99 * factor,
            percentile_999=self.percentile_999 * factor,
        )


@dataclass(frozen=True)
class TimerValue:
    """Timer snapshot: a rate meter plus a histogram of durations.

    Durations (histogram values and ``total_time``) are in ``duration_unit``.
    """

    rate: MeterValue
    histogram: HistogramValue
    active_sessions: int
    total_time: float
    duration_unit: TimeUnit = TimeUnit.NANOSECONDS

    def scale(
        self,
        rate_unit: TimeUnit | None = None,
        duration_unit: TimeUnit | None = None,
    ) -> "TimerValue":
        """Return the snapshot with rates per ``rate_unit`` and durations in ``duration_unit``."""
        rate = self.rate.scale(rate_unit) if rate_unit is not None else self.rate
        if duration_unit is None or duration_unit == self.duration_unit:
            return replace(self, rate=rate)
        factor = self.duration_unit.seconds / duration_unit.seconds
        return replace(
            self,
            rate=rate,
            histogram=self.histogram.scale(factor),
            total_time=self.total_time * factor,
            duration_unit=duration_unit,
        )


@dataclass(frozen=True)
class HealthCheckResult:
    """Outcome of one health check."""

    name: str
    is_healthy: bool
    message: str = ""
    tags: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class HealthStatus:
    """Results of all registered health checks."""

    results: tuple[HealthCheckResult, ...] = ()

    @property
    def is_healthy(self) -> bool:
        """True when every check passed. A status without checks is healthy."""
        return all(result.is_healthy for result in self.results)
