"""Tests for the legacy JSON series encoder."""

import json
from datetime import datetime, timezone

import pytest

from influxreport.core.encoding.json_series import (
    encode,
    encode_series,
    record_to_series,
    time_precision_for,
)
from influxreport.core.models import Field, Precision, Record, Tag

pytestmark = [
    pytest.mark.unit,
    pytest.mark.encoding,
    pytest.mark.tier(1),
    pytest.mark.tra("Core.Encoding.JsonSeries"),
]


class TestRecordToSeries:
    """Tests for single record conversion."""

    def test_columns_are_time_tags_then_fields(self) -> None:
        record = Record(
            name="requests",
            tags=[Tag("env", "prod")],
            fields=[Field("count", 3), Field("ok", True)],
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            precision=Precision.MILLISECONDS,
        )

        assert record_to_series(record) == {
            "name": "requests",
            "columns": ["time", "env", "count", "ok"],
            "points": [[1704067200000, "prod", 3, True]],
        }

    def test_time_column_omitted_without_timestamp(self) -> None:
        series = record_to_series(Record("m", fields=[Field("v", 1.5)]))
        assert series["columns"] == ["v"]
        assert series["points"] == [[1.5]]


class TestEncodeSeries:
    """Tests for document encoding."""

    def test_document_is_a_json_array(self) -> None:
        batch = [Record("a", fields=[Field("v", 1)]), Record("b", fields=[Field("v", "x")])]

        document = json.loads(encode_series(batch))

        assert [series["name"] for series in document] == ["a", "b"]
        assert document[1]["points"] == [["x"]]

    def test_empty_batch(self) -> None:
        assert encode([]) == b"[]"


class TestTimePrecision:
    """Tests for mapping precisions onto the JSON protocol."""

    @pytest.mark.parametrize(
        ("precision", "expected"),
        [
            (Precision.SECONDS, Precision.SECONDS),
            (Precision.MILLISECONDS, Precision.MILLISECONDS),
            (Precision.MICROSECONDS, Precision.MICROSECONDS),
            (Precision.NANOSECONDS, Precision.MICROSECONDS),
            (Precision.MINUTES, Precision.SECONDS),
            (Precision.HOURS, Precision.SECONDS),
        ],
    )
    def test_time_precision_for(self, precision: Precision, expected: Precision) -> None:
        assert time_precision_for(precision) is expected
