"""Encoder for the pre-0.9.1 InfluxDB JSON write protocol.

Deprecated: InfluxDB dropped this format in v0.9.1. It is kept for servers
that still expose the ``/db/{database}/series`` endpoint.
"""

import json
from collections.abc import Iterable
from typing import Any

from influxreport.core.encoding.line_protocol import to_unix_time
from influxreport.core.models import Precision, Record

# time_precision values understood by the old series endpoint
JSON_TIME_PRECISIONS = {
    Precision.SECONDS: "s",
    Precision.MILLISECONDS: "ms",
    Precision.MICROSECONDS: "u",
}


def time_precision_for(precision: Precision) -> Precision:
    """Return the closest precision the JSON protocol supports.

    Nanoseconds fall back to microseconds, minutes and hours to seconds.
    """
    if precision in JSON_TIME_PRECISIONS:
        return precision
    if precision is Precision.NANOSECONDS:
        return Precision.MICROSECONDS
    return Precision.SECONDS


def record_to_series(record: Record) -> dict[str, Any]:
    """Convert a record into one JSON series object.

    Tags become leading columns, followed by the fields. The ``time`` column
    is only present when the record has a timestamp.
    """
    columns: list[str] = []
    point: list[Any] = []
    if record.timestamp is not None:
        columns.append("time")
        point.append(to_unix_time(record.timestamp, record.precision))
    for tag in record.tags:
        columns.append(tag.key)
        point.append(tag.value)
    for field in record.fields:
        columns.append(field.key)
        point.append(field.value)
    return {"name": record.name, "columns": columns, "points": [point]}


def encode_series(records: Iterable[Record]) -> str:
    """Encode records as a JSON array of series objects.

    Args:
        records: Records in emission order.

    Returns:
        JSON document text. ``[]`` if no records.
    """
    return json.dumps([record_to_series(record) for record in records])


def encode(records: Iterable[Record]) -> bytes:
    """Encode records as UTF-8 JSON bytes."""
    return encode_series(records).encode("utf-8")
