"""InfluxDB line protocol encoder and decoder.

A point is written as::

    measurement[,tag=value...] field=value[,field=value...][ timestamp]

Points are separated by newlines. The batch output carries no trailing
newline. A newline inside a name, key or value is written as the two
characters ``\\n`` so that every point stays on one line.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from influxreport.core.errors import InvalidRecordError
from influxreport.core.models import Field, FieldValue, Precision, Record, Tag

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_LINE_ESCAPES = {"\\": "\\\\", "\n": "\\n"}
_MEASUREMENT_ESCAPES = str.maketrans({**_LINE_ESCAPES, ",": r"\,", " ": r"\ "})
_KEY_ESCAPES = str.maketrans({**_LINE_ESCAPES, ",": r"\,", "=": r"\=", " ": r"\ "})
_STRING_ESCAPES = str.maketrans({**_LINE_ESCAPES, '"': '\\"'})


def escape_measurement(name: str) -> str:
    """Escape backslashes, newlines, commas and spaces in a measurement name."""
    return name.translate(_MEASUREMENT_ESCAPES)


def escape_key(text: str) -> str:
    """Escape tag keys, tag values and field keys.

    Commas, equal signs and spaces get a backslash. Backslashes are doubled
    and newlines become ``\\n``.
    """
    return text.translate(_KEY_ESCAPES)


def escape_string_value(value: str) -> str:
    """Quote a string field value, escaping backslashes, newlines and double quotes."""
    return f'"{value.translate(_STRING_ESCAPES)}"'


def format_field_value(value: FieldValue) -> str:
    """Render a field value as a line protocol literal.

    Booleans become ``true``/``false``, integers have no decimal point and
    floats use their shortest round-tripping form, which always carries a
    decimal point or an exponent. The output does not depend on the locale.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(int(value))
    if isinstance(value, float):
        return float.__repr__(value)
    return escape_string_value(str(value))


def to_unix_time(timestamp: datetime, precision: Precision) -> int:
    """Convert a datetime into an integer count of ``precision`` units since the epoch.

    Naive datetimes are taken to be UTC.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    delta = timestamp - _EPOCH
    micros = (delta.days * 86_400 + delta.seconds) * 1_000_000 + delta.microseconds
    return (micros * 1_000) // precision.nanoseconds


def from_unix_time(value: int, precision: Precision) -> datetime:
    """Convert an integer count of ``precision`` units since the epoch into a UTC datetime."""
    return _EPOCH + timedelta(microseconds=value * precision.nanoseconds // 1_000)


def encode_tag(tag: Tag) -> str:
    """Encode a tag as ``key=value``."""
    return f"{escape_key(tag.key)}={escape_key(tag.value)}"


def encode_field(field: Field) -> str:
    """Encode a field as ``key=value``."""
    return f"{escape_key(field.key)}={format_field_value(field.value)}"


def encode_record(record: Record) -> str:
    """Encode a single record as one line without a trailing newline.

    Raises:
        InvalidRecordError: If the record has a blank name or no fields.
    """
    if not record.name or not record.name.strip():
        raise InvalidRecordError(f"Record name must be a non-blank string: {record.name!r}")
    if not record.fields:
        raise InvalidRecordError(f"Record {record.name!r} has no fields")
    parts = [escape_measurement(record.name)]
    parts.extend(encode_tag(tag) for tag in record.tags)
    line = ",".join(parts) + " " + ",".join(encode_field(f) for f in record.fields)
    if record.timestamp is not None:
        line += f" {to_unix_time(record.timestamp, record.precision)}"
    return line


def encode_lines(records: Iterable[Record]) -> str:
    """Encode records as newline-separated line protocol text.

    Args:
        records: Records in emission order.

    Returns:
        Line protocol text without a trailing newline.
        Empty string if no records.
    """
    return "\n".join(encode_record(record) for record in records)


def encode(records: Iterable[Record]) -> bytes:
    """Encode records as UTF-8 line protocol bytes."""
    return encode_lines(records).encode("utf-8")


# --- Decoding ---

_ESCAPABLE = ', ="\\'
_UNESCAPES = {"n": "\n"}


def _split_unescaped(
    text: str,
    separator: str,
    maxsplit: int = -1,
    quoted_values: bool = False,
) -> list[str]:
    """Split on a separator that is neither escaped nor inside a quoted value.

    Quoted values only exist in the field set, where a double quote right
    after ``=`` opens a string literal.
    """
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(text):
        char = text[i]
        if char == "\\" and i + 1 < len(text):
            current.append(text[i : i + 2])
            i += 2
            continue
        if quoted_values and char == '"':
            if in_quotes or (current and current[-1] == "="):
                in_quotes = not in_quotes
        elif char == separator and not in_quotes and maxsplit != len(parts):
            parts.append("".join(current))
            current = []
            i += 1
            continue
        current.append(char)
        i += 1
    parts.append("".join(current))
    return parts


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        if text[i] == "\\" and i + 1 < len(text) and text[i + 1] in _ESCAPABLE:
            out.append(text[i + 1])
            i += 2
        elif text[i] == "\\" and i + 1 < len(text) and text[i + 1] in _UNESCAPES:
            out.append(_UNESCAPES[text[i + 1]])
            i += 2
        else:
            out.append(text[i])
            i += 1
    return "".join(out)


def _split_pair(text: str) -> tuple[str, str]:
    pair = _split_unescaped(text, "=", maxsplit=1)
    if len(pair) != 2 or not pair[0]:
        raise InvalidRecordError(f"Expected key=value, got {text!r}")
    return pair[0], pair[1]


def _is_integer_literal(text: str) -> bool:
    return text.lstrip("-").isdecimal()


def parse_field_value(text: str) -> FieldValue:
    """Parse a line protocol field literal back into a Python value."""
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return _unescape(text[1:-1])
    lowered = text.lower()
    if lowered in ("t", "true"):
        return True
    if lowered in ("f", "false"):
        return False
    if text.endswith(("i", "u")) and _is_integer_literal(text[:-1]):
        return int(text[:-1])
    if _is_integer_literal(text):
        return int(text)
    try:
        return float(text)
    except ValueError:
        raise InvalidRecordError(f"Invalid field value: {text!r}") from None


def parse_line(line: str, precision: Precision = Precision.SECONDS) -> Record:
    """Parse one line protocol point into a Record.

    Args:
        line: A single point without the newline.
        precision: Unit of the timestamp token, if present.

    Raises:
        InvalidRecordError: If the line is not valid line protocol.
    """
    series, *remainder = _split_unescaped(line.rstrip("\r"), " ", maxsplit=1)
    if not remainder or not remainder[0]:
        raise InvalidRecordError(f"Invalid line protocol, no fields: {line!r}")
    field_set, *timestamp_part = _split_unescaped(
        remainder[0],
        " ",
        maxsplit=1,
        quoted_values=True,
    )

    name, *tag_pairs = _split_unescaped(series, ",")
    tags = [Tag(_unescape(k), _unescape(v)) for k, v in map(_split_pair, tag_pairs)]
    fields = [
        Field(_unescape(k), parse_field_value(v))
        for k, v in map(_split_pair, _split_unescaped(field_set, ",", quoted_values=True))
    ]

    timestamp = None
    if timestamp_part and timestamp_part[0].strip():
        token = timestamp_part[0].strip()
        if not _is_integer_literal(token):
            raise InvalidRecordError(f"Invalid timestamp: {token!r}")
        timestamp = from_unix_time(int(token), precision)

    return Record(
        name=_unescape(name),
        tags=tags,
        fields=fields,
        timestamp=timestamp,
        precision=precision,
    )


def decode(data: bytes | str, precision: Precision = Precision.SECONDS) -> list[Record]:
    """Decode line protocol text or bytes into records.

    Every newline ends a point; escaped ``\\n`` sequences are turned back
    into newlines. Blank lines are skipped.
    """
    text = data.decode("utf-8") if isinstance(data, bytes) else data
    lines = _split_unescaped(text, "\n")
    return [parse_line(line, precision) for line in lines if line.strip()]
