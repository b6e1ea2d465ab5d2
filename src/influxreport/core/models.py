"""Core domain models for InfluxDB time-series points."""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from influxreport.core.errors import ConfigurationError, InvalidRecordError

FieldValue = bool | int | float | str


class Precision(Enum):
    """Time unit used to render a record timestamp.

    The member values are the tokens InfluxDB accepts in the ``precision``
    query parameter.
    """

    NANOSECONDS = "n"
    MICROSECONDS = "u"
    MILLISECONDS = "ms"
    SECONDS = "s"
    MINUTES = "m"
    HOURS = "h"

    @property
    def nanoseconds(self) -> int:
        """Length of one unit in nanoseconds."""
        return _UNIT_NANOSECONDS[self]

    @classmethod
    def parse(cls, text: str) -> "Precision":
        """Map a precision token (``n``, ``u``, ``ms``, ``s``, ``m``, ``h``).

        Raises:
            ConfigurationError: If the token is not a known precision.
        """
        token = text.strip().lower()
        token = _PRECISION_ALIASES.get(token, token)
        try:
            return cls(token)
        except ValueError:
            raise ConfigurationError(f"Unknown precision: {text!r}") from None


_UNIT_NANOSECONDS = {
    Precision.NANOSECONDS: 1,
    Precision.MICROSECONDS: 1_000,
    Precision.MILLISECONDS: 1_000_000,
    Precision.SECONDS: 1_000_000_000,
    Precision.MINUTES: 60_000_000_000,
    Precision.HOURS: 3_600_000_000_000,
}

_PRECISION_ALIASES = {"ns": "n", "us": "u", "µ": "u"}


def _is_blank(value: object) -> bool:
    return not isinstance(value, str) or not value.strip()


@dataclass(frozen=True)
class Tag:
    """An indexed key/value pair attached to a record.

    Attributes:
        key: Tag key, never blank.
        value: Tag value, never blank.
    """

    key: str
    value: str

    def __post_init__(self) -> None:
        if _is_blank(self.key):
            raise InvalidRecordError(f"Tag key must be a non-blank string: {self.key!r}")
        if _is_blank(self.value):
            raise InvalidRecordError(
                f"Tag value for {self.key!r} must be a non-blank string: {self.value!r}"
            )

    def __hash__(self) -> int:
        return hash(self.key)


@dataclass(frozen=True)
class Field:
    """A key/value pair holding one measured value of a record.

    Attributes:
        key: Field key, never blank.
        value: A bool, int, finite float or non-blank string.
    """

    key: str
    value: FieldValue

    def __post_init__(self) -> None:
        if _is_blank(self.key):
            raise InvalidRecordError(f"Field key must be a non-blank string: {self.key!r}")
        value = self.value
        if value is None:
            raise InvalidRecordError(f"Field {self.key!r} has no value")
        if isinstance(value, str):
            if not value.strip():
                raise InvalidRecordError(f"Field {self.key!r} has a blank string value")
        elif isinstance(value, float):
            if not math.isfinite(value):
                raise InvalidRecordError(f"Field {self.key!r} is not finite: {value!r}")
        elif not isinstance(value, int):
            raise InvalidRecordError(
                f"Field {self.key!r} has unsupported type {type(value).__name__}"
            )

    def __hash__(self) -> int:
        return hash(self.key)


@dataclass
class Record:
    """A single InfluxDB point.

    Records are built by the converter, renamed by the formatter and then
    owned by the writer until they are encoded.

    Attributes:
        name: Measurement name.
        tags: Tags in emission order.
        fields: Fields in emission order. The wire format needs at least one.
        timestamp: Point time. ``None`` lets the server assign the write time.
        precision: Unit used to render the timestamp.
    """

    name: str = ""
    tags: list[Tag] = field(default_factory=list)
    fields: list[Field] = field(default_factory=list)
    timestamp: datetime | None = None
    precision: Precision = Precision.SECONDS

    def __post_init__(self) -> None:
        if self.name is None:
            self.name = ""
        self.tags = list(self.tags or ())
        self.fields = list(self.fields or ())
        if self.precision is None:
            self.precision = Precision.SECONDS

    def copy(self) -> "Record":
        """Return a copy that shares no mutable state with this record."""
        return Record(
            name=self.name,
            tags=list(self.tags),
            fields=list(self.fields),
            timestamp=self.timestamp,
            precision=self.precision,
        )


Batch = list[Record]


def copy_batch(records: Iterable[Record]) -> Batch:
    """Return a value copy of a batch, for diagnostics."""
    return [record.copy() for record in records]
