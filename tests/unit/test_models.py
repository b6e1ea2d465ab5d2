"""Tests for the record model."""

import math

import pytest

from influxreport.core.errors import ConfigurationError, InvalidRecordError
from influxreport.core.models import Field, Precision, Record, Tag, copy_batch

pytestmark = [
    pytest.mark.unit,
    pytest.mark.core,
    pytest.mark.tier(1),
    pytest.mark.tra("Core.Models"),
]


class TestTag:
    """Tests for Tag validation and identity."""

    def test_valid_tag(self) -> None:
        tag = Tag("host", "node1")
        assert tag.key == "host"
        assert tag.value == "node1"

    @pytest.mark.parametrize(("key", "value"), [("", "x"), ("  ", "x"), ("k", ""), ("k", " ")])
    def test_blank_key_or_value_is_rejected(self, key: str, value: str) -> None:
        """Blank keys and values raise a configuration error."""
        with pytest.raises(ConfigurationError):
            Tag(key, value)

    def test_non_string_value_is_rejected(self) -> None:
        with pytest.raises(InvalidRecordError):
            Tag("k", 5)  # type: ignore[arg-type]

    def test_equality_uses_key_and_value(self) -> None:
        assert Tag("k", "a") == Tag("k", "a")
        assert Tag("k", "a") != Tag("k", "b")

    def test_hash_uses_key(self) -> None:
        assert hash(Tag("k", "a")) == hash(Tag("k", "b"))


class TestField:
    """Tests for Field validation."""

    @pytest.mark.parametrize("value", [True, 0, -12, 1.5, "text"])
    def test_supported_values(self, value: object) -> None:
        assert Field("f", value).value == value  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", [None, "", "   ", math.nan, math.inf, -math.inf])
    def test_unusable_values_are_rejected(self, value: object) -> None:
        """None, blank strings and non-finite floats cannot be written."""
        with pytest.raises(InvalidRecordError):
            Field("f", value)  # type: ignore[arg-type]

    def test_unsupported_type_is_rejected(self) -> None:
        with pytest.raises(InvalidRecordError, match="unsupported type"):
            Field("f", [1, 2])  # type: ignore[arg-type]

    def test_blank_key_is_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            Field(" ", 1)

    def test_hash_uses_key(self) -> None:
        assert hash(Field("f", 1)) == hash(Field("f", 2))


class TestRecord:
    """Tests for Record construction and copies."""

    def test_defaults(self) -> None:
        record = Record()
        assert record.name == ""
        assert record.tags == []
        assert record.fields == []
        assert record.timestamp is None
        assert record.precision is Precision.SECONDS

    def test_none_name_becomes_empty(self) -> None:
        assert Record(name=None).name == ""  # type: ignore[arg-type]

    def test_tags_and_fields_are_copied(self) -> None:
        """Iterables passed in are copied into fresh lists."""
        tags = [Tag("a", "1")]
        record = Record("m", tags=tags, fields=(Field("v", 1),))
        tags.append(Tag("b", "2"))
        assert record.tags == [Tag("a", "1")]
        assert isinstance(record.fields, list)

    def test_copy_is_independent(self) -> None:
        record = Record("m", [Tag("a", "1")], [Field("v", 1)])
        clone = record.copy()
        clone.tags.append(Tag("b", "2"))
        clone.precision = Precision.NANOSECONDS
        assert record.tags == [Tag("a", "1")]
        assert record.precision is Precision.SECONDS
        assert clone == Record("m", [Tag("a", "1"), Tag("b", "2")], [Field("v", 1)],
                               precision=Precision.NANOSECONDS)

    def test_copy_batch(self) -> None:
        batch = [Record("a", fields=[Field("v", 1)]), Record("b", fields=[Field("v", 2)])]
        copied = copy_batch(batch)
        assert copied == batch
        assert all(c is not r for c, r in zip(copied, batch))


class TestPrecision:
    """Tests for Precision tokens."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("n", Precision.NANOSECONDS),
            ("ns", Precision.NANOSECONDS),
            ("u", Precision.MICROSECONDS),
            ("us", Precision.MICROSECONDS),
            ("ms", Precision.MILLISECONDS),
            ("S", Precision.SECONDS),
            ("m", Precision.MINUTES),
            ("h", Precision.HOURS),
        ],
    )
    def test_parse(self, token: str, expected: Precision) -> None:
        assert Precision.parse(token) is expected

    def test_parse_unknown_token(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown precision"):
            Precision.parse("weeks")

    def test_unit_lengths(self) -> None:
        assert Precision.NANOSECONDS.nanoseconds == 1
        assert Precision.SECONDS.nanoseconds == 1_000_000_000
        assert Precision.HOURS.nanoseconds == 3_600 * 1_000_000_000
