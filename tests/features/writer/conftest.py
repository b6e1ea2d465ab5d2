"""BDD step definitions for batching writer features."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from influxreport.adapters.transports.capture import CaptureTransport
from influxreport.core.errors import set_error_handler
from influxreport.core.models import Field, Precision, Record
from influxreport.core.writer import BatchingWriter


class AlwaysFailingTransport(CaptureTransport):
    def write_to_transport(self, data: bytes) -> bytes:
        raise ConnectionError("connection refused")


@dataclass
class WriterScenarioContext:
    """State shared between the steps of one scenario."""

    transport: CaptureTransport = field(default_factory=CaptureTransport)
    writer: BatchingWriter | None = None
    errors: list[tuple[BaseException, str]] = field(default_factory=list)
    written: int = 0


@pytest.fixture
def ctx() -> Any:
    """Fresh scenario context with errors routed into it."""
    context = WriterScenarioContext()
    set_error_handler(lambda exc, message: context.errors.append((exc, message)))
    yield context
    set_error_handler(None)


def _records(ctx: WriterScenarioContext, count: int, timestamp: datetime | None = None) -> list[Record]:
    records = [
        Record(f"m{ctx.written + i}", fields=[Field("v", ctx.written + i)], timestamp=timestamp)
        for i in range(count)
    ]
    ctx.written += count
    return records


# === Given ===


@given("an in-memory capture transport")
def step_capture(ctx: WriterScenarioContext) -> None:
    ctx.transport = CaptureTransport()


@given("a transport requiring nanosecond precision")
def step_nanosecond_transport(ctx: WriterScenarioContext) -> None:
    ctx.transport = CaptureTransport(required_precision=Precision.NANOSECONDS)


@given("a transport that always fails")
def step_failing_transport(ctx: WriterScenarioContext) -> None:
    ctx.transport = AlwaysFailingTransport()


@given(parsers.parse("a writer with batch size {size:d}"))
def step_writer(ctx: WriterScenarioContext, size: int) -> None:
    ctx.writer = BatchingWriter(ctx.transport, batch_size=size)


# === When ===


@when(parsers.parse("{count:d} records are written one at a time"))
def step_write_one_at_a_time(ctx: WriterScenarioContext, count: int) -> None:
    for record in _records(ctx, count):
        ctx.writer.write([record])


@when(parsers.parse("{count:d} timestamped records are written"))
def step_write_timestamped(ctx: WriterScenarioContext, count: int) -> None:
    ctx.writer.write(_records(ctx, count, datetime(2024, 1, 1, tzinfo=timezone.utc)))


@when("the writer is flushed")
def step_flush(ctx: WriterScenarioContext) -> None:
    ctx.writer.flush()


# === Then ===


@then(parsers.parse('the transport received {count:d} batches of sizes "{sizes}"'))
def step_batch_sizes(ctx: WriterScenarioContext, count: int, sizes: str) -> None:
    batches = ctx.transport.batches
    assert len(batches) == count
    assert [len(batch) for batch in batches] == [int(s) for s in sizes.split(",")]


@then(parsers.parse("the transport received {count:d} batches"))
def step_batch_count(ctx: WriterScenarioContext, count: int) -> None:
    assert len(ctx.transport.payloads) == count


@then(parsers.re(r"(?P<count>\d+) records? (?:is|are) pending"), converters={"count": int})
def step_pending(ctx: WriterScenarioContext, count: int) -> None:
    assert ctx.writer.pending == count


@then("every sent line ends with a nanosecond timestamp")
def step_nanosecond_lines(ctx: WriterScenarioContext) -> None:
    lines = ctx.transport.lines
    assert lines
    assert all(line.endswith(" 1704067200000000000") for line in lines)


@then(parsers.parse("the error handler saw exactly {count:d} failure"))
def step_failures(ctx: WriterScenarioContext, count: int) -> None:
    assert len(ctx.errors) == count
