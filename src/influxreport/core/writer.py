"""Batching writers that buffer records and hand batches to a transport.

Records are appended to a buffer. When ``batch_size`` is positive, every
``batch_size`` records are sent as soon as they are buffered; ``flush()``
sends whatever remains. A batch that fails to send is reported to the error
handler and dropped, never re-queued.
"""

import asyncio
import logging
import threading
from collections.abc import Iterable

from influxreport.core.errors import ConfigurationError, ErrorHandler, handle_error
from influxreport.core.models import Batch, Record, copy_batch
from influxreport.core.ports import AsyncTransportPort, TransportPort

logger = logging.getLogger(__name__)


class _BatchBuffer:
    """Buffer bookkeeping shared by the sync and async writers."""

    def __init__(
        self,
        transport: TransportPort,
        batch_size: int = 0,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        if batch_size < 0:
            raise ConfigurationError(f"batch_size must be zero or positive, got {batch_size}")
        self._transport = transport
        self._batch_size = batch_size
        self._error_handler = error_handler
        self._buffer: Batch = []
        self._last_batch: Batch = []

    @property
    def transport(self) -> TransportPort:
        return self._transport

    @property
    def batch_size(self) -> int:
        """Records per implicit flush. Zero disables implicit flushes."""
        return self._batch_size

    @property
    def pending(self) -> int:
        """Number of records waiting in the buffer."""
        return len(self._buffer)

    @property
    def last_batch(self) -> Batch:
        """Copy of the last batch handed to the transport."""
        return copy_batch(self._last_batch)

    def _take_full_batch(self) -> Batch | None:
        """Remove and return the oldest ``batch_size`` records if the buffer holds that many."""
        if self._batch_size <= 0 or len(self._buffer) < self._batch_size:
            return None
        batch = self._buffer[: self._batch_size]
        del self._buffer[: self._batch_size]
        return batch

    def _take_all(self) -> Batch:
        batch, self._buffer = self._buffer, []
        return batch

    def _encode(self, batch: Batch) -> bytes:
        precision = self._transport.required_precision
        if precision is not None:
            for record in batch:
                record.precision = precision
        self._last_batch = batch
        return self._transport.encode(batch)

    def _report_failure(self, exc: Exception, batch: Batch, data: bytes | None) -> None:
        size = f"{len(data)} bytes" if data is not None else "unencoded"
        message = (
            f"Error while uploading {len(batch)} measurements ({size}) "
            f"to InfluxDB at {self._transport.destination}"
        )
        if self._error_handler is not None:
            try:
                self._error_handler(exc, message)
            except Exception:
                logger.exception("Error handler failed while handling: %s", message)
        else:
            handle_error(exc, message)


class BatchingWriter(_BatchBuffer):
    """Buffers records and writes them to a transport in batches.

    Buffer access and sends are serialized by one reentrant lock: an implicit
    flush triggered by ``write()`` and an explicit ``flush()`` never
    interleave, and batches reach the transport in the order they were
    formed.

    Args:
        transport: Transport that encodes and delivers each batch.
        batch_size: Records per implicit flush. Zero buffers everything until
            ``flush()``.
        error_handler: Receives transport failures. Defaults to the
            process-wide handler.

    Raises:
        ConfigurationError: If ``batch_size`` is negative.
    """

    def __init__(
        self,
        transport: TransportPort,
        batch_size: int = 0,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        super().__init__(transport, batch_size, error_handler)
        self._lock = threading.RLock()

    def write(self, records: Iterable[Record]) -> None:
        """Take ownership of records and send every full batch."""
        with self._lock:
            self._buffer.extend(records)
            while (batch := self._take_full_batch()) is not None:
                self._send(batch)

    def flush(self) -> None:
        """Send every buffered record as one batch."""
        with self._lock:
            batch = self._take_all()
            if batch:
                self._send(batch)

    def _send(self, batch: Batch) -> None:
        data = None
        try:
            data = self._encode(batch)
            logger.debug(
                "Writing %d measurements (%d bytes) to %s",
                len(batch),
                len(data),
                self._transport.destination,
            )
            self._transport.write_to_transport(data)
        except Exception as exc:
            self._report_failure(exc, batch, data)


class AsyncBatchingWriter(_BatchBuffer):
    """Async variant of BatchingWriter.

    Sends are serialized by an ``asyncio.Lock``, so a later flush never
    completes before an earlier one.

    Args:
        transport: Transport implementing ``write_to_transport_async``.
        batch_size: Records per implicit flush. Zero buffers everything until
            ``flush()``.
        error_handler: Receives transport failures. Defaults to the
            process-wide handler.
    """

    def __init__(
        self,
        transport: AsyncTransportPort,
        batch_size: int = 0,
        error_handler: ErrorHandler | None = None,
    ) -> None:
        super().__init__(transport, batch_size, error_handler)
        self._async_transport = transport
        self._lock: asyncio.Lock | None = None

    def _get_lock(self) -> asyncio.Lock:
        """Get or create the send lock (lazy to avoid event loop issues)."""
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def write(self, records: Iterable[Record]) -> None:
        """Take ownership of records and send every full batch."""
        async with self._get_lock():
            self._buffer.extend(records)
            while (batch := self._take_full_batch()) is not None:
                await self._send(batch)

    async def flush(self) -> None:
        """Send every buffered record as one batch."""
        async with self._get_lock():
            batch = self._take_all()
            if batch:
                await self._send(batch)

    async def _send(self, batch: Batch) -> None:
        data = None
        try:
            data = self._encode(batch)
            logger.debug(
                "Writing %d measurements (%d bytes) to %s",
                len(batch),
                len(data),
                self._transport.destination,
            )
            await self._async_transport.write_to_transport_async(data)
        except Exception as exc:
            self._report_failure(exc, batch, data)
