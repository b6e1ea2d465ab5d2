"""Exceptions and the process-wide error sink.

Configuration problems raise immediately. Transport failures never escape the
writer: they are handed to an error handler, which by default logs them.
"""

import logging
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[BaseException, str], None]


class InfluxReportError(Exception):
    """Base class for all influxreport errors."""


class ConfigurationError(InfluxReportError, ValueError):
    """Invalid settings, detected when an object is constructed."""


class InvalidRecordError(ConfigurationError):
    """A tag, field or record that cannot be written to InfluxDB."""


class TransportError(InfluxReportError):
    """A batch could not be delivered to the InfluxDB server.

    Attributes:
        destination: Human readable description of the target endpoint.
        status_code: HTTP status code, if the server answered.
    """

    def __init__(
        self,
        message: str,
        destination: str = "",
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.destination = destination
        self.status_code = status_code


def log_error(exc: BaseException, message: str) -> None:
    """Default error handler: log the failure with its traceback."""
    logger.error(message, exc_info=(type(exc), exc, exc.__traceback__))


_handler_lock = threading.Lock()
_handler: ErrorHandler = log_error


def set_error_handler(handler: ErrorHandler | None) -> None:
    """Replace the process-wide error handler.

    Args:
        handler: Callable receiving the exception and a context message.
            ``None`` restores the default logging handler.
    """
    global _handler
    with _handler_lock:
        _handler = handler if handler is not None else log_error


def get_error_handler() -> ErrorHandler:
    """Return the current process-wide error handler."""
    with _handler_lock:
        return _handler


def handle_error(exc: BaseException, message: str) -> None:
    """Dispatch a failure to the current process-wide error handler.

    A handler that raises is logged and otherwise ignored so that reporting
    keeps running.
    """
    handler = get_error_handler()
    try:
        handler(exc, message)
    except Exception:
        logger.exception("Error handler failed while handling: %s", message)
