"""
Bridge from Python's logging module to the Teams sink.

TeamsLogHandler converts LogRecords into LogEvents and hands them to a sink.
BackgroundSink runs a TeamsSink on a dedicated event loop thread so that
synchronous applications can use the handler without an event loop of
their own.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import logging
import threading
import traceback
from datetime import datetime, timezone
from typing import Any, Protocol

from .app import TeamsSink
from .logging_config import get_logger
from .models import ExceptionInfo, LogEvent, LogEventLevel

logger = get_logger(__name__)

# Records from these loggers are never forwarded; the sink logs through them.
IGNORED_LOGGERS = ("teams_sink", "httpx", "httpcore")

_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime", "taskName"}


class _EventTarget(Protocol):
    def emit(self, event: LogEvent) -> None:
        ...


def record_to_event(record: logging.LogRecord) -> LogEvent:
    """Convert a LogRecord into a LogEvent."""
    properties: dict[str, Any] = {"logger": record.name}
    for key, value in record.__dict__.items():
        if key not in _RESERVED_ATTRS and not key.startswith("_"):
            properties[key] = value

    exception = None
    if record.exc_info and record.exc_info[0] is not None:
        exc_type, exc_value, exc_tb = record.exc_info
        exception = ExceptionInfo(
            type_name=exc_type.__name__,
            message=str(exc_value),
            stack="".join(traceback.format_exception(exc_type, exc_value, exc_tb)),
        )

    return LogEvent(
        timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
        level=LogEventLevel.from_logging(record.levelno),
        message_template=record.msg if isinstance(record.msg, str) else str(record.msg),
        rendered_message=record.getMessage(),
        properties=properties,
        exception=exception,
    )


class TeamsLogHandler(logging.Handler):
    """Forwards log records to a Teams sink.

    Emitting only enqueues; network I/O happens on the sink's worker.
    """

    def __init__(self, sink: _EventTarget, level: int = logging.NOTSET) -> None:
        """Initialize the handler.

        Args:
            sink: A started TeamsSink or BackgroundSink
            level: Minimum log level to forward (default: NOTSET = all levels)
        """
        super().__init__(level)
        self._sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        """Forward a log record to the sink.

        Args:
            record: The log record to forward
        """
        if record.name.split(".", 1)[0] in IGNORED_LOGGERS:
            return
        try:
            self._sink.emit(record_to_event(record))
        except Exception:
            self.handleError(record)


class BackgroundSink:
    """Runs a TeamsSink on its own event loop in a daemon thread."""

    def __init__(self, sink: TeamsSink) -> None:
        self._sink = sink
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(
            target=self._run_loop, name="teams-sink-loop", daemon=True
        )

    @property
    def sink(self) -> TeamsSink:
        return self._sink

    def start(self, timeout: float = 5.0) -> None:
        """Start the loop thread and the sink on it."""
        if self._thread.is_alive():
            return
        self._thread.start()
        future = asyncio.run_coroutine_threadsafe(self._sink.start(), self._loop)
        future.result(timeout)

    def emit(self, event: LogEvent) -> None:
        """Queue an event. Safe from any thread."""
        self._sink.emit(event)

    def flush(self, timeout: float | None = None) -> None:
        """Block until everything queued so far has been delivered."""
        if not self._thread.is_alive():
            return
        future = asyncio.run_coroutine_threadsafe(self._sink.flush(), self._loop)
        future.result(timeout)

    def close(self, grace: float | None = None) -> None:
        """Drain the sink within the grace period and stop the loop thread."""
        if not self._thread.is_alive():
            return
        if grace is None:
            grace = self._sink.options.shutdown_grace

        future = asyncio.run_coroutine_threadsafe(self._sink.stop(grace), self._loop)
        try:
            # slack for cancelling and closing the client after the grace period
            future.result(grace + 1.0)
        except concurrent.futures.TimeoutError:
            logger.error("Teams sink did not stop within %.1fs", grace)
            future.cancel()

        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join(timeout=1.0)

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_forever()
        finally:
            self._loop.close()


def install_teams_log_handler(
    sink: _EventTarget,
    level: int = logging.WARNING,
    target: logging.Logger | None = None,
) -> TeamsLogHandler:
    """Install a TeamsLogHandler on the given logger (root by default).

    Args:
        sink: The sink to forward records to
        level: Minimum log level to forward

    Returns:
        The installed TeamsLogHandler instance
    """
    handler = TeamsLogHandler(sink, level)
    (target or logging.getLogger()).addHandler(handler)
    return handler
