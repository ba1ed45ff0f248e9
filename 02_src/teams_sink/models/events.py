"""Log event data models."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from typing import Any


class LogEventLevel(IntEnum):
    """Ordered log levels, lowest to highest."""

    VERBOSE = 0
    DEBUG = 1
    INFORMATION = 2
    WARNING = 3
    ERROR = 4
    FATAL = 5

    def __str__(self) -> str:
        return self.name.capitalize()

    @classmethod
    def from_logging(cls, levelno: int) -> "LogEventLevel":
        """Map a stdlib logging level number onto the nearest event level."""
        if levelno < logging.DEBUG:
            return cls.VERBOSE
        if levelno < logging.INFO:
            return cls.DEBUG
        if levelno < logging.WARNING:
            return cls.INFORMATION
        if levelno < logging.ERROR:
            return cls.WARNING
        if levelno < logging.CRITICAL:
            return cls.ERROR
        return cls.FATAL


@dataclass(frozen=True)
class ExceptionInfo:
    """An exception captured alongside a log event."""

    type_name: str
    message: str
    stack: str = ""


@dataclass(frozen=True)
class LogEvent:
    """A structured log event as handed over by the logging pipeline."""

    timestamp: datetime
    level: LogEventLevel | int | str
    message_template: str | None
    rendered_message: str | None = None
    properties: dict[str, Any] = field(default_factory=dict)
    exception: ExceptionInfo | None = None
