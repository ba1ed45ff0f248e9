"""Builds MessageCards from log events."""

from datetime import datetime, timezone
from typing import Mapping

from ..errors import ConfigurationError
from ..models import (
    Action,
    ActionTarget,
    CardModel,
    Fact,
    LogEvent,
    LogEventLevel,
    Section,
    SinkOptions,
)

PROPERTIES_SECTION_TITLE = "Properties"
DEFAULT_COLOR = "777777"

DEFAULT_COLORS: dict[LogEventLevel, str] = {
    LogEventLevel.VERBOSE: "777777",
    LogEventLevel.DEBUG: "b0b0b0",
    LogEventLevel.INFORMATION: "5bc0de",
    LogEventLevel.WARNING: "ffc83d",
    LogEventLevel.ERROR: "d9534f",
    LogEventLevel.FATAL: "a4262c",
}

# Names accepted for string levels, besides the enum names themselves.
_LEVEL_ALIASES: dict[str, LogEventLevel] = {
    "TRACE": LogEventLevel.VERBOSE,
    "INFO": LogEventLevel.INFORMATION,
    "WARN": LogEventLevel.WARNING,
    "CRITICAL": LogEventLevel.FATAL,
}


def build_palette(overrides: Mapping[LogEventLevel, str] | None = None) -> dict[LogEventLevel, str]:
    """Merge per-level overrides into the default table and check it is total."""
    palette = {**DEFAULT_COLORS, **(overrides or {})}
    missing = [str(level) for level in LogEventLevel if not palette.get(level)]
    if missing:
        raise ConfigurationError(f"no color configured for levels: {', '.join(missing)}")
    return palette


# Every level must have a default.
build_palette()


def coerce_level(level: LogEventLevel | int | str | None) -> LogEventLevel | None:
    """Resolve a raw level to a known level.

    Integers outside the known range clamp to the nearest bound. Strings match
    names case-insensitively. Anything else resolves to None.
    """
    if isinstance(level, LogEventLevel):
        return level
    if isinstance(level, bool):
        return None
    if isinstance(level, int):
        return LogEventLevel(min(max(level, LogEventLevel.VERBOSE), LogEventLevel.FATAL))
    if isinstance(level, str):
        name = level.strip().upper()
        if name in LogEventLevel.__members__:
            return LogEventLevel[name]
        return _LEVEL_ALIASES.get(name)
    return None


def format_timestamp(timestamp: datetime | None) -> str:
    """ISO-8601 in UTC with fixed microsecond precision.

    A missing or non-datetime timestamp is replaced by the current time.
    """
    if not isinstance(timestamp, datetime):
        timestamp = datetime.now(timezone.utc)
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _text(value: object) -> str:
    return "" if value is None else str(value)


def build_card(event: LogEvent, options: SinkOptions, counter: int) -> CardModel:
    """Build the card for one event. Never raises on odd event contents."""
    level = coerce_level(event.level)
    palette = build_palette(options.colors)
    color = palette[level] if level is not None else DEFAULT_COLOR
    level_text = str(level) if level is not None else str(event.level)

    sections = None
    if not options.omit_properties_section:
        sections = [
            Section(
                title=PROPERTIES_SECTION_TITLE,
                facts=[
                    Fact(name="Level", value=level_text),
                    Fact(name="MessageTemplate", value=_text(event.message_template)),
                    Fact(name="counter", value=str(counter)),
                    Fact(name="Occurred on", value=format_timestamp(event.timestamp)),
                ],
            )
        ]

    actions = None
    if options.buttons:
        actions = [
            Action(name=button.name, targets=[ActionTarget(uri=button.uri)])
            for button in options.buttons
        ]

    return CardModel(
        title=options.title,
        text=_text(event.rendered_message),
        color=color,
        sections=sections,
        actions=actions,
    )
