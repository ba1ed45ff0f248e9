"""Sink configuration models."""

import re
from dataclasses import dataclass, field
from typing import Any, Mapping
from urllib.parse import urlparse

from ..errors import ConfigurationError
from .events import LogEventLevel

HEX_COLOR = re.compile(r"^[0-9a-f]{6}$")


@dataclass(frozen=True)
class Button:
    """A link rendered as an action button on every card."""

    name: str
    uri: str


@dataclass(frozen=True)
class SinkOptions:
    """Everything needed to build and deliver cards.

    Validated on construction; a bad value raises ConfigurationError.
    """

    webhook_url: str
    title: str = ""
    omit_properties_section: bool = False
    buttons: tuple[Button, ...] = ()
    colors: Mapping[LogEventLevel, str] = field(default_factory=dict)
    batch_period: float = 2.0
    batch_size_limit: int = 100
    request_timeout: float = 10.0
    max_concurrency: int = 1
    max_retries: int = 0
    retry_backoff: float = 0.5
    retry_backoff_max: float = 10.0
    shutdown_grace: float = 5.0
    queue_limit: int = 10_000

    def __post_init__(self) -> None:
        _check_url(self.webhook_url)

        if self.title is None or not isinstance(self.title, str):
            raise ConfigurationError("title must be a string")

        object.__setattr__(self, "buttons", _coerce_buttons(self.buttons))
        object.__setattr__(self, "colors", _coerce_colors(self.colors))

        for name in ("batch_period", "request_timeout", "shutdown_grace"):
            if getattr(self, name) <= 0:
                raise ConfigurationError(f"{name} must be positive")
        for name in ("batch_size_limit", "max_concurrency", "queue_limit"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be at least 1")
        if self.max_retries < 0:
            raise ConfigurationError("max_retries must not be negative")
        if self.retry_backoff < 0 or self.retry_backoff_max < 0:
            raise ConfigurationError("retry backoff must not be negative")


def _check_url(url: Any) -> None:
    if not url or not isinstance(url, str) or not url.strip():
        raise ConfigurationError("webhook_url is required")
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"webhook_url must be an absolute http(s) URL, got {url!r}")


def _coerce_buttons(buttons: Any) -> tuple[Button, ...]:
    if buttons is None:
        return ()
    if not isinstance(buttons, (list, tuple)):
        raise ConfigurationError(f"buttons must be a list, got {type(buttons).__name__}")
    result = []
    for button in buttons:
        if isinstance(button, Mapping):
            try:
                button = Button(name=button["name"], uri=button["uri"])
            except KeyError as e:
                raise ConfigurationError(f"button is missing {e.args[0]!r}") from e
        if not isinstance(button, Button):
            raise ConfigurationError(f"invalid button: {button!r}")
        if not button.name or not button.uri:
            raise ConfigurationError("button name and uri must be non-empty")
        result.append(button)
    return tuple(result)


def _coerce_colors(colors: Mapping[Any, str] | None) -> dict[LogEventLevel, str]:
    if colors is not None and not isinstance(colors, Mapping):
        raise ConfigurationError(f"colors must be a mapping, got {type(colors).__name__}")
    result: dict[LogEventLevel, str] = {}
    for level, color in (colors or {}).items():
        if isinstance(level, str):
            try:
                level = LogEventLevel[level.upper()]
            except KeyError as e:
                raise ConfigurationError(f"unknown level in colors: {level!r}") from e
        else:
            try:
                level = LogEventLevel(level)
            except ValueError as e:
                raise ConfigurationError(f"unknown level in colors: {level!r}") from e

        value = str(color).lstrip("#").lower()
        if not HEX_COLOR.match(value):
            raise ConfigurationError(f"color for {level} must be 6 hex digits, got {color!r}")
        result[level] = value
    return result
