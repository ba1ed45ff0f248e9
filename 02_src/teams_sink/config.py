"""Project-level configuration, path helpers and env-based options."""

import json
import os
from pathlib import Path
from typing import Any, Callable, Mapping

from .errors import ConfigurationError
from .models import SinkOptions

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "teams_sink.log"

ENV_PREFIX = "TEAMS_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"not a boolean: {value!r}")


# env suffix -> (SinkOptions field, parser)
_ENV_FIELDS: dict[str, tuple[str, Callable[[str], Any]]] = {
    "TITLE": ("title", str),
    "OMIT_PROPERTIES": ("omit_properties_section", _parse_bool),
    "BUTTONS": ("buttons", json.loads),
    "COLORS": ("colors", json.loads),
    "BATCH_PERIOD": ("batch_period", float),
    "BATCH_SIZE": ("batch_size_limit", int),
    "REQUEST_TIMEOUT": ("request_timeout", float),
    "MAX_CONCURRENCY": ("max_concurrency", int),
    "MAX_RETRIES": ("max_retries", int),
    "RETRY_BACKOFF": ("retry_backoff", float),
    "SHUTDOWN_GRACE": ("shutdown_grace", float),
    "QUEUE_LIMIT": ("queue_limit", int),
}


def load_options(env: Mapping[str, str] | None = None) -> SinkOptions:
    """Build SinkOptions from TEAMS_* environment variables.

    Unset variables keep the SinkOptions defaults. Raises ConfigurationError
    for a missing webhook URL or an unparsable value.
    """
    if env is None:
        env = os.environ

    kwargs: dict[str, Any] = {"webhook_url": env.get(f"{ENV_PREFIX}WEBHOOK_URL", "")}
    for suffix, (field_name, parse) in _ENV_FIELDS.items():
        name = f"{ENV_PREFIX}{suffix}"
        raw = env.get(name)
        if raw is None:
            continue
        try:
            kwargs[field_name] = parse(raw)
        except ValueError as e:
            raise ConfigurationError(f"invalid value for {name}: {e}") from e

    return SinkOptions(**kwargs)
