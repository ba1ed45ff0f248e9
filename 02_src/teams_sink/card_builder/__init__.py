"""CardBuilder module."""

from .builder import (
    DEFAULT_COLOR,
    DEFAULT_COLORS,
    build_card,
    build_palette,
    coerce_level,
    format_timestamp,
)

__all__ = [
    "DEFAULT_COLOR",
    "DEFAULT_COLORS",
    "build_card",
    "build_palette",
    "coerce_level",
    "format_timestamp",
]
