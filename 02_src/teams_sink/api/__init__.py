"""Relay API module."""

from .app import create_fastapi_app, get_sink, set_sink

__all__ = ["create_fastapi_app", "get_sink", "set_sink"]
