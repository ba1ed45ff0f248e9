"""Core data models for the Teams sink."""

from .events import ExceptionInfo, LogEvent, LogEventLevel
from .options import Button, SinkOptions
from .card import (
    Action,
    ActionTarget,
    CardModel,
    Fact,
    Section,
    parse_card,
    serialize_card,
)
from .delivery import DeliveryOutcome, DeliveryReport, DeliveryResult

__all__ = [
    # Events
    "LogEvent",
    "LogEventLevel",
    "ExceptionInfo",
    # Options
    "Button",
    "SinkOptions",
    # Card
    "CardModel",
    "Section",
    "Fact",
    "Action",
    "ActionTarget",
    "serialize_card",
    "parse_card",
    # Delivery
    "DeliveryOutcome",
    "DeliveryReport",
    "DeliveryResult",
]
