"""Teams sink: delivers structured log events as MessageCards to a webhook."""

from .app import ISink, TeamsSink
from .card_builder import build_card, build_palette
from .config import load_options
from .delivery import DeliveryClient, IDeliveryClient
from .errors import ConfigurationError, DeliveryError, DeliveryErrorKind, SinkError
from .handler import (
    BackgroundSink,
    TeamsLogHandler,
    install_teams_log_handler,
    record_to_event,
)
from .models import (
    Action,
    ActionTarget,
    Button,
    CardModel,
    DeliveryOutcome,
    DeliveryReport,
    DeliveryResult,
    ExceptionInfo,
    Fact,
    LogEvent,
    LogEventLevel,
    Section,
    SinkOptions,
    parse_card,
    serialize_card,
)
from .scheduler import BatchScheduler, SchedulerState
from .tracker import DeliveryTracker, IDeliveryTracker

__all__ = [
    # Sink
    "ISink",
    "TeamsSink",
    "load_options",
    # Models
    "LogEvent",
    "LogEventLevel",
    "ExceptionInfo",
    "Button",
    "SinkOptions",
    "CardModel",
    "Section",
    "Fact",
    "Action",
    "ActionTarget",
    "DeliveryOutcome",
    "DeliveryReport",
    "DeliveryResult",
    "serialize_card",
    "parse_card",
    # Errors
    "SinkError",
    "ConfigurationError",
    "DeliveryError",
    "DeliveryErrorKind",
    # Components
    "build_card",
    "build_palette",
    "IDeliveryClient",
    "DeliveryClient",
    "IDeliveryTracker",
    "DeliveryTracker",
    "BatchScheduler",
    "SchedulerState",
    # Logging integration
    "TeamsLogHandler",
    "BackgroundSink",
    "install_teams_log_handler",
    "record_to_event",
]
