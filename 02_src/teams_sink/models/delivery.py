"""Delivery outcome data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from ..errors import DeliveryError


class DeliveryOutcome(str, Enum):
    """Final outcome recorded for one event."""

    DELIVERED = "delivered"
    FAILED = "failed"
    LOST = "lost"


@dataclass(frozen=True)
class DeliveryResult:
    """Result of a single POST to the webhook."""

    status_code: int | None = None
    error: DeliveryError | None = None
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DeliveryReport:
    """A single diagnostics record for the side channel."""

    id: str
    outcome: DeliveryOutcome
    level: str
    summary: str  # first 100 chars of the rendered text
    timestamp: datetime
    counter: int | None = None
    attempts: int = 0
    error_kind: str | None = None
    detail: str | None = None
