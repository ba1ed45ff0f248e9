"""Error types raised or reported by the sink."""

from enum import Enum


class SinkError(Exception):
    """Base class for all sink errors."""


class ConfigurationError(SinkError, ValueError):
    """Invalid or missing sink configuration. Raised at setup time."""


class DeliveryErrorKind(str, Enum):
    """Why a delivery attempt failed."""

    STATUS = "status"
    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    CANCELLED = "cancelled"


class DeliveryError(SinkError):
    """A failed delivery attempt.

    Returned inside a DeliveryResult rather than raised, so the scheduler can
    record it and move on to the next event.
    """

    def __init__(
        self,
        kind: DeliveryErrorKind,
        message: str,
        *,
        status_code: int | None = None,
        body_excerpt: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.body_excerpt = body_excerpt

    @property
    def transient(self) -> bool:
        """Whether retrying the same payload may succeed."""
        if self.kind in (DeliveryErrorKind.TIMEOUT, DeliveryErrorKind.TRANSPORT):
            return True
        if self.kind == DeliveryErrorKind.STATUS and self.status_code is not None:
            return self.status_code in (408, 429) or self.status_code >= 500
        return False

    def __repr__(self) -> str:
        return (
            f"DeliveryError(kind={self.kind.value!r}, status_code={self.status_code!r}, "
            f"message={str(self)!r})"
        )
