"""DeliveryTracker: the diagnostics side channel for delivery outcomes."""

import uuid
from collections import deque
from datetime import datetime, timezone
from typing import Callable, Protocol

from ..logging_config import get_logger
from ..models import DeliveryOutcome, DeliveryReport, DeliveryResult, LogEvent

logger = get_logger(__name__)

DiagnosticsCallback = Callable[[DeliveryReport], None]


class IDeliveryTracker(Protocol):
    """Records what happened to each event. Never raises."""

    def delivered(self, event: LogEvent, counter: int, result: DeliveryResult, attempts: int) -> None:
        """Record a successful delivery."""
        ...

    def failed(self, event: LogEvent, counter: int, result: DeliveryResult, attempts: int) -> None:
        """Record a delivery that gave up."""
        ...

    def lost(self, event: LogEvent, reason: str, counter: int | None = None) -> None:
        """Record an event dropped without a completed delivery."""
        ...


class DeliveryTracker:
    """Keeps the latest reports in memory, counts outcomes, logs failures."""

    def __init__(self, on_error: DiagnosticsCallback | None = None, history: int = 1000):
        self._on_error = on_error
        self._reports: deque[DeliveryReport] = deque(maxlen=history)
        self._counts: dict[DeliveryOutcome, int] = {outcome: 0 for outcome in DeliveryOutcome}

    def delivered(self, event: LogEvent, counter: int, result: DeliveryResult, attempts: int) -> None:
        """Record a successful delivery."""
        self._track(event, DeliveryOutcome.DELIVERED, counter=counter, attempts=attempts)

    def failed(self, event: LogEvent, counter: int, result: DeliveryResult, attempts: int) -> None:
        """Record a delivery that gave up."""
        error = result.error
        report = self._track(
            event,
            DeliveryOutcome.FAILED,
            counter=counter,
            attempts=attempts,
            error_kind=error.kind.value if error else None,
            detail=str(error) if error else None,
        )
        logger.warning(
            "Card %s not delivered after %d attempt(s): %s",
            counter,
            attempts,
            report.detail,
            extra={"context": _context(report)},
        )
        self._notify(report)

    def lost(self, event: LogEvent, reason: str, counter: int | None = None) -> None:
        """Record an event dropped without a completed delivery."""
        report = self._track(event, DeliveryOutcome.LOST, counter=counter, detail=reason)
        logger.warning("Log event lost: %s", reason, extra={"context": _context(report)})
        self._notify(report)

    def get_reports(
        self,
        outcome: DeliveryOutcome | None = None,
        limit: int = 100,
    ) -> list[DeliveryReport]:
        """Latest reports, oldest first, optionally filtered by outcome."""
        reports = [r for r in self._reports if outcome is None or r.outcome == outcome]
        return reports[-limit:]

    @property
    def stats(self) -> dict[str, int]:
        return {outcome.value: count for outcome, count in self._counts.items()}

    def _track(self, event: LogEvent, outcome: DeliveryOutcome, **fields) -> DeliveryReport:
        report = DeliveryReport(
            id=str(uuid.uuid4()),
            outcome=outcome,
            level=str(event.level),
            summary=("" if event.rendered_message is None else str(event.rendered_message))[:100],
            timestamp=datetime.now(timezone.utc),
            **fields,
        )
        self._reports.append(report)
        self._counts[outcome] += 1
        return report

    def _notify(self, report: DeliveryReport) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(report)
        except Exception as e:
            logger.error("Error in diagnostics callback: %s", e, exc_info=True)


def _context(report: DeliveryReport) -> dict:
    """Structured fields for the JSON log formatter."""
    return {
        "report_id": report.id,
        "outcome": report.outcome.value,
        "counter": report.counter,
        "level": report.level,
        "attempts": report.attempts,
        "error_kind": report.error_kind,
    }
