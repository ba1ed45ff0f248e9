"""Observability API routes."""

from datetime import datetime

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException, Query

from ...app import TeamsSink
from ...models import DeliveryOutcome


class DeliveryReportResponse(BaseModel):
    """Response model for a delivery report."""

    id: str
    outcome: str
    level: str
    summary: str
    timestamp: datetime
    counter: int | None = None
    attempts: int = 0
    error_kind: str | None = None
    detail: str | None = None


class StatsResponse(BaseModel):
    """Response model for delivery counters."""

    delivered: int
    failed: int
    lost: int
    pending: int
    state: str


def create_observability_router(sink: TeamsSink) -> APIRouter:
    """Create observability router."""
    router = APIRouter(prefix="/api", tags=["observability"])

    @router.get("/deliveries", response_model=list[DeliveryReportResponse])
    async def get_deliveries(
        outcome: str | None = Query(None, description="delivered, failed or lost"),
        limit: int = Query(100, ge=1, le=1000),
    ) -> list[dict]:
        """Get the latest delivery reports."""
        outcome_filter = None
        if outcome:
            try:
                outcome_filter = DeliveryOutcome(outcome)
            except ValueError:
                raise HTTPException(status_code=400, detail=f"Invalid outcome: {outcome}")

        reports = sink.tracker.get_reports(outcome=outcome_filter, limit=limit)
        return [
            {
                "id": r.id,
                "outcome": r.outcome.value,
                "level": r.level,
                "summary": r.summary,
                "timestamp": r.timestamp.isoformat(),
                "counter": r.counter,
                "attempts": r.attempts,
                "error_kind": r.error_kind,
                "detail": r.detail,
            }
            for r in reports
        ]

    @router.get("/stats", response_model=StatsResponse)
    async def get_stats() -> dict:
        """Get delivery counters and scheduler state."""
        return {
            **sink.tracker.stats,
            "pending": sink.scheduler.pending,
            "state": sink.scheduler.state.value,
        }

    return router
