"""Event ingestion API routes."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field
from fastapi import APIRouter, HTTPException

from ...app import ISink
from ...card_builder import coerce_level
from ...models import ExceptionInfo, LogEvent


class ExceptionPayload(BaseModel):
    """Captured exception attached to an event."""

    type_name: str
    message: str = ""
    stack: str = ""


class LogEventRequest(BaseModel):
    """Request model for a single log event."""

    level: str | int
    message_template: str
    rendered_message: str | None = None
    timestamp: datetime | None = None
    properties: dict[str, Any] = Field(default_factory=dict)
    exception: ExceptionPayload | None = None


class QueuedResponse(BaseModel):
    """Response model for an accepted event."""

    status: str


def create_events_router(sink: ISink) -> APIRouter:
    """Create event ingestion router."""
    router = APIRouter(prefix="/api", tags=["events"])

    @router.post("/events", response_model=QueuedResponse, status_code=202)
    async def post_event(request: LogEventRequest) -> dict:
        """Queue a log event for delivery as a card."""
        level = coerce_level(request.level)
        if level is None:
            raise HTTPException(status_code=422, detail=f"Unknown level: {request.level}")

        exception = None
        if request.exception:
            exception = ExceptionInfo(**request.exception.model_dump())

        sink.emit(
            LogEvent(
                timestamp=request.timestamp or datetime.now(timezone.utc),
                level=level,
                message_template=request.message_template,
                rendered_message=(
                    request.rendered_message
                    if request.rendered_message is not None
                    else request.message_template
                ),
                properties=request.properties,
                exception=exception,
            )
        )
        return {"status": "queued"}

    return router
