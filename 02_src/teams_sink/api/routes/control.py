"""Control API routes."""

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import ISink


class StatusResponse(BaseModel):
    """Response model for status."""

    status: str


def create_control_router(sink: ISink) -> APIRouter:
    """Create control router."""
    router = APIRouter(prefix="/api/control", tags=["control"])

    @router.post("/flush", response_model=StatusResponse)
    async def flush() -> dict:
        """Deliver everything queued so far before returning."""
        try:
            await sink.flush()
            return {"status": "ok"}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    return router
