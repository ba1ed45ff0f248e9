"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from ..app import TeamsSink
from ..config import load_options
from .routes import control, events, observability


# Global sink instance
_sink: TeamsSink | None = None


def get_sink() -> TeamsSink:
    """Get the global sink instance, configured from the environment."""
    global _sink
    if not _sink:
        _sink = TeamsSink(load_options())
    return _sink


def set_sink(sink: TeamsSink | None) -> None:
    """Replace the global sink instance."""
    global _sink
    _sink = sink


def create_lifespan(sink: TeamsSink):
    """Lifespan that starts and stops this app's sink."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        await sink.start()
        yield
        # Shutdown
        await sink.stop()

    return lifespan


def create_fastapi_app(sink: TeamsSink | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    if sink is not None:
        set_sink(sink)
    else:
        sink = get_sink()

    fastapi_app = FastAPI(
        title="Teams Log Sink",
        description="Relays structured log events to a Teams incoming webhook",
        version="0.1.0",
        lifespan=create_lifespan(sink),
    )

    # Include routers
    fastapi_app.include_router(events.create_events_router(sink))
    fastapi_app.include_router(observability.create_observability_router(sink))
    fastapi_app.include_router(control.create_control_router(sink))

    return fastapi_app
