"""Pytest configuration and fixtures."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from webhook_server import WEBHOOK_URL, WebhookRecorder  # noqa: E402


def make_event(
    rendered: str = "User 42 failed",
    template: str = "User {id} failed",
    level=None,
    **kwargs,
):
    """Create a LogEvent with sensible defaults."""
    from teams_sink.models import LogEvent, LogEventLevel

    return LogEvent(
        timestamp=kwargs.pop("timestamp", datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)),
        level=LogEventLevel.WARNING if level is None else level,
        message_template=template,
        rendered_message=rendered,
        **kwargs,
    )


@pytest.fixture
def event_factory():
    """Expose make_event to tests."""
    return make_event


@pytest.fixture
def options():
    """Sink options pointing at the in-process webhook."""
    from teams_sink.models import SinkOptions

    return SinkOptions(webhook_url=WEBHOOK_URL, title="Integration Tests")


@pytest.fixture
def webhook():
    """Create an in-process webhook receiver."""
    return WebhookRecorder()


@pytest_asyncio.fixture
async def delivery_client(webhook):
    """Create DeliveryClient routed to the webhook receiver."""
    from teams_sink.delivery import DeliveryClient

    http_client = webhook.client()
    client = DeliveryClient(http_client)
    yield client
    await http_client.aclose()


@pytest.fixture
def tracker():
    """Create DeliveryTracker."""
    from teams_sink.tracker import DeliveryTracker

    return DeliveryTracker()


@pytest_asyncio.fixture
async def scheduler_factory(delivery_client, tracker):
    """Build and start schedulers; stops them after the test."""
    from teams_sink.models import SinkOptions
    from teams_sink.scheduler import BatchScheduler

    created = []

    async def factory(client=None, **overrides):
        overrides.setdefault("title", "Integration Tests")
        opts = SinkOptions(webhook_url=WEBHOOK_URL, **overrides)
        scheduler = BatchScheduler(opts, client or delivery_client, tracker)
        await scheduler.start()
        created.append(scheduler)
        return scheduler

    yield factory

    for scheduler in created:
        await scheduler.stop(grace=1.0)
