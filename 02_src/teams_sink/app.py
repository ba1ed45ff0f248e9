"""Sink bootstrap and lifecycle management."""

from typing import Protocol

from .card_builder import build_palette
from .delivery import DeliveryClient, IDeliveryClient
from .logging_config import get_logger
from .models import LogEvent, SinkOptions
from .scheduler import BatchScheduler, SchedulerState
from .tracker import DeliveryTracker, DiagnosticsCallback

logger = get_logger(__name__)


class ISink(Protocol):
    """Accepts log events and delivers them as cards."""

    def emit(self, event: LogEvent) -> None:
        """Queue an event. Never raises, never blocks on I/O."""
        ...

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def flush(self) -> None:
        """Deliver everything queued so far."""
        ...

    async def stop(self, grace: float | None = None) -> None:
        """Drain and shut down in reverse order."""
        ...


class TeamsSink:
    """Wires options, delivery client, tracker and scheduler together.

    Construction validates the configuration and raises ConfigurationError
    right away; nothing is sent until start() has been awaited.
    """

    def __init__(
        self,
        options: SinkOptions,
        client: IDeliveryClient | None = None,
        on_error: DiagnosticsCallback | None = None,
    ):
        if not isinstance(options, SinkOptions):
            options = SinkOptions(**options)
        build_palette(options.colors)

        self._options = options
        self._client = client
        self._owns_client = client is None
        self._on_error = on_error

        # Components (will be initialized in start())
        self._tracker: DeliveryTracker | None = None
        self._scheduler: BatchScheduler | None = None

    @property
    def options(self) -> SinkOptions:
        return self._options

    async def start(self) -> None:
        """Initialize components in dependency order."""
        if self._scheduler is not None and self._scheduler.state != SchedulerState.STOPPED:
            return
        logger.info("Starting Teams sink")

        # 1. Tracker (no dependencies, kept across restarts)
        if self._tracker is None:
            self._tracker = DeliveryTracker(on_error=self._on_error)

        # 2. DeliveryClient (no internal dependencies)
        if self._client is None:
            self._client = DeliveryClient()

        # 3. Scheduler (depends on client + tracker)
        self._scheduler = BatchScheduler(self._options, self._client, self._tracker)
        await self._scheduler.start()
        logger.info(
            "Teams sink started: batch_period=%.1fs batch_size_limit=%d",
            self._options.batch_period,
            self._options.batch_size_limit,
        )

    def emit(self, event: LogEvent) -> None:
        """Queue an event for delivery."""
        if self._scheduler is None:
            logger.warning("Teams sink not started; event dropped")
            return
        self._scheduler.enqueue(event)

    async def flush(self) -> None:
        """Deliver everything queued so far."""
        if self._scheduler:
            await self._scheduler.flush()

    async def stop(self, grace: float | None = None) -> None:
        """Shutdown in reverse order."""
        if self._scheduler:
            await self._scheduler.stop(grace)
            logger.info("Scheduler stopped")
        if self._client:
            await self._client.aclose()
            if self._owns_client:
                # recreated on the next start()
                self._client = None

    @property
    def tracker(self) -> DeliveryTracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Sink not started")
        return self._tracker

    @property
    def scheduler(self) -> BatchScheduler:
        """Get scheduler instance."""
        if not self._scheduler:
            raise RuntimeError("Sink not started")
        return self._scheduler
