"""BatchScheduler: buffers log events and flushes them as card deliveries."""

import asyncio
import itertools
from collections import deque
from enum import Enum
from typing import Callable

from ..card_builder import build_card
from ..logging_config import get_logger
from ..models import CardModel, LogEvent, SinkOptions, serialize_card
from ..delivery import IDeliveryClient
from ..errors import DeliveryErrorKind
from ..tracker import IDeliveryTracker
from .buffer import EventBuffer

logger = get_logger(__name__)

CardFactory = Callable[[LogEvent, SinkOptions, int], CardModel]


class SchedulerState(str, Enum):
    """Worker states."""

    IDLE = "idle"
    BUFFERING = "buffering"
    FLUSHING = "flushing"
    STOPPED = "stopped"


class BatchScheduler:
    """Owns the event buffer, the flush timer and the card counter.

    Callers only ever enqueue. The buffer is mutated exclusively by the worker
    task running on the scheduler's event loop; other threads hand events over
    through ``loop.call_soon_threadsafe``.
    """

    def __init__(
        self,
        options: SinkOptions,
        client: IDeliveryClient,
        tracker: IDeliveryTracker,
        card_factory: CardFactory = build_card,
    ):
        self._options = options
        self._client = client
        self._tracker = tracker
        self._card_factory = card_factory

        self._buffer = EventBuffer(options.batch_size_limit)
        self._incoming: deque[LogEvent] = deque()
        self._in_flight: dict[int, LogEvent] = {}
        self._counter = itertools.count(1)
        self._flush_waiters: list[asyncio.Future] = []

        self._loop: asyncio.AbstractEventLoop | None = None
        self._task: asyncio.Task | None = None
        self._wakeup: asyncio.Event | None = None
        self._cancel: asyncio.Event | None = None
        self._state = SchedulerState.IDLE
        self._accepting = False
        self._stopping = False

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def pending(self) -> int:
        """Events buffered or waiting to be buffered."""
        return len(self._buffer) + len(self._incoming) + len(self._in_flight)

    async def start(self) -> None:
        """Start the worker on the running loop."""
        if self._task is not None:
            return
        self._loop = asyncio.get_running_loop()
        self._wakeup = asyncio.Event()
        self._cancel = asyncio.Event()
        self._accepting = True
        self._stopping = False
        self._state = SchedulerState.IDLE
        self._task = asyncio.create_task(self._run(), name="teams-sink-scheduler")

    def enqueue(self, event: LogEvent) -> None:
        """Hand an event to the worker. Non-blocking and safe from any thread."""
        if not self._accepting or self._loop is None:
            self._tracker.lost(event, "sink is not running")
            return

        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None

        if running is self._loop:
            self._put(event)
            return

        try:
            self._loop.call_soon_threadsafe(self._put, event)
        except RuntimeError:
            # loop already closed
            self._tracker.lost(event, "sink is not running")

    async def flush(self) -> None:
        """Flush everything enqueued so far and wait for the deliveries."""
        if self._task is None or self._task.done():
            return
        waiter = asyncio.get_running_loop().create_future()
        self._flush_waiters.append(waiter)
        self._wakeup.set()
        await waiter

    async def stop(self, grace: float | None = None) -> None:
        """Drain remaining events, then stop the worker.

        Events not delivered within the grace period are reported as lost.
        """
        if self._task is None:
            return
        grace = self._options.shutdown_grace if grace is None else grace

        self._accepting = False
        self._stopping = True
        self._wakeup.set()

        done, _ = await asyncio.wait({self._task}, timeout=grace)
        if not done:
            logger.warning(
                "Shutdown grace period of %.1fs expired with %d event(s) pending",
                grace,
                self.pending,
            )
            self._cancel.set()
            self._task.cancel()

        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def _put(self, event: LogEvent) -> None:
        if not self._accepting:
            self._tracker.lost(event, "sink is shutting down")
            return
        if len(self._incoming) >= self._options.queue_limit:
            dropped = self._incoming.popleft()
            self._tracker.lost(dropped, "queue limit reached")
        self._incoming.append(event)
        self._wakeup.set()

    async def _run(self) -> None:
        """Worker loop: wait for events, buffer until a trigger, flush."""
        loop = asyncio.get_running_loop()
        try:
            while True:
                self._move_incoming()

                if not len(self._buffer):
                    self._resolve_flush_waiters()
                    if self._stopping:
                        break
                    self._state = SchedulerState.IDLE
                    await self._wait_wakeup(None)
                    continue

                self._state = SchedulerState.BUFFERING
                deadline = loop.time() + self._options.batch_period
                while not self._should_flush_now():
                    remaining = deadline - loop.time()
                    if remaining <= 0:
                        break
                    await self._wait_wakeup(remaining)
                    self._move_incoming()

                try:
                    await self._flush_buffer()
                except Exception as e:
                    logger.error("Flush failed: %s", e, exc_info=True)

        except asyncio.CancelledError:
            self._drop_pending("shutdown grace period expired")
            raise
        finally:
            self._state = SchedulerState.STOPPED
            self._resolve_flush_waiters()

    def _move_incoming(self) -> None:
        while self._incoming and not self._buffer.is_full():
            self._buffer.add(self._incoming.popleft())

    def _should_flush_now(self) -> bool:
        return self._buffer.is_full() or bool(self._flush_waiters) or self._stopping

    async def _wait_wakeup(self, timeout: float | None) -> None:
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout)
        except asyncio.TimeoutError:
            pass
        self._wakeup.clear()

    async def _flush_buffer(self) -> None:
        """Deliver every buffered event, one POST each, in enqueue order."""
        self._state = SchedulerState.FLUSHING
        batch = [(next(self._counter), event) for event in self._buffer.take()]
        self._in_flight = dict(batch)
        logger.debug("Flushing %d event(s)", len(batch))

        semaphore = asyncio.Semaphore(self._options.max_concurrency)

        async def deliver(counter: int, event: LogEvent) -> None:
            async with semaphore:
                await self._deliver(counter, event)

        results = await asyncio.gather(
            *[deliver(counter, event) for counter, event in batch],
            return_exceptions=True,
        )

        for (counter, event), result in zip(batch, results):
            if isinstance(result, Exception):
                logger.error("Error delivering card %s: %s", counter, result)
                self._in_flight.pop(counter, None)
                self._tracker.lost(event, f"unexpected error: {result}", counter)

    async def _deliver(self, counter: int, event: LogEvent) -> None:
        """Build, send and retry one card. Reports exactly one outcome."""
        card = self._card_factory(event, self._options, counter)
        payload = serialize_card(card)

        attempts = 0
        while True:
            attempts += 1
            result = await self._client.send(
                payload,
                self._options.webhook_url,
                self._options.request_timeout,
                cancel=self._cancel,
            )

            if result.ok:
                self._in_flight.pop(counter, None)
                self._tracker.delivered(event, counter, result, attempts)
                return

            error = result.error
            if error.kind == DeliveryErrorKind.CANCELLED:
                self._in_flight.pop(counter, None)
                self._tracker.lost(event, "delivery cancelled", counter)
                return

            if not error.transient or attempts > self._options.max_retries:
                self._in_flight.pop(counter, None)
                self._tracker.failed(event, counter, result, attempts)
                return

            delay = min(
                self._options.retry_backoff * 2 ** (attempts - 1),
                self._options.retry_backoff_max,
            )
            logger.info("Retrying card %s in %.2fs after %s", counter, delay, error)
            if await self._cancelled_within(delay):
                self._in_flight.pop(counter, None)
                self._tracker.lost(event, "delivery cancelled", counter)
                return

    async def _cancelled_within(self, delay: float) -> bool:
        try:
            await asyncio.wait_for(self._cancel.wait(), delay)
        except asyncio.TimeoutError:
            return False
        return True

    def _drop_pending(self, reason: str) -> None:
        for counter, event in sorted(self._in_flight.items()):
            self._tracker.lost(event, reason, counter)
        self._in_flight.clear()
        for event in self._buffer.take():
            self._tracker.lost(event, reason)
        while self._incoming:
            self._tracker.lost(self._incoming.popleft(), reason)

    def _resolve_flush_waiters(self) -> None:
        waiters, self._flush_waiters = self._flush_waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_result(None)
