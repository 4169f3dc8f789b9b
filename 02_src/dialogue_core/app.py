"""Application bootstrap and lifecycle management."""

import asyncio
import time
from typing import Any, Awaitable, Callable, Protocol

import httpx

from .config import DispatchSettings, ProviderSettings
from .dispatch import DispatchScheduler, RateLimiter, RequestQueue
from .event_bus import EventBus
from .llm import DialogueBroker
from .logging_config import get_logger
from .models import (
    BusMessage,
    DialogueError,
    DialogueRequest,
    DialogueResponse,
    RequestId,
    Topic,
)
from .telemetry import JsonlTelemetrySink, TelemetryLog

logger = get_logger(__name__)

ResponseHandler = Callable[[DialogueResponse], Awaitable[None]]
FailureHandler = Callable[[DialogueError], Awaitable[None]]


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Drop queued work, cooldowns and buffered telemetry."""
        ...

    def enqueue(self, request: DialogueRequest) -> RequestId:
        """Accept a dialogue request for background dispatch."""
        ...


class Application:
    """Main application bootstrap.

    Owns the dispatch tick loop. ``tick`` may also be driven by hand when the
    application is started with ``run_loop=False``.
    """

    def __init__(
        self,
        provider_settings: ProviderSettings | None = None,
        dispatch_settings: DispatchSettings | None = None,
        broker: DialogueBroker | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._provider_settings = provider_settings
        self._dispatch_settings = dispatch_settings
        self._transport = transport

        # Components (will be initialized in start())
        self._broker: DialogueBroker | None = broker
        self._event_bus: EventBus | None = None
        self._queue: RequestQueue | None = None
        self._rate_limiter: RateLimiter | None = None
        self._telemetry: TelemetryLog | None = None
        self._scheduler: DispatchScheduler | None = None

        self._running = False
        self._loop_task: asyncio.Task | None = None

    async def start(self, run_loop: bool = True) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Settings (read once)
        if self._provider_settings is None:
            self._provider_settings = ProviderSettings.from_env()
        if self._dispatch_settings is None:
            self._dispatch_settings = DispatchSettings.from_env()
        settings = self._dispatch_settings

        # 2. Broker (live or fallback, fixed for its lifetime)
        if self._broker is None:
            self._broker = DialogueBroker(self._provider_settings, self._transport)
        status = self._broker.status
        logger.info(
            "Dialogue broker ready: provider=%s, connection=%s",
            status.provider.value,
            status.connection_state.value,
        )

        # 3. EventBus (no dependencies)
        self._event_bus = EventBus()

        # 4. Telemetry (depends on EventBus)
        self._telemetry = TelemetryLog(
            self._event_bus,
            capacity=settings.telemetry_capacity,
            sink=JsonlTelemetrySink(settings.telemetry_path),
        )
        await self._telemetry.start()

        # 5. Queue, rate limiter and scheduler
        self._queue = RequestQueue()
        self._rate_limiter = RateLimiter(
            settings.global_cooldown_seconds,
            settings.per_npc_cooldown_seconds,
        )
        self._scheduler = DispatchScheduler(
            queue=self._queue,
            rate_limiter=self._rate_limiter,
            broker=self._broker,
            event_bus=self._event_bus,
            settings=settings,
        )

        # 6. Tick loop
        if run_loop:
            self._running = True
            self._loop_task = asyncio.create_task(self._run_loop(), name="dialogue-tick-loop")
            logger.info("Tick loop started (interval %.3fs)", settings.tick_interval_seconds)
        logger.info("All components initialized successfully")

    async def tick(self, delta_seconds: float) -> None:
        """Run one dispatch step followed by a telemetry flush."""
        await self.scheduler.tick(delta_seconds)
        await self.telemetry.flush()

    async def _run_loop(self) -> None:
        interval = self._dispatch_settings.tick_interval_seconds
        last = time.monotonic()
        while self._running:
            await asyncio.sleep(interval)
            if not self._running:
                break
            now = time.monotonic()
            delta, last = now - last, now
            try:
                await self.tick(delta)
            except Exception as e:
                logger.error("Dispatch tick failed: %s", e, exc_info=True)

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        self._running = False
        if self._loop_task:
            await self._loop_task
            self._loop_task = None

        if self._scheduler:
            in_flight = self._scheduler.in_flight_count
            if in_flight:
                logger.info("Waiting for %s in-flight dialogue request(s)", in_flight)
            await self._scheduler.wait_for_in_flight()
        if self._queue and len(self._queue):
            logger.warning("Stopping with %s queued dialogue request(s)", len(self._queue))
        if self._telemetry is not None:
            await self._telemetry.flush()
        if self._broker is not None:
            await self._broker.close()
            logger.info("Dialogue broker closed")

    async def reset(self) -> None:
        """Drop queued work, cooldowns and buffered telemetry."""
        if self._scheduler is not None:
            self._scheduler.clear()
        if self._telemetry is not None:
            self._telemetry.clear()
        logger.info("Reset complete")

    def enqueue(self, request: DialogueRequest) -> RequestId:
        """Accept a dialogue request for background dispatch."""
        request_id = self.queue.enqueue(request)
        logger.debug("Enqueued dialogue request %s for %s", request_id, request.speaker)
        return request_id

    def subscribe_responses(self, handler: ResponseHandler) -> None:
        """Call ``handler`` with every successful response."""

        async def _deliver(message: BusMessage) -> None:
            await handler(message.payload)

        self.event_bus.subscribe(Topic.RESPONSE, _deliver)

    def subscribe_failures(self, handler: FailureHandler) -> None:
        """Call ``handler`` with every terminal failure."""

        async def _deliver(message: BusMessage) -> None:
            await handler(message.payload)

        self.event_bus.subscribe(Topic.FAILURE, _deliver)

    def status(self) -> dict[str, Any]:
        """Snapshot of broker, queue and limiter state."""
        return {
            **self.broker.status.to_dict(),
            "queue_depth": len(self.queue),
            "in_flight": self.scheduler.in_flight_count,
            "global_cooldown_remaining": self.rate_limiter.global_remaining,
            "running": self._running,
        }

    @property
    def broker(self) -> DialogueBroker:
        """Get broker instance."""
        if not self._broker or not self._scheduler:
            raise RuntimeError("Application not started")
        return self._broker

    @property
    def event_bus(self) -> EventBus:
        """Get event bus instance."""
        if not self._event_bus:
            raise RuntimeError("Application not started")
        return self._event_bus

    @property
    def queue(self) -> RequestQueue:
        """Get request queue instance."""
        if self._queue is None:
            raise RuntimeError("Application not started")
        return self._queue

    @property
    def rate_limiter(self) -> RateLimiter:
        if not self._rate_limiter:
            raise RuntimeError("Application not started")
        return self._rate_limiter

    @property
    def scheduler(self) -> DispatchScheduler:
        if not self._scheduler:
            raise RuntimeError("Application not started")
        return self._scheduler

    @property
    def telemetry(self) -> TelemetryLog:
        """Get telemetry log instance."""
        if self._telemetry is None:
            raise RuntimeError("Application not started")
        return self._telemetry
