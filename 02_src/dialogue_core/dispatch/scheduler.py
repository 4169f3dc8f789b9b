"""Background dispatch scheduler driving the request lifecycle.

Each queued request moves Pending -> Dispatched -> one of Success,
RetryScheduled or TerminalFailure. ``tick`` is called once per simulation
step; it never waits on a provider. Dispatched requests run as asyncio
tasks and are polled for completion on later ticks.
"""

import asyncio
from dataclasses import dataclass

from ..config import DispatchSettings
from ..event_bus import IEventBus
from ..llm import IDialogueBroker
from ..logging_config import get_logger
from ..models import (
    BusMessage,
    ContextMissing,
    DialogueError,
    ProviderFailure,
    RateLimited,
    RequestId,
)
from .queue import QueuedRequest, RequestQueue
from .rate_limiter import RateLimiter

logger = get_logger(__name__)

SOURCE = "dispatch_scheduler"


@dataclass
class InFlightRequest:
    """A dispatched request and the task running it."""

    queued: QueuedRequest
    task: asyncio.Task


def log_context(queued: QueuedRequest) -> dict:
    """Request-scoped fields attached to scheduler log records."""
    return {
        "context": {
            "request_id": queued.id,
            "speaker": str(queued.request.speaker),
            "attempts": queued.attempts,
        }
    }


class DispatchScheduler:
    """Moves ready requests to background execution and resolves completions."""

    def __init__(
        self,
        queue: RequestQueue,
        rate_limiter: RateLimiter,
        broker: IDialogueBroker,
        event_bus: IEventBus,
        settings: DispatchSettings,
    ):
        self._queue = queue
        self._rate_limiter = rate_limiter
        self._broker = broker
        self._event_bus = event_bus
        self._settings = settings
        self._in_flight: list[InFlightRequest] = []

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    def in_flight_ids(self) -> list[RequestId]:
        return [unit.queued.id for unit in self._in_flight]

    async def tick(self, delta_seconds: float) -> None:
        """Advance timers, resolve finished work, then admit at most one request."""
        self._queue.tick(delta_seconds)
        self._rate_limiter.tick(delta_seconds)
        await self.poll_completions()
        self.admit_next()

    def admit_next(self) -> RequestId | None:
        """Dispatch the queue head if it is ready and its speaker may talk."""
        if not self._queue.front_ready():
            return None

        head = self._queue.front()
        if head is None or not self._rate_limiter.can_process(head.request.speaker):
            return None

        queued = self._queue.pop_front()
        task = asyncio.create_task(
            self._broker.process(queued.id, queued.request),
            name=f"dialogue-request-{queued.id}",
        )
        self._in_flight.append(InFlightRequest(queued=queued, task=task))
        logger.debug(
            "Dispatched dialogue request %s for %s (attempt %s)",
            queued.id,
            queued.request.speaker,
            queued.attempts + 1,
            extra=log_context(queued),
        )
        return queued.id

    async def poll_completions(self) -> int:
        """Resolve every finished task without waiting on unfinished ones."""
        finished = [unit for unit in self._in_flight if unit.task.done()]
        if not finished:
            return 0

        self._in_flight = [unit for unit in self._in_flight if not unit.task.done()]
        for unit in finished:
            await self._resolve(unit)
        return len(finished)

    async def wait_for_in_flight(self) -> None:
        """Let dispatched requests run to completion, then resolve them."""
        tasks = [unit.task for unit in self._in_flight]
        if tasks:
            await asyncio.wait(tasks)
        await self.poll_completions()

    async def _resolve(self, unit: InFlightRequest) -> None:
        queued = unit.queued
        try:
            response = unit.task.result()
        except DialogueError as e:
            await self._handle_failure(queued, e)
            return
        except (Exception, asyncio.CancelledError) as e:
            logger.error(
                "Dialogue request %s raised unexpectedly: %s",
                queued.id,
                e,
                exc_info=e,
                extra=log_context(queued),
            )
            error = DialogueError(
                queued.id,
                self._broker.provider_kind,
                ProviderFailure(str(e) or type(e).__name__),
            )
            await self._handle_failure(queued, error)
            return

        self._rate_limiter.record_success(queued.request.speaker)
        logger.info(
            "Dialogue request %s answered for %s",
            queued.id,
            queued.request.speaker,
            extra=log_context(queued),
        )
        await self._event_bus.publish(BusMessage.response(response, source=SOURCE))

    async def _handle_failure(self, queued: QueuedRequest, error: DialogueError) -> None:
        request = queued.request
        kind = error.kind

        if isinstance(kind, RateLimited):
            backoff = kind.retry_after_seconds
        else:
            backoff = self._settings.retry_backoff_seconds
        self._rate_limiter.apply_backoff(request.speaker, backoff)

        queued.attempts += 1
        retryable = not isinstance(kind, ContextMissing) or self._settings.retry_context_missing

        if retryable and queued.attempts <= self._settings.max_retries:
            self._queue.enqueue_with_cooldown(
                request,
                backoff,
                request_id=queued.id,
                attempts=queued.attempts,
            )
            logger.info(
                "Dialogue request %s failed (%s); retry %s/%s in %.2fs",
                queued.id,
                kind,
                queued.attempts,
                self._settings.max_retries,
                backoff,
                extra=log_context(queued),
            )
            return

        logger.warning(
            "Dropping dialogue request %s for %s after %s attempt(s): %s",
            queued.id,
            request.speaker,
            queued.attempts,
            kind,
            extra=log_context(queued),
        )
        terminal = DialogueError(
            queued.id,
            error.provider,
            kind,
            speaker=request.speaker,
            target=request.target,
        )
        await self._event_bus.publish(BusMessage.failure(terminal, source=SOURCE))

    def clear(self) -> None:
        """Drop pending requests and cooldowns; in-flight tasks keep running."""
        self._queue.clear()
        self._rate_limiter.clear()
