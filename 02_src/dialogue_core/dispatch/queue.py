"""FIFO queue of pending dialogue requests with retry bookkeeping."""

import itertools
import math
from collections import deque
from dataclasses import dataclass
from typing import Iterator

from ..models import DialogueRequest, RequestId


def clamp_seconds(seconds: float) -> float:
    """Durations below zero or not finite count as no wait at all."""
    if not math.isfinite(seconds) or seconds < 0.0:
        return 0.0
    return seconds


@dataclass
class QueuedRequest:
    """A request waiting for dispatch."""

    id: RequestId
    request: DialogueRequest
    attempts: int = 0
    cooldown_remaining: float = 0.0

    @property
    def ready(self) -> bool:
        return self.cooldown_remaining <= 0.0


class RequestQueue:
    """Ordered admission of pending requests.

    Ids come from a counter that starts at 0 and only moves forward; retries
    keep the id of the original request.
    """

    def __init__(self) -> None:
        self._ids = itertools.count()
        self._pending: deque[QueuedRequest] = deque()

    def __len__(self) -> int:
        return len(self._pending)

    def __iter__(self) -> Iterator[QueuedRequest]:
        return iter(self._pending)

    def is_empty(self) -> bool:
        return not self._pending

    def enqueue(self, request: DialogueRequest) -> RequestId:
        request_id = next(self._ids)
        self._pending.append(QueuedRequest(id=request_id, request=request))
        return request_id

    def enqueue_with_cooldown(
        self,
        request: DialogueRequest,
        seconds: float,
        *,
        request_id: RequestId | None = None,
        attempts: int = 0,
    ) -> RequestId:
        """Append a request that only becomes ready after ``seconds``."""
        if request_id is None:
            request_id = next(self._ids)
        self._pending.append(
            QueuedRequest(
                id=request_id,
                request=request,
                attempts=attempts,
                cooldown_remaining=clamp_seconds(seconds),
            )
        )
        return request_id

    def front(self) -> QueuedRequest | None:
        return self._pending[0] if self._pending else None

    def front_ready(self) -> bool:
        head = self.front()
        return head is not None and head.ready

    def pop_front(self) -> QueuedRequest:
        return self._pending.popleft()

    def tick(self, delta_seconds: float) -> None:
        delta = clamp_seconds(delta_seconds)
        for queued in self._pending:
            if queued.cooldown_remaining > 0.0:
                queued.cooldown_remaining = max(queued.cooldown_remaining - delta, 0.0)

    def clear(self) -> None:
        """Drop pending entries; the id counter keeps counting."""
        self._pending.clear()

    def snapshot(self) -> list[dict]:
        return [
            {
                "request_id": queued.id,
                "speaker": str(queued.request.speaker),
                "topic": queued.request.topic.value,
                "attempts": queued.attempts,
                "cooldown_remaining": queued.cooldown_remaining,
            }
            for queued in self._pending
        ]
