"""In-memory telemetry log fed by dispatch notifications."""

from collections import deque
from typing import Protocol

from ..event_bus import IEventBus
from ..models import BusMessage, TelemetryRecord, Topic
from .sink import JsonlTelemetrySink


class ITelemetryLog(Protocol):
    """Recent dispatch outcomes plus durable recording."""

    async def start(self) -> None:
        """Subscribe to response and failure notifications."""
        ...

    def records(self, limit: int | None = None, kind: str | None = None) -> list[TelemetryRecord]:
        """Get buffered records, oldest first."""
        ...

    async def flush(self) -> int:
        """Persist records not yet written."""
        ...

    def clear(self) -> None:
        """Drop buffered records."""
        ...


class TelemetryLog:
    """Ring buffer of the most recent responses and terminal failures."""

    def __init__(
        self,
        event_bus: IEventBus,
        capacity: int,
        sink: JsonlTelemetrySink | None = None,
    ):
        self._event_bus = event_bus
        self._records: deque[TelemetryRecord] = deque(maxlen=max(capacity, 1))
        self._sink = sink

    @property
    def capacity(self) -> int:
        return self._records.maxlen or 0

    @property
    def sink(self) -> JsonlTelemetrySink | None:
        return self._sink

    def __len__(self) -> int:
        return len(self._records)

    async def start(self) -> None:
        """Subscribe to response and failure notifications."""
        self._event_bus.subscribe(Topic.RESPONSE, self._handle_bus_message)
        self._event_bus.subscribe(Topic.FAILURE, self._handle_bus_message)

    async def _handle_bus_message(self, bus_message: BusMessage) -> None:
        self.record(TelemetryRecord(timestamp=bus_message.timestamp, event=bus_message.payload))

    def record(self, record: TelemetryRecord) -> None:
        self._records.append(record)
        if self._sink is not None:
            self._sink.append(record)

    def records(self, limit: int | None = None, kind: str | None = None) -> list[TelemetryRecord]:
        """Get buffered records, oldest first, optionally the last ``limit`` of one kind."""
        selected = [r for r in self._records if kind is None or r.kind == kind]
        if limit is not None:
            selected = selected[-limit:] if limit > 0 else []
        return selected

    async def flush(self) -> int:
        if self._sink is None:
            return 0
        return await self._sink.flush()

    def clear(self) -> None:
        self._records.clear()
