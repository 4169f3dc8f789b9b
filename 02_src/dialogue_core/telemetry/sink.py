"""Newline-delimited JSON sink for telemetry records."""

import asyncio
from collections import deque
from pathlib import Path

from ..logging_config import get_logger
from ..models import TelemetryRecord

logger = get_logger(__name__)

DEFAULT_MAX_PENDING = 1024


class JsonlTelemetrySink:
    """Appends telemetry records to a JSONL file on each flush.

    Records that could not be written stay pending and are tried again on the
    next flush. At most ``max_pending`` records are held; beyond that the
    oldest are dropped.
    """

    def __init__(self, path: str | Path, max_pending: int = DEFAULT_MAX_PENDING):
        self._path = Path(path)
        self._max_pending = max(max_pending, 1)
        self._pending: deque[TelemetryRecord] = deque()

    @property
    def path(self) -> Path:
        return self._path

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def append(self, record: TelemetryRecord) -> None:
        if len(self._pending) >= self._max_pending:
            dropped = self._pending.popleft()
            logger.warning(
                "Telemetry sink backlog full (%s); dropping record for request %s",
                self._max_pending,
                dropped.event.request_id,
                extra={"context": {"request_id": dropped.event.request_id}},
            )
        self._pending.append(record)

    async def flush(self) -> int:
        """Write pending records; returns how many reached the file."""
        if not self._pending:
            return 0

        lines = [record.to_json_line() for record in self._pending]
        written = await asyncio.to_thread(self._write_lines, lines)
        for _ in range(written):
            self._pending.popleft()
        return written

    def _write_lines(self, lines: list[str]) -> int:
        written = 0
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
                    f.flush()
                    written += 1
        except OSError as e:
            logger.warning(
                "Failed to write telemetry to %s after %s of %s record(s): %s",
                self._path,
                written,
                len(lines),
                e,
                extra={
                    "context": {
                        "path": str(self._path),
                        "written": written,
                        "pending": len(lines),
                    }
                },
            )
        return written


def read_records(path: str | Path) -> list[TelemetryRecord]:
    """Parse a telemetry file, skipping blank and malformed lines."""
    path = Path(path)
    if not path.exists():
        return []

    records: list[TelemetryRecord] = []
    with path.open(encoding="utf-8") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                records.append(TelemetryRecord.from_json_line(line))
            except ValueError as e:
                logger.debug("Skipping telemetry line %s in %s: %s", line_number, path, e)
    return records
