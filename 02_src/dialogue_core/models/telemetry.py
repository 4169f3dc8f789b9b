"""Telemetry record model and its newline-delimited JSON encoding."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from .requests import NpcId
from .results import (
    ContextMissing,
    ContextSource,
    DialogueError,
    DialogueErrorKind,
    DialogueResponse,
    ProviderFailure,
    ProviderKind,
    RateLimited,
)

KIND_RESPONSE = "response"
KIND_FAILURE = "failure"


@dataclass(frozen=True)
class TelemetryRecord:
    """A single response or failure observed by the telemetry log."""

    timestamp: datetime
    event: DialogueResponse | DialogueError

    @property
    def kind(self) -> str:
        return KIND_RESPONSE if isinstance(self.event, DialogueResponse) else KIND_FAILURE

    def to_dict(self) -> dict[str, Any]:
        event = self.event
        data: dict[str, Any] = {
            "kind": self.kind,
            "timestamp": self.timestamp.isoformat(),
            "request_id": event.request_id,
            "provider": event.provider.value,
            "speaker": str(event.speaker) if event.speaker else None,
            "speaker_id": event.speaker.value if event.speaker else None,
            "target": str(event.target) if event.target else None,
            "target_id": event.target.value if event.target else None,
        }
        if isinstance(event, DialogueResponse):
            data["content"] = event.content
        else:
            data["error"] = _error_kind_to_dict(event.kind)
        return data

    def to_json_line(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TelemetryRecord":
        """Rebuild a record; raises ValueError on unknown or incomplete data."""
        try:
            timestamp = datetime.fromisoformat(data["timestamp"])
            request_id = int(data["request_id"])
            provider = ProviderKind(data["provider"])
            speaker = _npc(data.get("speaker_id"))
            target = _npc(data.get("target_id"))

            if data["kind"] == KIND_RESPONSE:
                if speaker is None:
                    raise ValueError("response record without speaker")
                event: DialogueResponse | DialogueError = DialogueResponse(
                    request_id=request_id,
                    provider=provider,
                    speaker=speaker,
                    target=target,
                    content=data["content"],
                )
            elif data["kind"] == KIND_FAILURE:
                event = DialogueError(
                    request_id,
                    provider,
                    _error_kind_from_dict(data["error"]),
                    speaker=speaker,
                    target=target,
                )
            else:
                raise ValueError(f"unknown telemetry kind: {data['kind']!r}")
        except (KeyError, TypeError) as e:
            raise ValueError(f"malformed telemetry record: {e}") from e

        return cls(timestamp=timestamp, event=event)

    @classmethod
    def from_json_line(cls, line: str) -> "TelemetryRecord":
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise ValueError(f"invalid telemetry line: {e}") from e
        if not isinstance(data, dict):
            raise ValueError("telemetry line is not an object")
        return cls.from_dict(data)


def _npc(value: Any) -> NpcId | None:
    return None if value is None else NpcId(int(value))


def _error_kind_to_dict(kind: DialogueErrorKind) -> dict[str, Any]:
    if isinstance(kind, RateLimited):
        return {"type": "rate_limited", "retry_after_seconds": kind.retry_after_seconds}
    if isinstance(kind, ProviderFailure):
        return {"type": "provider_failure", "message": kind.message}
    return {"type": "context_missing", "missing": kind.missing.value}


def _error_kind_from_dict(data: dict[str, Any]) -> DialogueErrorKind:
    error_type = data["type"]
    if error_type == "rate_limited":
        return RateLimited(float(data["retry_after_seconds"]))
    if error_type == "provider_failure":
        return ProviderFailure(data["message"])
    if error_type == "context_missing":
        return ContextMissing(ContextSource(data["missing"]))
    raise ValueError(f"unknown error type: {error_type!r}")
