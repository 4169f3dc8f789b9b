"""Notification data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from .results import DialogueError, DialogueResponse


class Topic(str, Enum):
    """EventBus topics raised to collaborators."""

    RESPONSE = "response"
    FAILURE = "failure"


@dataclass
class BusMessage:
    """A notification exchanged through EventBus."""

    topic: Topic
    payload: DialogueResponse | DialogueError
    source: str  # component that published
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def response(cls, response: DialogueResponse, source: str) -> "BusMessage":
        return cls(topic=Topic.RESPONSE, payload=response, source=source)

    @classmethod
    def failure(cls, error: DialogueError, source: str) -> "BusMessage":
        return cls(topic=Topic.FAILURE, payload=error, source=source)
