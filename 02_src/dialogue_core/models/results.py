"""Dialogue response and error data models."""

from dataclasses import dataclass
from enum import Enum

from .requests import NpcId, RequestId


class ProviderKind(str, Enum):
    """Dialogue providers a broker can route to."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ConnectionState(str, Enum):
    """Whether the broker talks to a remote provider or answers locally."""

    LIVE = "live"
    FALLBACK = "fallback"


class ContextSource(str, Enum):
    """Context sources that cause a rejection when missing."""

    TRADE_HISTORY = "trade history"
    SCHEDULE_STATE = "schedule state"
    INVENTORY_STATE = "inventory state"


@dataclass(frozen=True)
class RateLimited:
    """Provider throttled the request."""

    retry_after_seconds: float

    def __str__(self) -> str:
        return f"Rate limited. Retry after {self.retry_after_seconds:.2f}s"


@dataclass(frozen=True)
class ProviderFailure:
    """Transport error, non-success status or unusable completion."""

    message: str

    def __str__(self) -> str:
        return f"Provider failure: {self.message}"


@dataclass(frozen=True)
class ContextMissing:
    """Caller did not supply context the topic requires."""

    missing: ContextSource

    def __str__(self) -> str:
        return f"Missing context: {self.missing.value}"


DialogueErrorKind = RateLimited | ProviderFailure | ContextMissing


@dataclass(frozen=True)
class DialogueResponse:
    """Result returned by a dialogue provider."""

    request_id: RequestId
    provider: ProviderKind
    speaker: NpcId
    target: NpcId | None
    content: str


class DialogueError(Exception):
    """A failed dialogue request, tagged with provider and request id.

    ``speaker`` and ``target`` are attached by the scheduler so that
    terminal failures can be attributed in telemetry.
    """

    def __init__(
        self,
        request_id: RequestId,
        provider: ProviderKind,
        kind: DialogueErrorKind,
        speaker: NpcId | None = None,
        target: NpcId | None = None,
    ):
        super().__init__(request_id, provider, kind)
        self.request_id = request_id
        self.provider = provider
        self.kind = kind
        self.speaker = speaker
        self.target = target

    def __str__(self) -> str:
        return (
            f"Dialogue error ({self.provider.value} - request {self.request_id}): "
            f"{self.kind}"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DialogueError):
            return NotImplemented
        return (
            self.request_id == other.request_id
            and self.provider == other.provider
            and self.kind == other.kind
            and self.speaker == other.speaker
            and self.target == other.target
        )

    __hash__ = Exception.__hash__


class ProviderCallError(Exception):
    """Raised by a provider backend; the broker attaches request metadata."""

    def __init__(self, kind: DialogueErrorKind):
        super().__init__(str(kind))
        self.kind = kind
