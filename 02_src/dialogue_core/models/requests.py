"""Dialogue request data models."""

from dataclasses import dataclass, field
from enum import Enum

RequestId = int


@dataclass(frozen=True, order=True)
class NpcId:
    """Identifier of a simulated villager."""

    value: int

    def __str__(self) -> str:
        return f"NPC-{self.value:04d}"


class TopicHint(str, Enum):
    """Hint that frames a response without full prompt templates."""

    STATUS = "status"
    TRADE = "trade"
    SCHEDULE = "schedule"


class TradeReason(str, Enum):
    """Why a trade occurred."""

    PRODUCTION = "production"
    PROCESSING = "processing"
    EXCHANGE = "exchange"

    @property
    def verb(self) -> str:
        return _TRADE_VERBS[self]


_TRADE_VERBS = {
    TradeReason.PRODUCTION: "produced",
    TradeReason.PROCESSING: "processed",
    TradeReason.EXCHANGE: "exchanged",
}


@dataclass(frozen=True)
class TradeDescriptor:
    """The traded good in simple language."""

    label: str
    quantity: int


@dataclass(frozen=True)
class TradeContext:
    """A trade the speaker can reference."""

    day: int
    descriptor: TradeDescriptor
    reason: TradeReason
    from_npc: NpcId | None = None
    to_npc: NpcId | None = None


@dataclass(frozen=True)
class ScheduleUpdate:
    """A change to the speaker's daily plan."""

    description: str


ContextEvent = TradeContext | ScheduleUpdate


@dataclass(frozen=True)
class DialogueContext:
    """High level summary plus an ordered list of structured events."""

    summary: str | None = None
    events: tuple[ContextEvent, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Callers commonly build event lists; store them immutably.
        if not isinstance(self.events, tuple):
            object.__setattr__(self, "events", tuple(self.events))

    @classmethod
    def with_events(cls, *events: ContextEvent, summary: str | None = None) -> "DialogueContext":
        return cls(summary=summary, events=tuple(events))

    def has_trade(self) -> bool:
        return any(isinstance(event, TradeContext) for event in self.events)

    def has_schedule_update(self) -> bool:
        return any(isinstance(event, ScheduleUpdate) for event in self.events)


@dataclass(frozen=True)
class DialogueRequest:
    """Who is speaking, to whom, and the prompt context."""

    speaker: NpcId
    prompt: str
    target: NpcId | None = None
    topic: TopicHint = TopicHint.STATUS
    context: DialogueContext = field(default_factory=DialogueContext)
