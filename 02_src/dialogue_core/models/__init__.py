"""Core data models for the dialogue dispatch core."""

from .requests import (
    ContextEvent,
    DialogueContext,
    DialogueRequest,
    NpcId,
    RequestId,
    ScheduleUpdate,
    TopicHint,
    TradeContext,
    TradeDescriptor,
    TradeReason,
)
from .results import (
    ConnectionState,
    ContextMissing,
    ContextSource,
    DialogueError,
    DialogueErrorKind,
    DialogueResponse,
    ProviderCallError,
    ProviderFailure,
    ProviderKind,
    RateLimited,
)
from .events import BusMessage, Topic
from .telemetry import TelemetryRecord

__all__ = [
    # Requests
    "NpcId",
    "RequestId",
    "TopicHint",
    "TradeReason",
    "TradeDescriptor",
    "TradeContext",
    "ScheduleUpdate",
    "ContextEvent",
    "DialogueContext",
    "DialogueRequest",
    # Results
    "ProviderKind",
    "ConnectionState",
    "ContextSource",
    "RateLimited",
    "ProviderFailure",
    "ContextMissing",
    "DialogueErrorKind",
    "DialogueResponse",
    "DialogueError",
    "ProviderCallError",
    # Notifications
    "BusMessage",
    "Topic",
    # Telemetry
    "TelemetryRecord",
]
