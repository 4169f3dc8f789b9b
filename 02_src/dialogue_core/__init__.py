"""Villager dialogue dispatch core."""

from .app import Application, IApplication
from .config import DispatchSettings, ProviderSettings
from .dispatch import DispatchScheduler, RateLimiter, RequestQueue
from .event_bus import EventBus, IEventBus
from .llm import DialogueBroker, IDialogueBroker
from .models import (
    BusMessage,
    ContextMissing,
    DialogueContext,
    DialogueError,
    DialogueRequest,
    DialogueResponse,
    NpcId,
    ProviderFailure,
    RateLimited,
    ScheduleUpdate,
    TelemetryRecord,
    Topic,
    TopicHint,
    TradeContext,
)
from .telemetry import ITelemetryLog, JsonlTelemetrySink, TelemetryLog

__all__ = [
    # Application
    "Application",
    "IApplication",
    "ProviderSettings",
    "DispatchSettings",
    # Models
    "NpcId",
    "TopicHint",
    "TradeContext",
    "ScheduleUpdate",
    "DialogueContext",
    "DialogueRequest",
    "DialogueResponse",
    "DialogueError",
    "RateLimited",
    "ProviderFailure",
    "ContextMissing",
    "BusMessage",
    "Topic",
    "TelemetryRecord",
    # Components
    "IDialogueBroker",
    "DialogueBroker",
    "RequestQueue",
    "RateLimiter",
    "DispatchScheduler",
    "IEventBus",
    "EventBus",
    "ITelemetryLog",
    "TelemetryLog",
    "JsonlTelemetrySink",
]
