"""Pytest configuration and fixtures."""

import asyncio
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from dialogue_core.config import DispatchSettings, ProviderSettings  # noqa: E402
from dialogue_core.models import (  # noqa: E402
    DialogueContext,
    DialogueRequest,
    NpcId,
    ScheduleUpdate,
    TopicHint,
    TradeContext,
    TradeDescriptor,
    TradeReason,
)


async def settle(rounds: int = 5) -> None:
    """Give background dispatch tasks a chance to run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_request(
    speaker: int = 1,
    prompt: str = "How are you today?",
    target: int | None = 2,
    topic: TopicHint = TopicHint.STATUS,
    summary: str | None = None,
    events=(),
) -> DialogueRequest:
    return DialogueRequest(
        speaker=NpcId(speaker),
        prompt=prompt,
        target=NpcId(target) if target is not None else None,
        topic=topic,
        context=DialogueContext(summary=summary, events=tuple(events)),
    )


def make_trade(day: int = 3, reason: TradeReason = TradeReason.EXCHANGE) -> TradeContext:
    return TradeContext(
        day=day,
        descriptor=TradeDescriptor(label="apples", quantity=5),
        reason=reason,
        from_npc=NpcId(1),
        to_npc=NpcId(2),
    )


@pytest.fixture
def request_factory():
    """Build dialogue requests with sensible defaults."""
    return make_request


@pytest.fixture
def trade_request():
    """Trade-topic request with full context."""
    return make_request(
        topic=TopicHint.TRADE,
        prompt="Tell me about the apples.",
        summary="Orchard had a good week.",
        events=[make_trade()],
    )


@pytest.fixture
def schedule_request():
    """Schedule-topic request with one schedule update."""
    return make_request(
        topic=TopicHint.SCHEDULE,
        prompt="What are your plans?",
        events=[ScheduleUpdate("Heading to the market at noon.")],
    )


@pytest.fixture
def fallback_settings():
    """Provider settings with no credential."""
    return ProviderSettings(api_key=None)


@pytest.fixture
def live_settings():
    """Provider settings for a live OpenAI-compatible endpoint."""
    return ProviderSettings(
        api_key="test-key",
        base_url="https://llm.example.test",
        model="gpt-4o-mini",
        timeout_seconds=5,
    )


@pytest.fixture
def dispatch_settings(tmp_path):
    """Dispatch settings with no success cooldowns and short backoff."""
    return DispatchSettings(
        global_cooldown_seconds=0.0,
        per_npc_cooldown_seconds=0.0,
        max_retries=2,
        retry_backoff_seconds=1.0,
        tick_interval_seconds=0.01,
        telemetry_capacity=8,
        telemetry_path=tmp_path / "logs" / "telemetry.jsonl",
    )


@pytest.fixture
def event_bus():
    """Create EventBus."""
    from dialogue_core.event_bus import EventBus

    return EventBus()


@pytest.fixture
def fallback_broker(fallback_settings):
    """Broker answering locally."""
    from dialogue_core.llm import DialogueBroker, FallbackResponder

    return DialogueBroker(settings=fallback_settings, backend=FallbackResponder())


@pytest.fixture
def collected(event_bus):
    """Responses and failures published on the bus."""
    from dialogue_core.models import Topic

    seen = {"responses": [], "failures": []}

    async def on_response(message):
        seen["responses"].append(message.payload)

    async def on_failure(message):
        seen["failures"].append(message.payload)

    event_bus.subscribe(Topic.RESPONSE, on_response)
    event_bus.subscribe(Topic.FAILURE, on_failure)
    return seen
