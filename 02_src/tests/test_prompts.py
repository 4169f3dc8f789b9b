"""Tests for request validation and message assembly."""

import pytest

from dialogue_core.llm.prompts import (
    CONTEXT_FALLBACK_MESSAGE,
    RESPONSE_INSTRUCTION,
    SYSTEM_PROMPT,
    build_messages,
    build_user_lines,
    compose_fallback_text,
    describe_trade,
    validate_request,
)
from dialogue_core.models import (
    ContextMissing,
    ContextSource,
    NpcId,
    ProviderFailure,
    RateLimited,
    ScheduleUpdate,
    TopicHint,
    TradeReason,
)

from conftest import make_request, make_trade


class TestValidateRequest:
    """Tests for validate_request()."""

    @pytest.mark.parametrize("prompt", ["", "   ", "\n\t"])
    def test_empty_prompt(self, prompt):
        """Test that blank prompts are rejected as provider failures."""
        kind = validate_request(make_request(prompt=prompt))
        assert kind == ProviderFailure("prompt cannot be empty")

    @pytest.mark.parametrize("prompt", ["retry later", "RETRY LATER", "  Retry Later "])
    def test_retry_sentinel(self, prompt):
        """Test that the retry sentinel forces a rate limit."""
        assert validate_request(make_request(prompt=prompt)) == RateLimited(3.0)

    def test_status_needs_no_context(self):
        """Test that status requests pass with no context."""
        assert validate_request(make_request()) is None

    def test_trade_without_summary(self):
        """Test that trade requests need a summary."""
        request = make_request(topic=TopicHint.TRADE, summary="  ", events=[make_trade()])
        assert validate_request(request) == ContextMissing(ContextSource.INVENTORY_STATE)

    def test_trade_without_trade_event(self):
        """Test that trade requests need a trade event."""
        request = make_request(
            topic=TopicHint.TRADE,
            summary="Busy market",
            events=[ScheduleUpdate("Market day")],
        )
        assert validate_request(request) == ContextMissing(ContextSource.TRADE_HISTORY)

    def test_schedule_without_update(self):
        """Test that schedule requests need a schedule update."""
        request = make_request(topic=TopicHint.SCHEDULE, events=[make_trade()])
        assert validate_request(request) == ContextMissing(ContextSource.SCHEDULE_STATE)

    def test_complete_requests_pass(self, trade_request, schedule_request):
        """Test that requests with full context pass."""
        assert validate_request(trade_request) is None
        assert validate_request(schedule_request) is None


class TestMessageAssembly:
    """Tests for user line and message construction."""

    def test_describe_trade(self):
        """Test trade event rendering with counterparties."""
        line = describe_trade(make_trade(day=4, reason=TradeReason.PRODUCTION))
        assert line == "Trade event: Day 4 produced 5 apples (from NPC-0001) (to NPC-0002)"

    def test_line_order(self):
        """Test that lines follow speaker, target, topic, prompt, context order."""
        request = make_request(
            speaker=3,
            target=None,
            prompt="  What happened?  ",
            topic=TopicHint.TRADE,
            summary="Harvest week",
            events=[make_trade(day=2), ScheduleUpdate("Rest at dusk")],
        )

        lines = build_user_lines(request, live=True)

        assert lines == [
            "Speaker: NPC-0003",
            "Target: player",
            "Topic: trade",
            "Prompt: What happened?",
            "Context summary: Harvest week",
            "Trade event: Day 2 exchanged 5 apples (from NPC-0001) (to NPC-0002)",
            "Schedule update: Rest at dusk",
            RESPONSE_INSTRUCTION,
        ]

    def test_placeholder_when_no_context(self):
        """Test the no-context placeholder line."""
        lines = build_user_lines(make_request(), live=False)
        assert lines[-1] == CONTEXT_FALLBACK_MESSAGE
        assert RESPONSE_INSTRUCTION not in lines

    def test_blank_summary_is_skipped(self):
        """Test that a whitespace summary produces no line."""
        lines = build_user_lines(make_request(summary="   "), live=False)
        assert not any(line.startswith("Context summary") for line in lines)
        assert lines[-1] == CONTEXT_FALLBACK_MESSAGE

    def test_build_messages(self):
        """Test system and user messages for live providers."""
        messages = build_messages(make_request(target=7))
        assert messages[0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert messages[1]["role"] == "user"
        assert "Target: NPC-0007" in messages[1]["content"].split("\n")
        assert messages[1]["content"].endswith(RESPONSE_INSTRUCTION)

    def test_fallback_text_joins_lines_with_spaces(self):
        """Test the deterministic fallback response."""
        text = compose_fallback_text(make_request(speaker=1, target=2, prompt="Hi"))
        assert text == (
            "Speaker: NPC-0001 Target: NPC-0002 Topic: status Prompt: Hi "
            "No notable context available."
        )

    def test_fallback_text_is_deterministic(self, trade_request):
        """Test that the same request always yields the same text."""
        assert compose_fallback_text(trade_request) == compose_fallback_text(trade_request)
        assert NpcId(1) == trade_request.speaker
