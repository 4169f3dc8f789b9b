"""Tests for RateLimiter."""

import pytest

from dialogue_core.dispatch import RateLimiter
from dialogue_core.models import NpcId

ALICE = NpcId(1)
BOB = NpcId(2)


@pytest.fixture
def limiter():
    return RateLimiter(global_cooldown_seconds=1.5, per_npc_cooldown_seconds=8.0)


class TestRateLimiter:
    """Tests for cooldown bookkeeping."""

    def test_unknown_speaker_can_process(self, limiter):
        """Test that a fresh limiter allows every speaker."""
        assert limiter.can_process(ALICE)
        assert limiter.remaining_for(ALICE) == 0.0

    def test_record_success_blocks_until_per_speaker_cooldown(self, limiter):
        """Test that a speaker waits for the full per-speaker cooldown."""
        limiter.record_success(ALICE)
        assert not limiter.can_process(ALICE)

        elapsed = 0.0
        while elapsed < 7.5:
            limiter.tick(0.5)
            elapsed += 0.5
            assert not limiter.can_process(ALICE)

        limiter.tick(0.5)
        assert limiter.can_process(ALICE)

    def test_global_cooldown_blocks_other_speakers(self, limiter):
        """Test that a success blocks everyone for the global cooldown."""
        limiter.record_success(ALICE)
        assert not limiter.can_process(BOB)

        limiter.tick(1.5)
        assert limiter.can_process(BOB)
        assert not limiter.can_process(ALICE)

    def test_record_success_is_absolute(self, limiter):
        """Test that success resets cooldowns even below a larger backoff."""
        limiter.apply_backoff(ALICE, 20.0)
        limiter.record_success(ALICE)

        assert limiter.global_remaining == 1.5
        assert limiter.remaining_for(ALICE) == 8.0

    def test_apply_backoff_never_lowers(self, limiter):
        """Test that backoff only raises cooldowns."""
        limiter.apply_backoff(ALICE, 5.0)
        limiter.apply_backoff(ALICE, 2.0)

        assert limiter.global_remaining == 5.0
        assert limiter.remaining_for(ALICE) == 5.0

        limiter.apply_backoff(ALICE, 6.0)
        assert limiter.global_remaining == 6.0
        assert limiter.remaining_for(ALICE) == 6.0

    @pytest.mark.parametrize("delta", [0.0, 0.3, 1.0, 100.0, -5.0])
    def test_tick_never_goes_negative(self, limiter, delta):
        """Test that cooldowns floor at zero."""
        limiter.record_success(ALICE)
        limiter.apply_backoff(BOB, 0.2)

        limiter.tick(delta)

        assert limiter.global_remaining >= 0.0
        assert limiter.remaining_for(ALICE) >= 0.0
        assert limiter.remaining_for(BOB) >= 0.0

    def test_negative_delta_is_ignored(self, limiter):
        """Test that negative deltas do not extend cooldowns."""
        limiter.record_success(ALICE)
        limiter.tick(-3.0)
        assert limiter.global_remaining == 1.5

    @pytest.mark.parametrize("seconds", [float("nan"), float("inf"), -2.0])
    def test_unusable_backoff_is_ignored(self, limiter, seconds):
        """Test that non-finite or negative backoff leaves cooldowns finite and unchanged."""
        limiter.apply_backoff(ALICE, 4.0)
        limiter.apply_backoff(ALICE, seconds)

        assert limiter.global_remaining == 4.0
        assert limiter.remaining_for(ALICE) == 4.0

        limiter.apply_backoff(BOB, seconds)
        assert limiter.remaining_for(BOB) == 0.0

        limiter.tick(4.0)
        assert limiter.can_process(ALICE)
        assert limiter.can_process(BOB)

    def test_non_finite_delta_is_ignored(self, limiter):
        limiter.record_success(ALICE)
        limiter.tick(float("nan"))
        assert limiter.global_remaining == 1.5
        assert limiter.remaining_for(ALICE) == 8.0

    def test_clear(self, limiter):
        """Test that clear drops every cooldown."""
        limiter.record_success(ALICE)
        limiter.clear()
        assert limiter.can_process(ALICE)
