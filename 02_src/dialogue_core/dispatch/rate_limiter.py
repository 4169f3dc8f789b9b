"""Global and per-speaker cooldown tracking."""

from ..models import NpcId
from .queue import clamp_seconds


class RateLimiter:
    """Tracks the remaining time until requests can be dispatched again.

    Cooldowns never go below zero. ``record_success`` resets both cooldowns
    to the configured constants; ``apply_backoff`` only ever raises them.
    """

    def __init__(self, global_cooldown_seconds: float, per_npc_cooldown_seconds: float):
        self._global_cooldown = clamp_seconds(global_cooldown_seconds)
        self._per_npc_cooldown = clamp_seconds(per_npc_cooldown_seconds)
        self.global_remaining = 0.0
        self._npc_remaining: dict[NpcId, float] = {}

    def tick(self, delta_seconds: float) -> None:
        delta = clamp_seconds(delta_seconds)
        if self.global_remaining > 0.0:
            self.global_remaining = max(self.global_remaining - delta, 0.0)

        for speaker, remaining in self._npc_remaining.items():
            if remaining > 0.0:
                self._npc_remaining[speaker] = max(remaining - delta, 0.0)

    def remaining_for(self, speaker: NpcId) -> float:
        return self._npc_remaining.get(speaker, 0.0)

    def can_process(self, speaker: NpcId) -> bool:
        return self.global_remaining <= 0.0 and self.remaining_for(speaker) <= 0.0

    def record_success(self, speaker: NpcId) -> None:
        self.global_remaining = self._global_cooldown
        self._npc_remaining[speaker] = self._per_npc_cooldown

    def apply_backoff(self, speaker: NpcId, seconds: float) -> None:
        backoff = clamp_seconds(seconds)
        self.global_remaining = max(self.global_remaining, backoff)
        self._npc_remaining[speaker] = max(self.remaining_for(speaker), backoff)

    def clear(self) -> None:
        self.global_remaining = 0.0
        self._npc_remaining.clear()
