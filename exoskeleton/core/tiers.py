"""Activity tiers that gate animation complexity in rendered images.

Tiers are cumulative: every layer a tier unlocks stays present at all
higher tiers.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from .reputation import activity_points


class Tier(IntEnum):
    """Visual tiers, ordered by ascending activity."""

    DORMANT = 0
    COPPER = 1
    SILVER = 2
    GOLD = 3
    DIAMOND = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def complexity(self) -> int:
        return TIER_COMPLEXITY[self]

    @property
    def color(self) -> str | None:
        return TIER_COLORS.get(self)


# Minimum activity score per tier, highest first
TIER_THRESHOLDS: tuple[tuple[Tier, int], ...] = (
    (Tier.DIAMOND, 1000),
    (Tier.GOLD, 200),
    (Tier.SILVER, 50),
    (Tier.COPPER, 5),
)

TIER_COMPLEXITY: dict[Tier, int] = {
    Tier.DORMANT: 0,
    Tier.COPPER: 2,
    Tier.SILVER: 5,
    Tier.GOLD: 8,
    Tier.DIAMOND: 10,
}

TIER_COLORS: dict[Tier, str] = {
    Tier.COPPER: "#cd7f32",
    Tier.SILVER: "#c0c0c0",
    Tier.GOLD: "#ffd700",
    Tier.DIAMOND: "#b9f2ff",
}


@dataclass(frozen=True)
class TierEngine:
    """Maps activity counters to a visual tier."""

    privileged_multiplier_pct: int = 150

    def activity_score(
        self,
        messages_sent: int,
        storage_writes: int,
        modules_active: int,
        privileged: bool,
    ) -> int:
        score = activity_points(messages_sent, storage_writes, modules_active)
        if privileged:
            return score * self.privileged_multiplier_pct // 100
        return score

    def tier_for_score(self, activity_score: int) -> Tier:
        for tier, threshold in TIER_THRESHOLDS:
            if activity_score >= threshold:
                return tier
        return Tier.DORMANT

    def tier(
        self,
        messages_sent: int,
        storage_writes: int,
        modules_active: int,
        privileged: bool,
    ) -> Tier:
        return self.tier_for_score(
            self.activity_score(messages_sent, storage_writes, modules_active, privileged)
        )
