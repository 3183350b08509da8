"""Composite reputation score.

    activity = messages + writes*2 + modules*10
    raw      = age + activity
    score    = raw * multiplier_pct // 100   (privileged identities)
             = raw                           (everyone else)

External scores are a separate channel and never enter this formula.
"""

from __future__ import annotations

from dataclasses import dataclass


MESSAGE_WEIGHT = 1
WRITE_WEIGHT = 2
MODULE_WEIGHT = 10


def activity_points(messages_sent: int, storage_writes: int, modules_active: int) -> int:
    """Weighted activity shared by reputation and tier scoring."""
    return (
        messages_sent * MESSAGE_WEIGHT
        + storage_writes * WRITE_WEIGHT
        + modules_active * MODULE_WEIGHT
    )


@dataclass(frozen=True)
class ReputationEngine:
    """Computes the externally visible reputation score."""

    privileged_multiplier_pct: int = 150

    def score(
        self,
        age: int,
        messages_sent: int,
        storage_writes: int,
        modules_active: int,
        privileged: bool,
    ) -> int:
        raw = max(age, 0) + activity_points(messages_sent, storage_writes, modules_active)
        if privileged:
            return raw * self.privileged_multiplier_pct // 100
        return raw
