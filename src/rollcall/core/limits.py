"""Tier-based player limits.

Pure functions over counts and the tier table from ``Settings.tier_limits()``.
No I/O: callers fetch the current count and re-evaluate on a fresh count
whenever they are about to create a player.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from rollcall.config import TierLimits

# A coach gets an "approaching" warning once this many slots or fewer remain.
APPROACHING_THRESHOLD = 3


@dataclass(frozen=True)
class LimitVerdict:
    """Whether one more player fits. ``limit`` is None for unbounded tiers."""

    allowed: bool
    tier: str
    limit: int | None
    current_count: int


def evaluate(
    tier: str,
    current_player_count: int,
    limits: dict[str, TierLimits],
) -> LimitVerdict:
    """Decide whether a team on *tier* holding *current_player_count* may add a player.

    An unknown tier falls back to the free tier's limits, which is the most
    restrictive configured entry.
    """
    tier_limits = limits.get(tier) or limits.get("free") or TierLimits()
    max_players = tier_limits.max_players
    if max_players is None:
        return LimitVerdict(
            allowed=True, tier=tier, limit=None, current_count=current_player_count
        )
    return LimitVerdict(
        allowed=current_player_count < max_players,
        tier=tier,
        limit=max_players,
        current_count=current_player_count,
    )


def remaining_slots(current_count: int, limit: int | None) -> int | None:
    """Free player slots left, or None when the tier is unbounded."""
    if limit is None:
        return None
    return max(limit - current_count, 0)


def limit_warning_level(
    current_count: int, limit: int | None
) -> Literal["reached", "approaching"] | None:
    remaining = remaining_slots(current_count, limit)
    if remaining is None:
        return None
    if remaining <= 0:
        return "reached"
    if remaining <= APPROACHING_THRESHOLD:
        return "approaching"
    return None
