"""Streak milestone celebrations.

A celebration is due when an active streak sits exactly on a milestone and
that (streak, count) pair has not been celebrated yet. Dismissing records the
pair so it is never shown again.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from app.models.gamification import Celebration, Streak
from app.services.flag_store import FlagStore, celebrated_key
from app.services.streak_service import streak_emoji

logger = logging.getLogger(__name__)

MILESTONES = (7, 14, 30, 60, 100)

XP_PER_STREAK_DAY = 10

MILESTONE_TIERS = {
    7: ("Week Warrior", "A full week without missing a day. You're a Week Warrior!"),
    14: ("Fortnight Fighter", "Two weeks strong! Consistency is becoming a habit."),
    30: ("Monthly Master", "30 days in a row. This is what commitment looks like!"),
    60: ("Unstoppable Force", "60 straight days. Nothing is slowing you down!"),
    100: ("Century Legend", "100 days! You've joined the legends."),
}


def milestone_tier(count: int) -> Optional[int]:
    """Highest milestone threshold at or below ``count``."""
    reached = [m for m in MILESTONES if m <= count]
    return max(reached) if reached else None


def milestone_xp(count: int) -> int:
    return count * XP_PER_STREAK_DAY


def build_celebration(streak: Streak) -> Optional[Celebration]:
    """Celebration content for the streak's count, ignoring whether it was shown."""
    tier = milestone_tier(streak.currentCount)
    if tier is None:
        return None
    tier_name, tier_message = MILESTONE_TIERS[tier]
    xp = milestone_xp(streak.currentCount)
    return Celebration(
        streakId=streak.id,
        count=streak.currentCount,
        tier=tier_name,
        message=f"🎉 {streak.currentCount} Day {streak.title}! {tier_message}",
        xpReward=xp,
        icon=streak_emoji(streak.currentCount),
        shareText=(
            f"I just hit a {streak.currentCount}-day {streak.title.lower()} "
            f"and earned the {tier_name} title (+{xp} XP)!"
        ),
    )


def is_celebrated(streak_id: str, count: int, flags: FlagStore) -> bool:
    return flags.has(celebrated_key(streak_id, count))


def evaluate_celebration(streak: Streak, flags: FlagStore) -> Optional[Celebration]:
    """Return the celebration to show for ``streak``, if one is due."""
    if not streak.isActive:
        return None
    if streak.currentCount not in MILESTONES:
        return None
    if is_celebrated(streak.id, streak.currentCount, flags):
        return None
    return build_celebration(streak)


def pending_celebration(streaks: Iterable[Streak], flags: FlagStore) -> Optional[Celebration]:
    """First due celebration, checking streaks in id order."""
    for streak in sorted(streaks, key=lambda s: s.id):
        celebration = evaluate_celebration(streak, flags)
        if celebration is not None:
            return celebration
    return None


def dismiss_celebration(streak_id: str, count: int, flags: FlagStore) -> bool:
    """Mark a milestone as celebrated. Returns False if it already was."""
    recorded = flags.set_if_absent(
        celebrated_key(streak_id, count),
        datetime.now(timezone.utc).isoformat(),
    )
    if recorded:
        logger.info(f"Recorded celebration for {streak_id} at {count} days")
    return recorded
