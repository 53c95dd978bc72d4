"""Badge catalogue, statistics and unlock evaluation.

Each badge compares one statistic against a threshold. Unlocks are recorded
in the flag store so an earned badge stays earned (with its original date)
even if the statistic later drops, e.g. when weight is regained.
"""
import logging
import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from app.models.client import ClientProfile
from app.models.gamification import (
    Achievement,
    Badge,
    BadgeDefinition,
    GamificationStats,
    Streak,
)
from app.services.activity_service import (
    completed_sessions,
    count_sessions_by_time_of_day,
    weight_series,
)
from app.services.flag_store import FlagStore, badge_key
from app.services.milestone_service import MILESTONES, milestone_xp

logger = logging.getLogger(__name__)

BADGE_BASE_XP = 500
SESSION_XP = 100
LONGEST_STREAK_XP = 50
XP_PER_LEVEL = 1000

BADGE_DEFINITIONS: List[BadgeDefinition] = [
    # Sessions
    BadgeDefinition(category="sessions", name="First Step", description="Complete your first workout session",
                    icon="🎯", color="bg-blue-100 text-blue-800", requirement="1 session",
                    statistic="totalSessions", threshold=1, nextMilestone="5 sessions for Momentum Builder"),
    BadgeDefinition(category="sessions", name="Momentum Builder", description="Complete 5 workout sessions",
                    icon="🚀", color="bg-purple-100 text-purple-800", requirement="5 sessions",
                    statistic="totalSessions", threshold=5, nextMilestone="10 sessions for Committed"),
    BadgeDefinition(category="sessions", name="Committed", description="Complete 10 workout sessions",
                    icon="💪", color="bg-green-100 text-green-800", requirement="10 sessions",
                    statistic="totalSessions", threshold=10, nextMilestone="25 sessions for Dedicated"),
    BadgeDefinition(category="sessions", name="Dedicated", description="Complete 25 workout sessions",
                    icon="🏆", color="bg-yellow-100 text-yellow-800", requirement="25 sessions",
                    statistic="totalSessions", threshold=25, nextMilestone="50 sessions for Fitness Warrior"),
    BadgeDefinition(category="sessions", name="Fitness Warrior", description="Complete 50 workout sessions",
                    icon="⚡", color="bg-orange-100 text-orange-800", requirement="50 sessions",
                    statistic="totalSessions", threshold=50, nextMilestone="100 sessions for Fitness Legend"),
    BadgeDefinition(category="sessions", name="Fitness Legend", description="Complete 100 workout sessions",
                    icon="👑", color="bg-red-100 text-red-800", requirement="100 sessions",
                    statistic="totalSessions", threshold=100, nextMilestone="You're a legend!"),

    # Weight loss
    BadgeDefinition(category="weight_loss", name="First Pounds", description="Lose your first 2 pounds",
                    icon="📉", color="bg-green-100 text-green-800", requirement="2 lbs lost",
                    statistic="totalWeightLoss", threshold=2, nextMilestone="5 lbs for Getting Lighter"),
    BadgeDefinition(category="weight_loss", name="Getting Lighter", description="Lose 5 pounds",
                    icon="🎈", color="bg-blue-100 text-blue-800", requirement="5 lbs lost",
                    statistic="totalWeightLoss", threshold=5, nextMilestone="10 lbs for Transformation"),
    BadgeDefinition(category="weight_loss", name="Transformation", description="Lose 10 pounds",
                    icon="🔥", color="bg-orange-100 text-orange-800", requirement="10 lbs lost",
                    statistic="totalWeightLoss", threshold=10, nextMilestone="20 lbs for Major Change"),
    BadgeDefinition(category="weight_loss", name="Major Change", description="Lose 20 pounds",
                    icon="⭐", color="bg-yellow-100 text-yellow-800", requirement="20 lbs lost",
                    statistic="totalWeightLoss", threshold=20, nextMilestone="30 lbs for Incredible Journey"),
    BadgeDefinition(category="weight_loss", name="Incredible Journey", description="Lose 30+ pounds",
                    icon="🌟", color="bg-purple-100 text-purple-800", requirement="30+ lbs lost",
                    statistic="totalWeightLoss", threshold=30, nextMilestone="Amazing achievement!"),

    # Consistency (best streak)
    BadgeDefinition(category="consistency", name="Week Warrior", description="Complete 7 days in a row",
                    icon="📅", color="bg-green-100 text-green-800", requirement="7-day streak",
                    statistic="longestStreak", threshold=7, nextMilestone="14 days for Consistent Champion"),
    BadgeDefinition(category="consistency", name="Consistent Champion", description="Maintain a 14-day streak",
                    icon="🔥", color="bg-orange-100 text-orange-800", requirement="14-day streak",
                    statistic="longestStreak", threshold=14, nextMilestone="30 days for Habit Master"),
    BadgeDefinition(category="consistency", name="Habit Master", description="Maintain a 30-day streak",
                    icon="💎", color="bg-blue-100 text-blue-800", requirement="30-day streak",
                    statistic="longestStreak", threshold=30, nextMilestone="60 days for Unstoppable Force"),
    BadgeDefinition(category="consistency", name="Unstoppable Force", description="Maintain a 60-day streak",
                    icon="⚡", color="bg-purple-100 text-purple-800", requirement="60-day streak",
                    statistic="longestStreak", threshold=60, nextMilestone="100 days for Legend status"),

    # Progress tracking
    BadgeDefinition(category="progress", name="Progress Tracker", description="Log progress for 7 days",
                    icon="📊", color="bg-blue-100 text-blue-800", requirement="7 progress logs",
                    statistic="totalDaysTracked", threshold=7, nextMilestone="30 days for Data Lover"),
    BadgeDefinition(category="progress", name="Data Lover", description="Track progress for 30 days",
                    icon="📈", color="bg-green-100 text-green-800", requirement="30 progress logs",
                    statistic="totalDaysTracked", threshold=30, nextMilestone="100 days for Analytics Pro"),
    BadgeDefinition(category="progress", name="Analytics Pro", description="Track progress for 100 days",
                    icon="🎯", color="bg-purple-100 text-purple-800", requirement="100 progress logs",
                    statistic="totalDaysTracked", threshold=100, nextMilestone="Keep tracking!"),

    # Special milestones
    BadgeDefinition(category="milestones", name="Goal Crusher", description="Reach your weight goal",
                    icon="🎯", color="bg-amber-100 text-amber-800", requirement="Reach target weight",
                    statistic="goalReached", threshold=1, nextMilestone="Set a new goal!"),
    BadgeDefinition(category="milestones", name="Early Bird", description="Complete 5 morning workouts",
                    icon="🌅", color="bg-yellow-100 text-yellow-800", requirement="5 AM sessions",
                    statistic="morningSessions", threshold=5, nextMilestone="Keep the mornings coming!"),
    BadgeDefinition(category="milestones", name="Night Owl", description="Complete 5 evening workouts",
                    icon="🌙", color="bg-indigo-100 text-indigo-800", requirement="5 PM sessions",
                    statistic="eveningSessions", threshold=5, nextMilestone="Keep the evenings coming!"),
]


def badge_id(definition: BadgeDefinition) -> str:
    slug = re.sub(r"\s+", "-", definition.name.strip().lower())
    return f"{definition.category}-{slug}"


def unlock_instructions(category: str, requirement: str) -> str:
    """Help text shown on a locked badge."""
    if category == "sessions":
        return f"Complete {requirement} to unlock this badge. Each completed workout session counts toward this goal."
    if category == "weight_loss":
        return f"Lose {requirement} to earn this achievement. Track your progress regularly to see your improvement."
    if category == "consistency":
        return f"Maintain a {requirement} to unlock this badge. Don't miss any days to keep your streak alive!"
    if category == "progress":
        return f"Log your progress for {requirement} to earn this badge. Regular tracking helps you stay motivated."
    if category == "milestones":
        return f"Achieve the specific milestone: {requirement}. This is a special achievement for reaching important goals."
    return f"Meet the requirement: {requirement} to unlock this badge."


def badge_progress(value: Any, threshold: float) -> float:
    """Percent of ``threshold`` reached by ``value``, clamped to [0, 100]."""
    value = _as_number(value)
    if threshold <= 0:
        return 0.0
    return max(0.0, min(100.0, 100.0 * value / threshold))


def _as_number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    if math.isnan(value):
        return 0.0
    return float(value)


def _parse_timestamp(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def calculate_weight_loss(progress_entries: Iterable[Dict[str, Any]]) -> float:
    """First recorded weight minus latest, never negative."""
    weights = weight_series(progress_entries)
    if len(weights) < 2:
        return 0.0
    return round(max(0.0, weights[0] - weights[-1]), 1)


def goal_reached(client: Optional[ClientProfile], progress_entries: Iterable[Dict[str, Any]]) -> bool:
    if client is None or client.targetWeight is None:
        return False
    weights = weight_series(progress_entries)
    return bool(weights) and weights[-1] <= client.targetWeight


def calculate_stats(
    sessions: Iterable[Dict[str, Any]],
    progress_entries: Iterable[Dict[str, Any]],
    streaks: Iterable[Streak],
    client: Optional[ClientProfile] = None,
) -> GamificationStats:
    """Aggregate statistics for badge evaluation. Missing data counts as zero."""
    sessions = list(sessions or [])
    progress_entries = [p for p in progress_entries or [] if isinstance(p, dict)]
    morning, evening = count_sessions_by_time_of_day(sessions)

    return GamificationStats(
        totalSessions=len(completed_sessions(sessions)),
        totalWeightLoss=calculate_weight_loss(progress_entries),
        totalDaysTracked=len(progress_entries),
        longestStreak=max((s.bestCount for s in streaks), default=0),
        morningSessions=morning,
        eveningSessions=evening,
        goalReached=1 if goal_reached(client, progress_entries) else 0,
    )


def evaluate_badge(
    definition: BadgeDefinition,
    stats: GamificationStats,
    flags: Optional[FlagStore] = None,
    now: Optional[datetime] = None,
) -> Badge:
    """Evaluate one catalogue entry against the client's statistics.

    With a flag store, a stored unlock wins over the live statistic and a new
    unlock is recorded with ``now`` as its achieved date.
    """
    now = now or datetime.now(timezone.utc)
    identifier = badge_id(definition)
    value = getattr(stats, definition.statistic, 0)

    achieved_date = None
    stored = flags.get(badge_key(identifier)) if flags is not None else None
    if stored is not None:
        is_unlocked = True
        achieved_date = _parse_timestamp(stored)
        if achieved_date is None:
            achieved_date = now
            flags.set(badge_key(identifier), now.isoformat())
            logger.warning(f"Unreadable unlock date for badge {identifier}: {stored!r}, reset to {now.isoformat()}")
    else:
        is_unlocked = _as_number(value) >= definition.threshold
        if is_unlocked:
            achieved_date = now
            if flags is not None:
                flags.set(badge_key(identifier), now.isoformat())
                logger.info(f"Badge unlocked: {identifier}")

    return Badge(
        id=identifier,
        category=definition.category,
        name=definition.name,
        description=definition.description,
        icon=definition.icon,
        color=definition.color,
        requirement=definition.requirement,
        threshold=definition.threshold,
        isUnlocked=is_unlocked,
        progress=100.0 if is_unlocked else round(badge_progress(value, definition.threshold), 1),
        achievedDate=achieved_date,
        nextMilestone=definition.nextMilestone,
        instructions=unlock_instructions(definition.category, definition.requirement),
    )


def evaluate_badges(
    stats: GamificationStats,
    flags: Optional[FlagStore] = None,
    now: Optional[datetime] = None,
    definitions: Optional[List[BadgeDefinition]] = None,
) -> List[Badge]:
    now = now or datetime.now(timezone.utc)
    return [evaluate_badge(d, stats, flags, now) for d in (definitions or BADGE_DEFINITIONS)]


def next_badge(badges: Iterable[Badge]) -> Optional[Badge]:
    """Locked badge closest to unlocking; catalogue order breaks ties."""
    best = None
    for badge in badges:
        if badge.isUnlocked:
            continue
        if best is None or badge.progress > best.progress:
            best = badge
    return best


def calculate_level(total_sessions: int, badges_earned: int) -> int:
    return (total_sessions * SESSION_XP + badges_earned * BADGE_BASE_XP) // XP_PER_LEVEL + 1


def calculate_total_xp(stats: GamificationStats) -> int:
    return stats.totalSessions * SESSION_XP + stats.badgesEarned * BADGE_BASE_XP \
        + stats.longestStreak * LONGEST_STREAK_XP


def badge_xp(badge: Badge) -> int:
    return BADGE_BASE_XP * (2 if badge.category == "milestones" else 1)


def recent_achievements(
    badges: Iterable[Badge],
    streaks: Iterable[Streak],
    now: Optional[datetime] = None,
    window_days: int = 7,
) -> List[Achievement]:
    """Badges unlocked within ``window_days`` plus active streaks sitting on a milestone."""
    now = now or datetime.now(timezone.utc)
    achievements: List[Achievement] = []

    for badge in badges:
        if not badge.isUnlocked or badge.achievedDate is None:
            continue
        age = now - badge.achievedDate
        if age > timedelta(days=window_days):
            continue
        achievements.append(Achievement(
            id=f"badge-{badge.id}",
            type="milestone" if badge.category == "milestones" else "badge",
            title=badge.name,
            description=badge.description,
            icon=badge.icon,
            xpEarned=badge_xp(badge),
            achievedDate=badge.achievedDate,
            isNew=age <= timedelta(days=1),
        ))

    for streak in streaks:
        if streak.isActive and streak.currentCount in MILESTONES:
            achievements.append(Achievement(
                id=f"streak-{streak.id}-{streak.currentCount}",
                type="streak",
                title=f"{streak.currentCount} Day Streak!",
                description=f"Amazing {streak.title.lower()} streak",
                icon=streak.icon,
                xpEarned=milestone_xp(streak.currentCount),
                achievedDate=now,
                isNew=True,
            ))

    achievements.sort(key=lambda a: a.achievedDate, reverse=True)
    return achievements
