"""Derive attendance and progress-logging streaks from activity history.

A streak is a run of consecutive calendar days with at least one qualifying
activity. Streaks are views: they are rebuilt from the raw records on every
read and never written back.
"""
import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from app.models.gamification import Streak
from app.services.activity_service import collect_activity_dates, completed_sessions

logger = logging.getLogger(__name__)

SESSION_STREAK_ID = "session-streak"
PROGRESS_STREAK_ID = "progress-streak"

STREAK_TRACKS: Dict[str, Dict[str, str]] = {
    SESSION_STREAK_ID: {
        "type": "session",
        "title": "Workout Streak",
        "description": "Consecutive days with a completed workout session",
        "icon": "🔥",
    },
    PROGRESS_STREAK_ID: {
        "type": "progress_log",
        "title": "Progress Tracking",
        "description": "Consecutive days logging progress",
        "icon": "📊",
    },
}

# Progress bar targets shown next to a streak
STREAK_PROGRESS_TARGETS = (3, 7, 14, 30, 60, 100)

NO_STREAK_TITLE = "Start Your Streak"
NO_STREAK_ICON = "🌱"

ONE_DAY = timedelta(days=1)


def current_run(dates: Set[date]) -> Tuple[int, Optional[date]]:
    """Length and first day of the run ending at the most recent date."""
    if not dates:
        return 0, None
    ordered = sorted(dates, reverse=True)
    count = 1
    start = ordered[0]
    for previous, day in zip(ordered, ordered[1:]):
        if previous - day != ONE_DAY:
            break
        count += 1
        start = day
    return count, start


def longest_run(dates: Set[date]) -> int:
    """Longest run of consecutive days anywhere in the history."""
    if not dates:
        return 0
    ordered = sorted(dates)
    best = 1
    run = 1
    for previous, day in zip(ordered, ordered[1:]):
        if day - previous == ONE_DAY:
            run += 1
            best = max(best, run)
        else:
            run = 1
    return best


def days_since_last_activity(streak: Streak, today: date) -> Optional[int]:
    if streak.lastActivityDate is None:
        return None
    return (today - streak.lastActivityDate).days


def build_streak(streak_id: str, dates: Set[date], today: date) -> Optional[Streak]:
    """Build the streak view for one track, or None when there is no activity."""
    if not dates:
        return None

    track = STREAK_TRACKS[streak_id]
    count, start = current_run(dates)
    last_activity = max(dates)
    best = max(longest_run(dates), count)

    return Streak(
        id=streak_id,
        type=track["type"],
        currentCount=count,
        bestCount=best,
        # The day after the last activity is the recovery window, not active
        isActive=(today - last_activity).days == 0,
        lastActivityDate=last_activity,
        startDate=start,
        title=track["title"],
        description=track["description"],
        icon=track["icon"],
    )


def calculate_streaks(
    sessions: Iterable[Dict[str, Any]],
    progress_entries: Iterable[Dict[str, Any]],
    today: date,
) -> List[Streak]:
    """Build the session and progress streaks for one client.

    Tracks with no usable activity are left out, so an empty history gives an
    empty list.
    """
    session_dates = collect_activity_dates(completed_sessions(sessions), today)
    progress_dates = collect_activity_dates(progress_entries, today)

    streaks = []
    for streak_id, dates in ((SESSION_STREAK_ID, session_dates), (PROGRESS_STREAK_ID, progress_dates)):
        streak = build_streak(streak_id, dates, today)
        if streak is not None:
            streaks.append(streak)

    logger.info(
        f"Derived {len(streaks)} streaks from {len(session_dates)} session days "
        f"and {len(progress_dates)} progress days"
    )
    return streaks


def select_top_streak(streaks: Iterable[Streak]) -> Optional[Streak]:
    """Active streak with the highest current count; ties go to the smallest id."""
    active = [s for s in streaks if s.isActive]
    if not active:
        return None
    return min(active, key=lambda s: (-s.currentCount, s.id))


def longest_streak(streaks: Iterable[Streak]) -> int:
    return max((s.bestCount for s in streaks), default=0)


def next_streak_milestone(count: int) -> int:
    for target in STREAK_PROGRESS_TARGETS:
        if target > count:
            return target
    return count + 10


def streak_emoji(count: int) -> str:
    if count >= 100:
        return "👑"
    if count >= 60:
        return "⚡"
    if count >= 30:
        return "🔥"
    if count >= 14:
        return "💪"
    if count >= 7:
        return "🎯"
    if count >= 3:
        return "📈"
    return NO_STREAK_ICON
