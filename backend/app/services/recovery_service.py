"""One-time streak recovery.

A streak that lapsed for exactly one calendar day can be recovered once. The
recovery is a display-level grace: the stored marker remembers which
``lastActivityDate`` it was applied to, and the streak is shown as active
only while that is still the last activity and the gap is still one day.
Historical counts are never rewritten.
"""
import logging
from datetime import date
from typing import List

from app.models.gamification import Streak
from app.services.flag_store import FlagStore, recovered_key
from app.services.streak_service import days_since_last_activity

logger = logging.getLogger(__name__)

RECOVERY_GAP_DAYS = 1


def _within_recovery_gap(streak: Streak, today: date) -> bool:
    return days_since_last_activity(streak, today) == RECOVERY_GAP_DAYS


def _recovered_for_last_activity(streak: Streak, flags: FlagStore) -> bool:
    marker = flags.get(recovered_key(streak.id))
    return marker is not None and streak.lastActivityDate is not None \
        and marker == streak.lastActivityDate.isoformat()


def can_recover(streak: Streak, flags: FlagStore, today: date) -> bool:
    """True iff the streak is inactive, lapsed exactly one day and was never recovered."""
    if streak.isActive:
        return False
    if not _within_recovery_gap(streak, today):
        return False
    return not flags.has(recovered_key(streak.id))


def apply_recovery_state(streak: Streak, flags: FlagStore, today: date) -> Streak:
    """Fill in ``canRecover``/``isRecovered`` for a freshly derived streak."""
    if not streak.isActive and _within_recovery_gap(streak, today) \
            and _recovered_for_last_activity(streak, flags):
        return streak.model_copy(update={"isActive": True, "isRecovered": True, "canRecover": False})
    return streak.model_copy(update={"canRecover": can_recover(streak, flags, today)})


def apply_recovery_states(streaks: List[Streak], flags: FlagStore, today: date) -> List[Streak]:
    return [apply_recovery_state(streak, flags, today) for streak in streaks]


def recover_streak(streak: Streak, flags: FlagStore, today: date) -> Streak:
    """Use the one-time recovery on ``streak``.

    Ineligible streaks (active, gap other than one day, already recovered)
    are returned unchanged; this is not an error.
    """
    if not can_recover(streak, flags, today):
        logger.info(f"Recovery not available for {streak.id}; ignoring")
        return streak

    flags.set(recovered_key(streak.id), streak.lastActivityDate.isoformat())
    logger.info(f"Recovered streak {streak.id} at count {streak.currentCount}")
    return streak.model_copy(update={"isActive": True, "isRecovered": True, "canRecover": False})
