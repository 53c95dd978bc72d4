"""Coercion of raw Firestore session/progress records into calendar activity.

Records come straight from Firestore and may be missing fields or carry
values of the wrong type. Nothing here raises for bad input: unusable records
are skipped.
"""
import logging
from datetime import date, datetime, timezone, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from app.config import get_timezone

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "completed"

# Session start hours used by the Early Bird / Night Owl badges
MORNING_CUTOFF_HOUR = 12
EVENING_START_HOUR = 17


def to_local_date(value: Any, tz: Optional[tzinfo] = None) -> Optional[date]:
    """Convert a stored timestamp to a calendar day in the given timezone.

    Accepts Firestore timestamps, ``datetime``, ``date`` and ISO-8601 strings.
    Naive datetimes are taken as UTC. Returns None for anything else.
    """
    if value is None:
        return None
    tz = tz or get_timezone()

    # Firestore Timestamp / DatetimeWithNanoseconds
    if hasattr(value, 'timestamp') and not isinstance(value, datetime):
        try:
            value = datetime.fromtimestamp(value.timestamp(), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            value = datetime.fromisoformat(text)
        except ValueError:
            logger.debug(f"Skipping unparseable date value: {value!r}")
            return None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(tz).date()

    if isinstance(value, date):
        return value

    return None


def is_completed_session(session_data: Dict[str, Any]) -> bool:
    return isinstance(session_data, dict) and session_data.get('status') == COMPLETED_STATUS


def completed_sessions(sessions: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [s for s in sessions or [] if is_completed_session(s)]


def collect_activity_dates(
    records: Iterable[Dict[str, Any]],
    today: date,
    date_field: str = 'date',
    tz: Optional[tzinfo] = None,
) -> Set[date]:
    """Distinct activity days up to and including ``today``.

    Future-dated records have not happened yet and are ignored.
    """
    dates: Set[date] = set()
    for record in records or []:
        if not isinstance(record, dict):
            continue
        day = to_local_date(record.get(date_field), tz)
        if day is None or day > today:
            continue
        dates.add(day)
    return dates


def session_start_hour(session_data: Dict[str, Any]) -> Optional[int]:
    """Hour of day a session started, from ``startTime`` or ``time`` ("HH:MM")."""
    for field in ('startTime', 'time'):
        raw = session_data.get(field)
        if not isinstance(raw, str) or ':' not in raw:
            continue
        try:
            hour = int(raw.split(':', 1)[0])
        except ValueError:
            continue
        if 0 <= hour <= 23:
            return hour
    return None


def count_sessions_by_time_of_day(sessions: Iterable[Dict[str, Any]]) -> Tuple[int, int]:
    """Return (morning, evening) completed session counts."""
    morning = 0
    evening = 0
    for session_data in completed_sessions(sessions):
        hour = session_start_hour(session_data)
        if hour is None:
            continue
        if hour < MORNING_CUTOFF_HOUR:
            morning += 1
        elif hour >= EVENING_START_HOUR:
            evening += 1
    return morning, evening


def weight_series(progress_entries: Iterable[Dict[str, Any]], tz: Optional[tzinfo] = None) -> List[float]:
    """Recorded weights ordered by entry date; entries without a usable weight or date are skipped."""
    dated: List[Tuple[date, int, float]] = []
    for index, entry in enumerate(progress_entries or []):
        if not isinstance(entry, dict):
            continue
        weight = entry.get('weight')
        if isinstance(weight, bool) or not isinstance(weight, (int, float)):
            continue
        day = to_local_date(entry.get('date'), tz)
        if day is None:
            continue
        # index keeps same-day entries in their stored order
        dated.append((day, index, float(weight)))
    dated.sort()
    return [weight for _, _, weight in dated]
