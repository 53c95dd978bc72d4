from datetime import date, datetime, timedelta, timezone

import pytest

from app.models.gamification import Streak
from app.services.activity_service import collect_activity_dates, to_local_date
from app.services.streak_service import (
    PROGRESS_STREAK_ID,
    SESSION_STREAK_ID,
    build_streak,
    calculate_streaks,
    current_run,
    longest_run,
    next_streak_milestone,
    select_top_streak,
    streak_emoji,
)

D = date(2026, 3, 10)


def _days(*offsets):
    return {D + timedelta(days=o) for o in offsets}


def _session(day, status='completed', **extra):
    return {'clientId': 'c1', 'date': day, 'status': status, **extra}


def test_three_consecutive_days_is_active_with_count_three():
    streak = build_streak(SESSION_STREAK_ID, _days(-2, -1, 0), today=D)

    assert streak.currentCount == 3
    assert streak.bestCount == 3
    assert streak.isActive is True
    assert streak.lastActivityDate == D
    assert streak.startDate == D - timedelta(days=2)


def test_day_after_last_activity_is_inactive_but_keeps_count():
    streak = build_streak(SESSION_STREAK_ID, _days(-2, -1, 0), today=D + timedelta(days=1))

    assert streak.isActive is False
    assert streak.currentCount == 3


@pytest.mark.parametrize("days_idle", [2, 3, 10])
def test_two_or_more_idle_days_is_inactive(days_idle):
    streak = build_streak(SESSION_STREAK_ID, _days(-2, -1, 0), today=D + timedelta(days=days_idle))

    assert streak.isActive is False


def test_gap_breaks_current_run_but_not_best():
    dates = _days(-10, -9, -8, -7, -6, -2, -1, 0)

    assert current_run(dates) == (3, D - timedelta(days=2))
    assert longest_run(dates) == 5


@pytest.mark.parametrize("offsets", [
    (0,),
    (-5, -4, -3, 0),
    (-3, -1, 0),
    (-20, -19, -18, -17, -1, 0),
    (-1, 0, -30, -29),
])
def test_best_count_never_below_current_count(offsets):
    streak = build_streak(SESSION_STREAK_ID, _days(*offsets), today=D)

    assert streak.bestCount >= streak.currentCount


def test_empty_history_yields_no_streaks():
    assert calculate_streaks([], [], D) == []
    assert calculate_streaks(None, None, D) == []


def test_only_completed_sessions_count():
    sessions = [
        _session('2026-03-08'),
        _session('2026-03-09', status='cancelled'),
        _session('2026-03-10', status='no-show'),
    ]

    streaks = calculate_streaks(sessions, [], D)

    assert [s.id for s in streaks] == [SESSION_STREAK_ID]
    assert streaks[0].currentCount == 1
    assert streaks[0].lastActivityDate == date(2026, 3, 8)


def test_progress_entries_build_their_own_streak():
    progress = [{'clientId': 'c1', 'date': d} for d in ('2026-03-09', '2026-03-10')]

    streaks = calculate_streaks([_session('2026-03-01')], progress, D)
    by_id = {s.id: s for s in streaks}

    assert by_id[PROGRESS_STREAK_ID].currentCount == 2
    assert by_id[PROGRESS_STREAK_ID].isActive is True
    assert by_id[SESSION_STREAK_ID].isActive is False


def test_malformed_future_and_duplicate_dates_are_tolerated():
    sessions = [
        _session('2026-03-10'),
        _session('2026-03-10T18:30:00Z'),
        _session('not-a-date'),
        _session(None),
        _session(12345),
        _session('2026-03-15'),
        'garbage',
    ]

    streaks = calculate_streaks(sessions, [], D)

    assert len(streaks) == 1
    assert streaks[0].currentCount == 1
    assert streaks[0].lastActivityDate == D


def test_to_local_date_accepts_common_shapes():
    class FirestoreTimestamp:
        def timestamp(self):
            return datetime(2026, 3, 10, 23, 30, tzinfo=timezone.utc).timestamp()

    assert to_local_date('2026-03-10') == D
    assert to_local_date('2026-03-10T23:30:00Z') == D
    assert to_local_date(datetime(2026, 3, 10, 23, 30)) == D
    assert to_local_date(D) == D
    assert to_local_date(FirestoreTimestamp()) == D
    assert to_local_date('') is None
    assert to_local_date(object()) is None


def test_local_day_follows_timezone():
    from zoneinfo import ZoneInfo

    late_utc = '2026-03-10T23:30:00+00:00'

    assert to_local_date(late_utc, ZoneInfo('Asia/Tokyo')) == date(2026, 3, 11)
    assert collect_activity_dates([{'date': late_utc}], today=D, tz=ZoneInfo('America/New_York')) == {D}


def _streak(streak_id, count, active=True):
    return Streak(id=streak_id, type='session', currentCount=count, bestCount=count,
                  isActive=active, title=streak_id)


def test_top_streak_prefers_highest_active_count():
    streaks = [_streak('b', 4), _streak('a', 9, active=False), _streak('c', 6)]

    assert select_top_streak(streaks).id == 'c'


def test_top_streak_ties_broken_by_id():
    streaks = [_streak('session-streak', 5), _streak('progress-streak', 5)]

    assert select_top_streak(streaks).id == 'progress-streak'


def test_top_streak_none_without_active_streaks():
    assert select_top_streak([]) is None
    assert select_top_streak([_streak('a', 3, active=False)]) is None


@pytest.mark.parametrize("count,expected", [(0, 3), (3, 7), (7, 14), (59, 60), (100, 110), (150, 160)])
def test_next_streak_milestone(count, expected):
    assert next_streak_milestone(count) == expected


def test_streak_emoji_grows_with_count():
    assert streak_emoji(0) == "🌱"
    assert streak_emoji(7) == "🎯"
    assert streak_emoji(100) == "👑"
