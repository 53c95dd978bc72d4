"""Load a trainer's client records from Firestore and assemble gamification views.

Firestore layout (owned by the web app, read-only here):

- ``users/{uid}/clients/{clientId}``
- ``users/{uid}/sessions`` with a ``clientId`` field
- ``users/{uid}/progress`` with a ``clientId`` field
"""
import logging
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from app import config
from app.models.client import ClientProfile
from app.models.gamification import GamificationData, Streak
from app.services.badge_service import (
    calculate_level,
    calculate_stats,
    calculate_total_xp,
    evaluate_badges,
    next_badge,
    recent_achievements,
)
from app.services.flag_store import FlagStore
from app.services.milestone_service import pending_celebration
from app.services.recovery_service import apply_recovery_states
from app.services.streak_service import calculate_streaks

logger = logging.getLogger(__name__)


def local_today() -> date:
    return datetime.now(config.get_timezone()).date()


def _user_collection(db: Any, uid: str, name: str):
    return db.collection('users').document(uid).collection(name)


def load_client(db: Any, uid: str, client_id: str) -> Optional[ClientProfile]:
    doc = _user_collection(db, uid, 'clients').document(client_id).get()
    if not doc.exists:
        return None
    return ClientProfile.from_document(doc.id, doc.to_dict())


def load_clients(db: Any, uid: str) -> List[ClientProfile]:
    return [
        ClientProfile.from_document(doc.id, doc.to_dict())
        for doc in _user_collection(db, uid, 'clients').stream()
    ]


def _load_records(db: Any, uid: str, name: str, client_id: Optional[str] = None) -> List[Dict[str, Any]]:
    query = _user_collection(db, uid, name)
    if client_id is not None:
        query = query.where('clientId', '==', client_id)
    records = []
    for doc in query.stream():
        data = doc.to_dict()
        if isinstance(data, dict):
            records.append(data)
    return records


def load_client_records(db: Any, uid: str, client_id: str) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Return (sessions, progress entries) for one client."""
    sessions = _load_records(db, uid, 'sessions', client_id)
    progress_entries = _load_records(db, uid, 'progress', client_id)
    logger.info(f"Loaded {len(sessions)} sessions and {len(progress_entries)} progress entries for client {client_id}")
    return sessions, progress_entries


def load_records_by_client(db: Any, uid: str) -> Dict[str, Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]]:
    """All of a trainer's sessions and progress entries grouped by client ID."""
    grouped: Dict[str, Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]] = defaultdict(lambda: ([], []))
    for record in _load_records(db, uid, 'sessions'):
        if record.get('clientId'):
            grouped[record['clientId']][0].append(record)
    for record in _load_records(db, uid, 'progress'):
        if record.get('clientId'):
            grouped[record['clientId']][1].append(record)
    return grouped


def build_client_streaks(
    sessions: List[Dict[str, Any]],
    progress_entries: List[Dict[str, Any]],
    flags: FlagStore,
    today: Optional[date] = None,
) -> List[Streak]:
    today = today or local_today()
    streaks = calculate_streaks(sessions, progress_entries, today)
    return apply_recovery_states(streaks, flags, today)


def build_gamification_data(
    client: ClientProfile,
    sessions: List[Dict[str, Any]],
    progress_entries: List[Dict[str, Any]],
    flags: FlagStore,
    today: Optional[date] = None,
    now: Optional[datetime] = None,
) -> GamificationData:
    """Streaks, badges, level and achievements for one client."""
    now = now or datetime.now(timezone.utc)
    streaks = build_client_streaks(sessions, progress_entries, flags, today)

    stats = calculate_stats(sessions, progress_entries, streaks, client)
    badges = evaluate_badges(stats, flags, now)
    badges_earned = len([b for b in badges if b.isUnlocked])
    stats = stats.model_copy(update={
        "badgesEarned": badges_earned,
        "currentLevel": calculate_level(stats.totalSessions, badges_earned),
    })

    return GamificationData(
        clientId=client.id,
        clientName=client.name,
        level=stats.currentLevel,
        totalXP=calculate_total_xp(stats),
        currentStreaks=streaks,
        badges=badges,
        recentAchievements=recent_achievements(badges, streaks, now, config.RECENT_ACHIEVEMENT_DAYS),
        stats=stats,
        nextBadge=next_badge(badges),
        pendingCelebration=pending_celebration(streaks, flags),
    )
