"""Key-value storage for idempotent gamification markers.

Three key namespaces are used:

- ``celebrated:{streakId}:{count}`` - milestone celebration already shown
- ``recovered:{streakId}`` - one-time streak recovery used
- ``badge:{badgeId}`` - badge unlocked (value is the ISO unlock timestamp)

A missing key always means "not yet".
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from firebase_admin import firestore

logger = logging.getLogger(__name__)

FLAGS_COLLECTION = 'gamificationFlags'


def celebrated_key(streak_id: str, count: int) -> str:
    return f"celebrated:{streak_id}:{count}"


def recovered_key(streak_id: str) -> str:
    return f"recovered:{streak_id}"


def badge_key(badge_id: str) -> str:
    return f"badge:{badge_id}"


class FlagStore(ABC):
    """Base class for marker storage backends."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    def has(self, key: str) -> bool:
        return self.get(key) is not None

    def set_if_absent(self, key: str, value: str) -> bool:
        """Store ``value`` unless the key exists. Returns True if it was stored."""
        if self.has(key):
            return False
        self.set(key, value)
        return True


class InMemoryFlagStore(FlagStore):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._flags: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._flags.get(key)

    def set(self, key: str, value: str) -> None:
        self._flags[key] = value

    def snapshot(self) -> Dict[str, str]:
        return dict(self._flags)


class FirestoreFlagStore(FlagStore):
    """Markers stored under ``users/{uid}/clients/{clientId}/gamificationFlags/{key}``.

    All flags of a client are read on first access and cached for the
    lifetime of the store (one request).
    """

    def __init__(self, db: Any, uid: str, client_id: str):
        self._collection = db.collection('users').document(uid) \
            .collection('clients').document(client_id) \
            .collection(FLAGS_COLLECTION)
        self._cache: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._cache is None:
            self._cache = {}
            for doc in self._collection.stream():
                data = doc.to_dict() or {}
                value = data.get('value')
                if value is not None:
                    self._cache[doc.id] = str(value)
            logger.info(f"Loaded {len(self._cache)} gamification flags")
        return self._cache

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        self._collection.document(key).set({
            'value': value,
            'createdAt': firestore.SERVER_TIMESTAMP,
        })
        self._load()[key] = value
