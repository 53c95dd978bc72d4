"""Shared fixtures: an in-memory Firestore stand-in and an authenticated API client."""
from datetime import date
from typing import Any, Dict, Optional

import pytest
from fastapi.testclient import TestClient

from app.auth.dependencies import get_current_user
from app.main import app

TRAINER_UID = "trainer-123"
TODAY = date(2026, 3, 10)


class FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class FakeDocument:
    def __init__(self, doc_id: str):
        self.id = doc_id
        self.data: Optional[Dict[str, Any]] = None
        self.collections: Dict[str, "FakeCollection"] = {}

    def collection(self, name: str) -> "FakeCollection":
        return self.collections.setdefault(name, FakeCollection())

    def get(self) -> FakeSnapshot:
        return FakeSnapshot(self.id, self.data)

    def set(self, data: Dict[str, Any], merge: bool = False) -> None:
        if merge and self.data:
            self.data.update(data)
        else:
            self.data = dict(data)


class FakeQuery:
    def __init__(self, collection: "FakeCollection", filters=()):
        self._collection = collection
        self._filters = tuple(filters)

    def where(self, field: str, op: str, value: Any) -> "FakeQuery":
        assert op == '==', "only equality filters are supported"
        return FakeQuery(self._collection, self._filters + ((field, value),))

    def stream(self):
        for doc in list(self._collection.documents.values()):
            if doc.data is None:
                continue
            if all(doc.data.get(field) == value for field, value in self._filters):
                yield doc.get()


class FakeCollection:
    def __init__(self):
        self.documents: Dict[str, FakeDocument] = {}
        self._auto_id = 0

    def document(self, doc_id: Optional[str] = None) -> FakeDocument:
        if doc_id is None:
            self._auto_id += 1
            doc_id = f"auto-{self._auto_id}"
        return self.documents.setdefault(doc_id, FakeDocument(doc_id))

    def add(self, data: Dict[str, Any]) -> FakeDocument:
        doc = self.document()
        doc.set(data)
        return doc

    def where(self, field: str, op: str, value: Any) -> FakeQuery:
        return FakeQuery(self).where(field, op, value)

    def stream(self):
        return FakeQuery(self).stream()


class FakeFirestore:
    """Just enough of the Firestore client API for the gamification code."""

    def __init__(self):
        self.root: Dict[str, FakeCollection] = {}

    def collection(self, name: str) -> FakeCollection:
        return self.root.setdefault(name, FakeCollection())

    def trainer(self, uid: str = TRAINER_UID) -> FakeDocument:
        return self.collection('users').document(uid)

    def add_client(self, client_id: str, uid: str = TRAINER_UID, **data) -> None:
        data.setdefault('name', 'Jordan Client')
        self.trainer(uid).collection('clients').document(client_id).set(data)

    def add_session(self, client_id: str, day: str, status: str = 'completed', uid: str = TRAINER_UID, **extra) -> None:
        self.trainer(uid).collection('sessions').add({'clientId': client_id, 'date': day, 'status': status, **extra})

    def add_progress(self, client_id: str, day: str, uid: str = TRAINER_UID, **extra) -> None:
        self.trainer(uid).collection('progress').add({'clientId': client_id, 'date': day, **extra})

    def flags(self, client_id: str, uid: str = TRAINER_UID) -> Dict[str, Any]:
        collection = self.trainer(uid).collection('clients').document(client_id).collection('gamificationFlags')
        return {doc_id: doc.data for doc_id, doc in collection.documents.items() if doc.data is not None}


@pytest.fixture
def fake_db() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def api_client(fake_db, monkeypatch):
    """TestClient authenticated as TRAINER_UID, backed by ``fake_db`` and a fixed date."""
    monkeypatch.setattr("app.api.gamification.get_firestore_db", lambda: fake_db)
    monkeypatch.setattr("app.api.gamification.local_today", lambda: TODAY)
    monkeypatch.setattr("app.services.gamification_service.local_today", lambda: TODAY)
    monkeypatch.setattr("app.config.SHARE_WEBHOOK_URL", "")
    app.dependency_overrides[get_current_user] = lambda: {"uid": TRAINER_UID, "email": "coach@example.com"}
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
