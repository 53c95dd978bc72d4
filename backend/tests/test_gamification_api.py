"""Gamification routes against the fake Firestore (TODAY = 2026-03-10)."""
from datetime import timedelta

from conftest import TODAY


def _add_daily_sessions(fake_db, client_id, days, end=TODAY):
    for offset in range(days):
        fake_db.add_session(client_id, (end - timedelta(days=offset)).isoformat())


def test_health(api_client):
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_unknown_client_returns_404(api_client):
    response = api_client.get("/api/gamification/clients/missing")

    assert response.status_code == 404


def test_requires_authentication():
    from fastapi.testclient import TestClient
    from app.main import app

    response = TestClient(app).get("/api/gamification/clients/c1")

    assert response.status_code in (401, 403)


def test_client_dashboard(api_client, fake_db):
    fake_db.add_client("c1", name="Sam")
    _add_daily_sessions(fake_db, "c1", 7)
    fake_db.add_session("c2", TODAY.isoformat())
    fake_db.add_progress("c1", "2026-03-01", weight=200)
    fake_db.add_progress("c1", "2026-03-09", weight=194)

    response = api_client.get("/api/gamification/clients/c1")

    assert response.status_code == 200
    data = response.json()
    assert data["clientName"] == "Sam"
    streaks = {s["id"]: s for s in data["currentStreaks"]}
    assert streaks["session-streak"]["currentCount"] == 7
    assert streaks["session-streak"]["isActive"] is True
    assert data["stats"]["totalSessions"] == 7
    assert data["stats"]["totalWeightLoss"] == 6
    badges = {b["name"]: b for b in data["badges"]}
    assert badges["Week Warrior"]["isUnlocked"] is True
    assert badges["Getting Lighter"]["isUnlocked"] is True
    assert data["stats"]["badgesEarned"] == len([b for b in data["badges"] if b["isUnlocked"]])
    assert data["pendingCelebration"]["tier"] == "Week Warrior"
    assert data["pendingCelebration"]["xpReward"] == 70


def test_badge_unlocks_are_persisted(api_client, fake_db):
    fake_db.add_client("c1")
    fake_db.add_session("c1", TODAY.isoformat())

    api_client.get("/api/gamification/clients/c1/badges")

    assert "badge:sessions-first-step" in fake_db.flags("c1")


def test_celebration_flow(api_client, fake_db):
    fake_db.add_client("c1")
    _add_daily_sessions(fake_db, "c1", 7)

    pending = api_client.get("/api/gamification/clients/c1/celebration").json()
    assert pending["celebration"]["streakId"] == "session-streak"

    body = {"streakId": "session-streak", "count": 7}
    first = api_client.post("/api/gamification/clients/c1/celebrations/dismiss", json=body)
    second = api_client.post("/api/gamification/clients/c1/celebrations/dismiss", json=body)

    assert first.json() == {"recorded": True}
    assert second.json() == {"recorded": False}
    assert api_client.get("/api/gamification/clients/c1/celebration").json()["celebration"] is None


def test_dismiss_rejects_non_milestone(api_client, fake_db):
    fake_db.add_client("c1")

    response = api_client.post(
        "/api/gamification/clients/c1/celebrations/dismiss",
        json={"streakId": "session-streak", "count": 8},
    )

    assert response.status_code == 400


def test_dismiss_rejects_unknown_streak(api_client, fake_db):
    fake_db.add_client("c1")
    _add_daily_sessions(fake_db, "c1", 7)

    response = api_client.post(
        "/api/gamification/clients/c1/celebrations/dismiss",
        json={"streakId": "no-such-streak", "count": 7},
    )

    assert response.status_code == 404
    assert not any(k.startswith("celebrated:") for k in fake_db.flags("c1"))


def test_dashboard_with_numeric_client_name(api_client, fake_db):
    fake_db.add_client("c2", name=12345)
    fake_db.add_session("c2", TODAY.isoformat())

    response = api_client.get("/api/gamification/clients/c2")

    assert response.status_code == 200
    assert response.json()["clientName"] == "12345"


def test_share_falls_back_to_clipboard(api_client, fake_db):
    fake_db.add_client("c1", name="Sam")
    _add_daily_sessions(fake_db, "c1", 7)

    response = api_client.post(
        "/api/gamification/clients/c1/celebrations/share",
        json={"streakId": "session-streak", "count": 7},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["method"] == "clipboard"
    assert data["text"].startswith("Sam: ")


def test_share_rejects_unreached_milestone(api_client, fake_db):
    fake_db.add_client("c1")
    _add_daily_sessions(fake_db, "c1", 3)

    response = api_client.post(
        "/api/gamification/clients/c1/celebrations/share",
        json={"streakId": "session-streak", "count": 30},
    )

    assert response.status_code == 400


def test_recover_lapsed_streak_once(api_client, fake_db):
    fake_db.add_client("c1")
    _add_daily_sessions(fake_db, "c1", 3, end=TODAY - timedelta(days=1))

    streaks = api_client.get("/api/gamification/clients/c1/streaks").json()["streaks"]
    assert streaks[0]["isActive"] is False
    assert streaks[0]["canRecover"] is True

    first = api_client.post("/api/gamification/clients/c1/streaks/session-streak/recover").json()
    second = api_client.post("/api/gamification/clients/c1/streaks/session-streak/recover").json()

    assert first["recovered"] is True
    assert first["streak"]["isActive"] is True
    assert first["streak"]["currentCount"] == 3
    assert second["recovered"] is False
    assert second["streak"]["isRecovered"] is True


def test_recover_unknown_streak_returns_404(api_client, fake_db):
    fake_db.add_client("c1")

    response = api_client.post("/api/gamification/clients/c1/streaks/session-streak/recover")

    assert response.status_code == 404


def test_top_streak_across_clients(api_client, fake_db):
    fake_db.add_client("c1")
    fake_db.add_client("c2")
    _add_daily_sessions(fake_db, "c1", 2)
    _add_daily_sessions(fake_db, "c2", 4)

    data = api_client.get("/api/gamification/streaks/top").json()

    assert data["clientId"] == "c2"
    assert data["currentCount"] == 4


def test_top_streak_placeholder(api_client, fake_db):
    fake_db.add_client("c1")

    data = api_client.get("/api/gamification/streaks/top").json()

    assert data["streak"] is None
    assert data["title"] == "Start Your Streak"
    assert data["currentCount"] == 0
