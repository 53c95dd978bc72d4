import pytest
import requests

from app.models.gamification import Celebration
from app.services import share_service
from app.services.share_service import build_share_message, share_celebration


@pytest.fixture
def message():
    celebration = Celebration(
        streakId="session-streak",
        count=7,
        tier="Week Warrior",
        message="🎉 7 Day Workout Streak!",
        xpReward=70,
        icon="🎯",
        shareText="I just hit a 7-day workout streak and earned the Week Warrior title (+70 XP)!",
    )
    return build_share_message(celebration, "Sam")


class _Response:
    def __init__(self, status_code):
        self.status_code = status_code
        self.ok = 200 <= status_code < 300


def test_share_message_content(message):
    assert message.title == "7 Day Streak - Week Warrior!"
    assert message.text.startswith("Sam: I just hit a 7-day workout streak")


def test_falls_back_to_clipboard_without_webhook(message):
    result = share_celebration(message, webhook_url="")

    assert result.method == "clipboard"
    assert result.text == message.text


def test_shares_through_webhook(message, monkeypatch):
    calls = []

    def fake_post(url, json, timeout):
        calls.append((url, json, timeout))
        return _Response(204)

    monkeypatch.setattr(share_service.requests, "post", fake_post)

    result = share_celebration(message, webhook_url="https://hooks.example.com/share", timeout=3)

    assert result.method == "shared"
    assert calls == [("https://hooks.example.com/share",
                      {"title": message.title, "text": message.text, "url": message.url}, 3)]


def test_network_error_falls_back_to_clipboard(message, monkeypatch):
    def failing_post(*args, **kwargs):
        raise requests.ConnectionError("unreachable")

    monkeypatch.setattr(share_service.requests, "post", failing_post)

    result = share_celebration(message, webhook_url="https://hooks.example.com/share")

    assert result.method == "clipboard"
    assert result.detail


def test_rejected_share_falls_back_to_clipboard(message, monkeypatch):
    monkeypatch.setattr(share_service.requests, "post", lambda *a, **k: _Response(403))

    result = share_celebration(message, webhook_url="https://hooks.example.com/share")

    assert result.method == "clipboard"
    assert "403" in result.detail
