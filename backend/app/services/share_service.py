"""Best-effort sharing of milestone celebrations.

When a share webhook is configured the message is POSTed to it. Any failure,
or no webhook at all, falls back to handing the text back for the client to
copy to the clipboard. Sharing never raises.
"""
import logging
from typing import Optional

import requests

from app import config
from app.models.gamification import Celebration, ShareMessage, ShareResult

logger = logging.getLogger(__name__)


def build_share_message(celebration: Celebration, client_name: Optional[str] = None) -> ShareMessage:
    prefix = f"{client_name}: " if client_name else ""
    return ShareMessage(
        title=f"{celebration.count} Day Streak - {celebration.tier}!",
        text=f"{prefix}{celebration.shareText}",
        url=config.APP_URL,
    )


def _clipboard(message: ShareMessage, detail: str) -> ShareResult:
    return ShareResult(method="clipboard", title=message.title, text=message.text, url=message.url, detail=detail)


def share_celebration(
    message: ShareMessage,
    webhook_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> ShareResult:
    """Share ``message`` through the webhook, falling back to clipboard text."""
    webhook_url = webhook_url if webhook_url is not None else config.SHARE_WEBHOOK_URL
    timeout = timeout if timeout is not None else config.SHARE_TIMEOUT_SECONDS

    if not webhook_url:
        return _clipboard(message, "Sharing is not configured; copy the message instead")

    try:
        response = requests.post(
            webhook_url,
            json={"title": message.title, "text": message.text, "url": message.url},
            timeout=timeout,
        )
    except requests.RequestException as e:
        logger.warning(f"Share webhook failed: {type(e).__name__}: {e}")
        return _clipboard(message, "Sharing is unavailable right now; copy the message instead")

    if not response.ok:
        logger.warning(f"Share webhook rejected message: HTTP {response.status_code}")
        return _clipboard(message, f"Sharing was rejected (HTTP {response.status_code}); copy the message instead")

    logger.info("Celebration shared via webhook")
    return ShareResult(method="shared", title=message.title, text=message.text, url=message.url)
