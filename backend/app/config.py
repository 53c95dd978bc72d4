"""Runtime configuration read from the environment (.env supported)."""
import os
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

load_dotenv()

# Calendar days are computed in this timezone
GAMIFICATION_TIMEZONE = os.getenv("GAMIFICATION_TIMEZONE", "UTC")

# Optional outbound share target for milestone celebrations
SHARE_WEBHOOK_URL = os.getenv("SHARE_WEBHOOK_URL", "")
SHARE_TIMEOUT_SECONDS = float(os.getenv("SHARE_TIMEOUT_SECONDS", "10"))

# Link included in share messages
APP_URL = os.getenv("APP_URL", "https://fitclient.app")

# Badges unlocked within this many days show up in the recent achievements feed
RECENT_ACHIEVEMENT_DAYS = int(os.getenv("RECENT_ACHIEVEMENT_DAYS", "7"))


@lru_cache(maxsize=None)
def get_timezone() -> ZoneInfo:
    """Return the configured timezone, falling back to UTC if it is unknown."""
    try:
        return ZoneInfo(GAMIFICATION_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        print(f"[CONFIG] Unknown timezone '{GAMIFICATION_TIMEZONE}', using UTC")
        return ZoneInfo("UTC")
