"""
Centralized Timezone Utilities

Chat timestamps are compared in UTC. Times shown to people use the
configured display timezone (Europe/Istanbul by default).
"""

import pytz
from datetime import datetime
from typing import Optional

from linkick.core.config import settings


UTC = pytz.utc
DISPLAY_TZ = pytz.timezone(settings.DISPLAY_TIMEZONE)


def utc_now() -> datetime:
    """Get current timezone-aware datetime in UTC."""
    return datetime.now(UTC)


def display_now() -> datetime:
    """Get current datetime in the display timezone."""
    return datetime.now(DISPLAY_TZ)


def display_strftime(fmt: str = "%H:%M") -> str:
    """Get formatted current time string in the display timezone."""
    return display_now().strftime(fmt)


def parse_timestamp(value) -> Optional[datetime]:
    """Parse a chat timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings (a trailing 'Z' is allowed), datetimes and
    epoch seconds. Naive values are taken as UTC. Returns None when the
    value is missing or unreadable.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return UTC.localize(parsed)
    return parsed.astimezone(UTC)
