"""Calendar/clock strings used as leaderboard keys."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from quickplay.core.config import settings


def leaderboard_zone(tz_name: Optional[str] = None) -> ZoneInfo:
    return ZoneInfo(tz_name or settings.LEADERBOARD_TIMEZONE)


def parse_date_played(value) -> Optional[datetime]:
    """ISO-8601 string (or datetime) to an aware instant; None when it does not parse."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
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
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_date(moment: datetime, tz_name: Optional[str] = None) -> str:
    """Calendar date as M/D/YYYY, no zero padding."""
    local = moment.astimezone(leaderboard_zone(tz_name))
    return f"{local.month}/{local.day}/{local.year}"


def format_time(moment: datetime, tz_name: Optional[str] = None) -> str:
    """24-hour HH:MM:SS."""
    return moment.astimezone(leaderboard_zone(tz_name)).strftime("%H:%M:%S")


def format_day(day: date) -> str:
    return f"{day.month}/{day.day}/{day.year}"


def today(tz_name: Optional[str] = None, now: Optional[datetime] = None) -> date:
    moment = now or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(leaderboard_zone(tz_name)).date()
