from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.core.config import LOCAL_TIMEZONE


def utcnow() -> datetime:
    """Clock dependency. Tests override it to pin "now"."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is stored as UTC
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def local_tz() -> ZoneInfo:
    return ZoneInfo(LOCAL_TIMEZONE)
