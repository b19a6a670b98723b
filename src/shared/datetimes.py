"""Timezone helpers.

Timestamps are persisted as aware UTC values. Some backends (SQLite) hand back
naive values, so anything read from the database goes through ``as_utc``
before it is compared or serialised.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from src.core.config import settings


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def business_tz() -> ZoneInfo:
    return ZoneInfo(settings.default_timezone)


def as_utc(value: datetime) -> datetime:
    """Treat naive values as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_local(value: datetime) -> datetime:
    return as_utc(value).astimezone(business_tz())
