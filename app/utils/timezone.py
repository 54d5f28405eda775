"""
Timezone helpers. Event times are stored in UTC and shown in the event timezone.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from app.config import settings


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes (SQLite returns these) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_local(value: datetime) -> datetime:
    return ensure_aware(value).astimezone(ZoneInfo(settings.EVENT_TIMEZONE))


def format_event_date(value: datetime) -> str:
    """Czech style date, e.g. 7. 3. 2025"""
    local = to_local(value)
    return f"{local.day}. {local.month}. {local.year}"


def format_event_time_range(start: datetime, end: datetime) -> str:
    return f"{to_local(start):%H:%M} - {to_local(end):%H:%M}"


def is_past(value: datetime) -> bool:
    return ensure_aware(value) < utcnow()


def from_event_local(value: datetime) -> datetime:
    """Naive input (datetime-local form values) is wall time in the event timezone."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(settings.EVENT_TIMEZONE))
    return value.astimezone(timezone.utc)
