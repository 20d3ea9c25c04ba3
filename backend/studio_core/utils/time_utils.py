# backend/studio_core/utils/time_utils.py
"""
Calendar helpers shared by scheduling code.

Day-of-week values follow the stored convention 0 = Sunday ... 6 = Saturday,
which differs from ``date.weekday()`` (0 = Monday).
"""

from datetime import date, datetime, timezone


def sunday_based_weekday(day: date) -> int:
    """Return 0 for Sunday through 6 for Saturday."""
    return (day.weekday() + 1) % 7


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Tag naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
