"""
Centralized timezone handling for studio calendars.

Rules:
- All storage and comparisons: UTC
- Wall-clock values (series start time, week/day boundaries): the studio's IANA zone
- Unknown zone ids fall back to ``settings.default_timezone``

DST policy for converting local wall-clock values to UTC:
- Non-existent local times (spring-forward gap) use the offset in force
  before the transition, which moves them forward by the size of the gap
  (02:30 in a 02:00 -> 03:00 gap becomes 03:30 local).
- Ambiguous local times (fall-back overlap) resolve to the earlier instant,
  the first (daylight-time) occurrence.
"""

from datetime import date, datetime, time, timezone
import logging
from typing import Optional

import pytz

from ..core.config import settings

logger = logging.getLogger(__name__)


class TimezoneService:
    """Handles all timezone conversions consistently."""

    @staticmethod
    def get_timezone(tz_str: Optional[str]) -> pytz.BaseTzInfo:
        """Get timezone object, with fallback to the configured default."""
        if tz_str:
            try:
                return pytz.timezone(tz_str)
            except pytz.UnknownTimeZoneError:
                logger.warning(
                    "Unknown time zone id, using default",
                    extra={"timezone": tz_str, "default_timezone": settings.default_timezone},
                )
        return pytz.timezone(settings.default_timezone)

    @staticmethod
    def localize(naive_local: datetime, timezone_str: Optional[str]) -> datetime:
        """Attach the zone to a naive wall-clock datetime using the DST policy above."""
        tz = TimezoneService.get_timezone(timezone_str)
        try:
            return tz.localize(naive_local, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            return tz.localize(naive_local, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            # Pre-transition offset, then normalize onto the post-transition wall clock
            return tz.normalize(tz.localize(naive_local, is_dst=False))

    @staticmethod
    def local_to_utc(local_date: date, local_time: time, timezone_str: Optional[str]) -> datetime:
        """
        Convert a local date/time to an aware UTC datetime.

        Uses the zone rules valid on ``local_date`` (not today).
        """
        naive_dt = datetime.combine(local_date, local_time)
        return TimezoneService.localize(naive_dt, timezone_str).astimezone(timezone.utc)

    @staticmethod
    def naive_local_to_utc(naive_local: datetime, timezone_str: Optional[str]) -> datetime:
        return TimezoneService.localize(naive_local, timezone_str).astimezone(timezone.utc)

    @staticmethod
    def utc_to_local(utc_dt: datetime, timezone_str: Optional[str]) -> datetime:
        """Convert a UTC datetime to the zone's local time (aware)."""
        if utc_dt.tzinfo is None:
            utc_dt = utc_dt.replace(tzinfo=timezone.utc)
        tz = TimezoneService.get_timezone(timezone_str)
        return utc_dt.astimezone(tz)

    @staticmethod
    def local_date_of(utc_dt: datetime, timezone_str: Optional[str]) -> date:
        return TimezoneService.utc_to_local(utc_dt, timezone_str).date()

    @staticmethod
    def is_valid_timezone(tz_str: str) -> bool:
        return tz_str in pytz.all_timezones_set
