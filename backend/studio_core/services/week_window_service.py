# backend/studio_core/services/week_window_service.py
"""
Studio-local calendar windows.

Boundaries are computed from local wall-clock dates and converted to UTC
separately, so a week containing a DST change is 167 or 169 hours long
rather than a fixed 168.
"""

from datetime import datetime, time, timedelta
import logging
from typing import Tuple

from ..models.studio import Studio
from ..utils.time_utils import sunday_based_weekday
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

Window = Tuple[datetime, datetime]


class WeekWindowService:
    @staticmethod
    def get_week_window_utc(studio: Studio, instant_utc: datetime) -> Window:
        """
        Return ``[week_start_utc, week_end_utc)`` of the studio week containing
        ``instant_utc``. The week starts at local midnight on
        ``studio.week_starts_on`` (0 = Sunday ... 6 = Saturday).
        """
        local_date = TimezoneService.local_date_of(instant_utc, studio.timezone)
        diff = (7 + (sunday_based_weekday(local_date) - studio.week_starts_on)) % 7
        week_start_local = local_date - timedelta(days=diff)
        week_end_local = week_start_local + timedelta(days=7)
        return (
            TimezoneService.local_to_utc(week_start_local, time.min, studio.timezone),
            TimezoneService.local_to_utc(week_end_local, time.min, studio.timezone),
        )

    @staticmethod
    def get_day_window_utc(studio: Studio, instant_utc: datetime) -> Window:
        """Local midnight to next local midnight of the instant's studio-local date, in UTC."""
        local_date = TimezoneService.local_date_of(instant_utc, studio.timezone)
        return (
            TimezoneService.local_to_utc(local_date, time.min, studio.timezone),
            TimezoneService.local_to_utc(local_date + timedelta(days=1), time.min, studio.timezone),
        )
