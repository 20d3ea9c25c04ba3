"""
Time zone conversion tests, including both DST transitions in
America/New_York for 2024.
"""

from datetime import date, datetime, time, timezone
import logging

import pytest

from studio_core.services.timezone_service import TimezoneService


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class TestLocalToUtc:
    def test_fixed_winter_offset(self):
        assert TimezoneService.local_to_utc(
            date(2024, 1, 2), time(18, 0), "Asia/Jerusalem"
        ) == utc(2024, 1, 2, 16, 0)

    def test_uses_rules_of_the_local_date_not_today(self):
        # Jerusalem is UTC+3 in summer
        assert TimezoneService.local_to_utc(
            date(2024, 7, 2), time(18, 0), "Asia/Jerusalem"
        ) == utc(2024, 7, 2, 15, 0)

    def test_spring_forward_gap_moves_forward(self):
        # 02:30 does not exist on 2024-03-10; it is read with the EST offset
        result = TimezoneService.local_to_utc(date(2024, 3, 10), time(2, 30), "America/New_York")
        assert result == utc(2024, 3, 10, 7, 30)
        local = TimezoneService.utc_to_local(result, "America/New_York")
        assert (local.hour, local.minute) == (3, 30)

    def test_fall_back_ambiguity_resolves_to_earlier_instant(self):
        # 01:30 happens twice on 2024-11-03; the EDT occurrence comes first
        result = TimezoneService.local_to_utc(date(2024, 11, 3), time(1, 30), "America/New_York")
        assert result == utc(2024, 11, 3, 5, 30)

    def test_result_is_aware_utc(self):
        result = TimezoneService.local_to_utc(date(2024, 1, 1), time(9, 0), "Europe/London")
        assert result.tzinfo is not None
        assert result.utcoffset().total_seconds() == 0


class TestZoneResolution:
    def test_unknown_zone_falls_back_to_default(self, caplog: pytest.LogCaptureFixture):
        with caplog.at_level(logging.WARNING):
            result = TimezoneService.local_to_utc(date(2024, 1, 1), time(10, 0), "Mars/Olympus")
        # settings.default_timezone is UTC
        assert result == utc(2024, 1, 1, 10, 0)
        assert any("Unknown time zone" in r.getMessage() for r in caplog.records)

    def test_missing_zone_uses_default(self):
        assert TimezoneService.get_timezone(None).zone == "UTC"

    def test_is_valid_timezone(self):
        assert TimezoneService.is_valid_timezone("Asia/Jerusalem")
        assert not TimezoneService.is_valid_timezone("Mars/Olympus")


class TestUtcToLocal:
    def test_local_date_crosses_midnight(self):
        assert TimezoneService.local_date_of(utc(2024, 1, 1, 23, 30), "Asia/Jerusalem") == date(
            2024, 1, 2
        )

    def test_naive_input_is_treated_as_utc(self):
        local = TimezoneService.utc_to_local(datetime(2024, 1, 1, 12, 0), "Asia/Jerusalem")
        assert local.hour == 14
