"""
Tests for ClockService.

Tests cover:
1. UTC date keys independent of host timezone
2. Whole-second elapsed time and ceil remaining time
3. HH:MM:SS formatting
"""
from datetime import datetime, timedelta, timezone

from cloudvps.services.clock_service import ClockService


class TestUtcDateKey:
    """Tests for utc_date_key function"""

    def test_formats_as_iso_date(self):
        """Should format the date key as YYYY-MM-DD"""
        service = ClockService()
        at = datetime(2026, 1, 5, 12, 0, 0, tzinfo=timezone.utc)

        assert service.utc_date_key(at) == "2026-01-05"

    def test_uses_utc_not_local_offset(self):
        """23:30 at UTC-05:00 is already the next day in UTC"""
        service = ClockService()
        at = datetime(2026, 1, 30, 23, 30, 0, tzinfo=timezone(timedelta(hours=-5)))

        assert service.utc_date_key(at) == "2026-01-31"

    def test_naive_datetime_treated_as_utc(self):
        """Should treat a naive datetime as UTC"""
        service = ClockService()

        assert service.utc_date_key(datetime(2026, 12, 31, 23, 59, 59)) == "2026-12-31"

    def test_keys_sort_with_dates(self):
        """Should sort date keys in calendar order"""
        service = ClockService()
        earlier = service.utc_date_key(datetime(2026, 9, 30, tzinfo=timezone.utc))
        later = service.utc_date_key(datetime(2026, 10, 1, tzinfo=timezone.utc))

        assert earlier < later

    def test_now_is_timezone_aware(self):
        """Should return an aware UTC datetime"""
        assert ClockService().now().tzinfo is not None


class TestElapsedAndRemaining:
    """Tests for elapsed_whole_seconds and seconds_until"""

    def test_elapsed_floors_fraction(self):
        """Should drop the fractional second"""
        start = datetime(2026, 1, 30, 10, 0, 0, tzinfo=timezone.utc)

        assert ClockService.elapsed_whole_seconds(start, start + timedelta(seconds=2.9)) == 2

    def test_elapsed_negative_when_clock_went_back(self):
        """Should return a negative value when the clock went back"""
        start = datetime(2026, 1, 30, 10, 0, 0, tzinfo=timezone.utc)

        assert ClockService.elapsed_whole_seconds(start, start - timedelta(seconds=0.5)) == -1

    def test_seconds_until_rounds_up(self):
        """Should round partial seconds up"""
        now = datetime(2026, 1, 30, 10, 0, 0, tzinfo=timezone.utc)

        assert ClockService.seconds_until(now + timedelta(seconds=24.2), now) == 25

    def test_seconds_until_past_or_missing_is_zero(self):
        """Should return zero for a past or missing deadline"""
        now = datetime(2026, 1, 30, 10, 0, 0, tzinfo=timezone.utc)

        assert ClockService.seconds_until(now - timedelta(seconds=5), now) == 0
        assert ClockService.seconds_until(None, now) == 0


class TestFormatHHMMSS:
    """Tests for format_hhmmss function"""

    def test_six_hours(self):
        """Should format six hours"""
        assert ClockService.format_hhmmss(21600) == "06:00:00"

    def test_mixed_components(self):
        """Should zero-pad every component"""
        assert ClockService.format_hhmmss(3725) == "01:02:05"

    def test_negative_clamped_to_zero(self):
        """Should clamp negative values to zero"""
        assert ClockService.format_hhmmss(-10) == "00:00:00"

    def test_more_than_a_day(self):
        """Should let hours exceed 24"""
        assert ClockService.format_hhmmss(90000) == "25:00:00"
