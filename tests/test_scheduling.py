# =============================================================================
# tests/test_scheduling.py - Schedule Arithmetic Tests
# =============================================================================
# This module contains tests for:
# - First run of a new scheduled task
# - Advancing a task after it ran (including month-end and DST)
# - Notification quiet hours
#
# All times are checked in UTC; schedules are America/New_York unless noted.
#
# Run with: pytest tests/test_scheduling.py -v
# =============================================================================

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from lib.scheduling import (
    DEFAULT_TIMEZONE,
    advance_run_at,
    first_run_at,
    is_within_quiet_hours,
    resolve_timezone,
)

NY = "America/New_York"


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# Timezones
# =============================================================================

class TestResolveTimezone:
    """Test IANA zone lookup and fallback."""

    def test_known_zone(self):
        assert resolve_timezone("America/Chicago") == ZoneInfo("America/Chicago")

    @pytest.mark.parametrize("name", [None, "", "Mars/Olympus_Mons"])
    def test_fallback(self, name):
        assert resolve_timezone(name) == ZoneInfo(DEFAULT_TIMEZONE)


# =============================================================================
# First Run
# =============================================================================

class TestFirstRunAt:
    """Test first_run_at for each frequency."""

    def test_daily_later_today(self):
        # 08:00 EST on Monday 2025-03-03
        now = utc(2025, 3, 3, 13, 0)

        assert first_run_at("daily", 9, 0, None, NY, now) == utc(2025, 3, 3, 14, 0)

    def test_daily_already_passed_moves_to_tomorrow(self):
        now = utc(2025, 3, 3, 15, 0)

        assert first_run_at("daily", 9, 0, None, NY, now) == utc(2025, 3, 4, 14, 0)

    def test_once_behaves_like_daily(self):
        now = utc(2025, 3, 3, 15, 0)

        assert first_run_at("once", 9, 30, None, NY, now) == utc(2025, 3, 4, 14, 30)

    def test_weekly_next_weekday(self):
        """Friday (5) from a Monday is four days out."""
        now = utc(2025, 3, 3, 15, 0)

        assert first_run_at("weekly", 9, 0, 5, NY, now) == utc(2025, 3, 7, 14, 0)

    def test_weekly_same_day_passed_crosses_dst(self):
        # Next Monday is after the March 9 switch to EDT (UTC-4)
        now = utc(2025, 3, 3, 15, 0)

        assert first_run_at("weekly", 9, 0, 1, NY, now) == utc(2025, 3, 10, 13, 0)

    def test_weekly_defaults_to_monday(self):
        now = utc(2025, 3, 5, 15, 0)  # Wednesday

        assert first_run_at("weekly", 9, 0, None, NY, now) == utc(2025, 3, 10, 13, 0)

    def test_biweekly_same_day_passed_skips_two_weeks(self):
        now = utc(2025, 3, 3, 15, 0)

        assert first_run_at("biweekly", 9, 0, 1, NY, now) == utc(2025, 3, 17, 13, 0)

    def test_monthly_day_clamped_to_month_end(self):
        now = utc(2025, 2, 10, 15, 0)

        assert first_run_at("monthly", 9, 0, 31, NY, now) == utc(2025, 2, 28, 14, 0)

    def test_monthly_passed_moves_to_next_month(self):
        now = utc(2025, 3, 3, 15, 0)

        assert first_run_at("monthly", 9, 0, 1, NY, now) == utc(2025, 4, 1, 13, 0)

    def test_other_timezone(self):
        # 08:00 in Tokyo (UTC+9) is 23:00 UTC the day before
        now = utc(2025, 3, 3, 0, 0)  # 09:00 Tokyo, already past 08:00

        assert first_run_at("daily", 8, 0, None, "Asia/Tokyo", now) == utc(2025, 3, 3, 23, 0)

    def test_result_is_utc(self):
        result = first_run_at("daily", 9, 0, None, NY, utc(2025, 3, 3, 13, 0))

        assert result.tzinfo == timezone.utc


# =============================================================================
# Advance
# =============================================================================

class TestAdvanceRunAt:
    """Test advance_run_at after an execution."""

    def test_once_has_no_next_run(self):
        assert advance_run_at("once", 9, 0, None, NY, utc(2025, 3, 3, 14, 0)) is None

    def test_daily(self):
        assert advance_run_at("daily", 9, 0, None, NY, utc(2025, 3, 3, 14, 5)) == utc(2025, 3, 4, 14, 0)

    def test_weekly_across_dst(self):
        assert advance_run_at("weekly", 9, 0, 3, NY, utc(2025, 3, 5, 14, 1)) == utc(2025, 3, 12, 13, 0)

    def test_biweekly(self):
        assert advance_run_at("biweekly", 9, 0, 1, NY, utc(2025, 4, 7, 13, 0)) == utc(2025, 4, 21, 13, 0)

    def test_monthly_clamps_to_short_month(self):
        assert advance_run_at("monthly", 9, 0, 31, NY, utc(2025, 1, 31, 14, 0)) == utc(2025, 2, 28, 14, 0)

    def test_monthly_restores_scheduled_day(self):
        """After a clamped February run, March runs on the 31st again."""
        assert advance_run_at("monthly", 9, 0, 31, NY, utc(2025, 2, 28, 14, 0)) == utc(2025, 3, 31, 13, 0)

    def test_uses_scheduled_time_not_execution_time(self):
        # Ran late, at 09:47 local
        assert advance_run_at("daily", 9, 0, None, NY, utc(2025, 3, 3, 14, 47)) == utc(2025, 3, 4, 14, 0)

    def test_early_pickup_on_previous_day(self):
        """A midnight task picked up at 23:58:30 local must not get the same run back."""
        picked_up = utc(2026, 3, 10, 3, 58, 30)

        assert advance_run_at(
            "daily", 0, 0, None, NY, picked_up,
            not_before=picked_up + timedelta(minutes=2),
        ) == utc(2026, 3, 11, 4, 0)

    def test_not_before_leaves_later_runs_alone(self):
        ran_at = utc(2025, 3, 3, 14, 5)

        assert advance_run_at(
            "weekly", 9, 0, 1, NY, ran_at, not_before=ran_at + timedelta(minutes=2),
        ) == utc(2025, 3, 10, 13, 0)


# =============================================================================
# Quiet Hours
# =============================================================================

class TestQuietHours:
    """Test is_within_quiet_hours."""

    @pytest.fixture
    def overnight(self):
        return {
            "quiet_hours_enabled": True,
            "quiet_hours_start": "22:00",
            "quiet_hours_end": "07:00",
            "quiet_hours_timezone": NY,
        }

    def test_disabled(self, overnight):
        overnight["quiet_hours_enabled"] = False

        assert is_within_quiet_hours(overnight, utc(2025, 3, 3, 4, 0)) is False

    def test_overnight_window_before_midnight(self, overnight):
        # 23:00 local
        assert is_within_quiet_hours(overnight, utc(2025, 3, 3, 4, 0)) is True

    def test_overnight_window_after_midnight(self, overnight):
        # 06:59 local
        assert is_within_quiet_hours(overnight, utc(2025, 3, 3, 11, 59)) is True

    def test_overnight_window_end_is_exclusive(self, overnight):
        # 07:00 local
        assert is_within_quiet_hours(overnight, utc(2025, 3, 3, 12, 0)) is False

    def test_same_day_window(self):
        prefs = {
            "quiet_hours_enabled": True,
            "quiet_hours_start": "12:00",
            "quiet_hours_end": "14:00",
            "quiet_hours_timezone": NY,
        }

        assert is_within_quiet_hours(prefs, utc(2025, 3, 3, 17, 0)) is True
        assert is_within_quiet_hours(prefs, utc(2025, 3, 3, 19, 0)) is False

    def test_seconds_in_bounds_are_ignored(self, overnight):
        overnight["quiet_hours_start"] = "22:00:00"

        assert is_within_quiet_hours(overnight, utc(2025, 3, 3, 4, 0)) is True

    def test_malformed_bounds_never_block(self, overnight):
        overnight["quiet_hours_start"] = "noon"

        assert is_within_quiet_hours(overnight, utc(2025, 3, 3, 4, 0)) is False

    def test_missing_bounds_never_block(self):
        prefs = {"quiet_hours_enabled": True}

        assert is_within_quiet_hours(prefs, utc(2025, 3, 3, 4, 0)) is False
