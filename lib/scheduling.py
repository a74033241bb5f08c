# =============================================================================
# lib/scheduling.py - Schedule Arithmetic
# =============================================================================
# Date math for user scheduled tasks and notification quiet hours.
#
# Schedules are stored as wall-clock fields (hour, minute, optional day) plus
# an IANA timezone. Times are computed in that timezone and returned in UTC.
#
# Day numbering follows the web client: for weekly/biweekly schedules
# `schedule_day` is 0=Sunday .. 6=Saturday; for monthly it's the day of month.
#
# Usage:
#   from lib.scheduling import first_run_at, advance_run_at
#   next_run = first_run_at("weekly", 9, 0, 1, "America/Chicago", now)
# =============================================================================

from __future__ import annotations

import calendar
import logging
from datetime import datetime, time, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "America/New_York"

FREQUENCIES = ("once", "daily", "weekly", "biweekly", "monthly")


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Look up an IANA zone, falling back to America/New_York for unknown names."""
    try:
        return ZoneInfo(name or DEFAULT_TIMEZONE)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {name!r}, using {DEFAULT_TIMEZONE}")
        return ZoneInfo(DEFAULT_TIMEZONE)


def _js_weekday(value: datetime) -> int:
    """Weekday with Sunday=0, as stored by the client."""
    return (value.weekday() + 1) % 7


def _with_month_day(value: datetime, year: int, month: int, day: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return value.replace(year=year, month=month, day=min(max(day, 1), last_day))


def _add_months(value: datetime, months: int, day: int | None = None) -> datetime:
    index = value.month - 1 + months
    year, month = value.year + index // 12, index % 12 + 1
    return _with_month_day(value, year, month, day or value.day)


def first_run_at(
    frequency: str,
    schedule_hour: int,
    schedule_minute: int,
    schedule_day: int | None,
    timezone_name: str | None,
    now: datetime,
) -> datetime:
    """
    Compute the first run of a newly created task.

    - once/daily: today at the scheduled time, or tomorrow if already past
    - weekly/biweekly: the next `schedule_day` (default Monday); if that is
      today and the time has passed, 7 (weekly) or 14 (biweekly) days later
    - monthly: `schedule_day` (default 1st) of this month, else next month

    Returns:
        Aware UTC datetime
    """
    tz = resolve_timezone(timezone_name)
    local_now = now.astimezone(tz)
    candidate = datetime.combine(local_now.date(), time(schedule_hour, schedule_minute), tzinfo=tz)

    if frequency in ("once", "daily"):
        if candidate <= local_now:
            candidate += timedelta(days=1)

    elif frequency in ("weekly", "biweekly"):
        target_day = schedule_day if schedule_day is not None else 1
        days_until = (target_day - _js_weekday(candidate)) % 7
        if days_until == 0 and candidate <= local_now:
            days_until = 7 if frequency == "weekly" else 14
        candidate += timedelta(days=days_until)

    elif frequency == "monthly":
        target_day = schedule_day if schedule_day is not None else 1
        candidate = _with_month_day(candidate, candidate.year, candidate.month, target_day)
        if candidate <= local_now:
            candidate = _add_months(candidate, 1, target_day)

    return candidate.astimezone(timezone.utc)


def advance_run_at(
    frequency: str,
    schedule_hour: int,
    schedule_minute: int,
    schedule_day: int | None,
    timezone_name: str | None,
    from_date: datetime,
    not_before: datetime | None = None,
) -> datetime | None:
    """
    Compute the run after the one that just happened.

    Takes the scheduled time on the day of `from_date` (in the task's
    timezone) and moves it one period forward. One-time tasks have no
    next run.

    A task picked up early can still be on the previous local day, which
    would hand back the run that just executed. With `not_before`, the
    result keeps moving forward a period at a time until it is later.

    Returns:
        Aware UTC datetime, or None for "once"
    """
    if frequency == "once":
        return None

    tz = resolve_timezone(timezone_name)
    local = from_date.astimezone(tz)
    next_run = datetime.combine(local.date(), time(schedule_hour, schedule_minute), tzinfo=tz)

    def _step(value: datetime) -> datetime:
        if frequency == "daily":
            return value + timedelta(days=1)
        if frequency == "weekly":
            return value + timedelta(days=7)
        if frequency == "biweekly":
            return value + timedelta(days=14)
        if frequency == "monthly":
            return _add_months(value, 1, schedule_day or None)
        return value

    next_run = _step(next_run)
    if not_before is not None and frequency in FREQUENCIES:
        while next_run <= not_before:
            next_run = _step(next_run)

    return next_run.astimezone(timezone.utc)


# =============================================================================
# Quiet Hours
# =============================================================================

def _minutes(value: str) -> int:
    hour, minute = value.split(":")[:2]
    return int(hour) * 60 + int(minute)


def is_within_quiet_hours(preferences: dict[str, Any], now: datetime | None = None) -> bool:
    """
    Check whether notifications should be held back right now.

    Quiet hours are "HH:MM" bounds in the user's timezone; start is
    inclusive, end exclusive, and a start later than the end wraps past
    midnight (e.g. 22:00-07:00). Malformed settings never block delivery.
    """
    if not preferences.get("quiet_hours_enabled"):
        return False

    try:
        tz = resolve_timezone(preferences.get("quiet_hours_timezone"))
        local = (now or datetime.now(timezone.utc)).astimezone(tz)
        current = local.hour * 60 + local.minute

        start = _minutes(preferences["quiet_hours_start"])
        end = _minutes(preferences["quiet_hours_end"])

        if start <= end:
            return start <= current < end
        return current >= start or current < end

    except (KeyError, ValueError, TypeError, AttributeError) as e:
        logger.error(f"Error checking quiet hours: {e}")
        return False
