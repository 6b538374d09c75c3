"""
Period Resolver

Computes the canonical date ranges used by the dashboard summary: today,
this week (Sunday start) and this month, all inclusive and relative to a
reference instant in that instant's own timezone.
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .datetime_utils import days_ago, local_now
from .models import DateRange


@dataclass(frozen=True)
class PeriodRanges:
    """The three dashboard periods"""
    today: DateRange
    week: DateRange
    month: DateRange


def _start_of_day(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def today_range(reference: datetime) -> DateRange:
    """Local midnight to 23:59:59 of the reference day"""
    start = _start_of_day(reference)
    end = start.replace(hour=23, minute=59, second=59)
    return DateRange.of(start, end)


def week_range(reference: datetime) -> DateRange:
    """Sunday 00:00:00 to Saturday 23:59:59.999 of the reference week"""
    # weekday(): Monday=0 .. Sunday=6, so days since Sunday is (weekday + 1) % 7
    days_since_sunday = (reference.weekday() + 1) % 7
    start = _start_of_day(reference) - timedelta(days=days_since_sunday)
    end = (start + timedelta(days=6)).replace(
        hour=23, minute=59, second=59, microsecond=999000
    )
    return DateRange.of(start, end)


def month_range(reference: datetime) -> DateRange:
    """First day 00:00:00 to last calendar day 23:59:59.999 of the reference month"""
    last_day = calendar.monthrange(reference.year, reference.month)[1]
    start = _start_of_day(reference).replace(day=1)
    end = start.replace(
        day=last_day, hour=23, minute=59, second=59, microsecond=999000
    )
    return DateRange.of(start, end)


def resolve_periods(reference: Optional[datetime] = None) -> PeriodRanges:
    """
    Resolve today, this week and this month for a reference instant.

    Args:
        reference: Instant to resolve against (defaults to local now).
            Naive datetimes are taken as UTC.

    Returns:
        PeriodRanges with normalized UTC ISO bounds
    """
    if reference is None:
        reference = local_now()
    return PeriodRanges(
        today=today_range(reference),
        week=week_range(reference),
        month=month_range(reference),
    )


def last_n_days(days: int, reference: Optional[datetime] = None) -> DateRange:
    """
    Trailing window ending at the reference instant.

    Args:
        days: Window length in days
        reference: End of the window (defaults to local now)

    Returns:
        DateRange from reference - days to reference
    """
    if reference is None:
        reference = local_now()
    return DateRange.of(days_ago(days, reference), reference)
