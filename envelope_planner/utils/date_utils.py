"""Date manipulation utilities"""

from calendar import monthrange
from datetime import date

from dateutil.relativedelta import relativedelta


def days_in_month(year: int, month: int) -> int:
    """Number of days in the given calendar month"""
    return monthrange(year, month)[1]


def clamp_date(year: int, month: int, day: int) -> date:
    """
    Build a date, normalising month overflow and clamping the day to the month length.

    clamp_date(2025, 2, 31) -> 2025-02-28
    clamp_date(2025, 13, 5) -> 2026-01-05
    """
    effective_year = year + (month - 1) // 12
    effective_month = (month - 1) % 12 + 1
    clamped_day = min(day, days_in_month(effective_year, effective_month))
    return date(effective_year, effective_month, clamped_day)


def add_months(anchor: date, months: int) -> date:
    """Calendar-month addition; Jan 31 + 1 month -> Feb 28/29"""
    return anchor + relativedelta(months=months)


def months_between(start: date, end: date) -> int:
    """Whole calendar-month distance between the month fields of two dates"""
    return (end.year - start.year) * 12 + (end.month - start.month)
