"""Pay-day scheduler - income dates derived from pay-day settings"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from envelope_planner.config import settings as app_settings
from envelope_planner.domain.models import PayDaySettings, PayFrequency
from envelope_planner.utils.date_utils import add_months, clamp_date

logger = logging.getLogger(__name__)

FIXED_INTERVAL_DAYS = {
    PayFrequency.WEEKLY: 7,
    PayFrequency.BIWEEKLY: 14,
    PayFrequency.FOURWEEKLY: 28,
}


def next_pay_date_after(
    current: date,
    pay_frequency: PayFrequency,
    pay_day_of_month: Optional[int] = None,
) -> date:
    """One pay step forward. Monthly steps re-anchor on pay_day_of_month when given."""
    if pay_frequency == PayFrequency.MONTHLY:
        if pay_day_of_month is not None:
            return clamp_date(current.year, current.month + 1, pay_day_of_month)
        return add_months(current, 1)
    return current + timedelta(days=FIXED_INTERVAL_DAYS[pay_frequency])


def monthly_anchor_day(pay_settings: PayDaySettings) -> Optional[int]:
    """Day-of-month that monthly pay dates are pinned to"""
    if pay_settings.pay_day_of_month is not None:
        return pay_settings.pay_day_of_month
    if pay_settings.next_pay_date is not None:
        return pay_settings.next_pay_date.day
    if pay_settings.last_pay_date is not None:
        return pay_settings.last_pay_date.day
    return None


def _first_monthly_on_or_after(minimum: date, day: int) -> date:
    candidate = clamp_date(minimum.year, minimum.month, day)
    if candidate < minimum:
        candidate = clamp_date(minimum.year, minimum.month + 1, day)
    return candidate


def _roll_forward_fixed(current: date, minimum: date, interval_days: int) -> date:
    if current >= minimum:
        return current
    intervals = ((minimum - current).days + interval_days - 1) // interval_days
    return current + timedelta(days=interval_days * intervals)


def roll_forward(
    current: date,
    minimum: date,
    pay_frequency: PayFrequency,
    pay_day_of_month: Optional[int] = None,
) -> date:
    """First pay date on or after minimum in the schedule that current belongs to"""
    if current >= minimum:
        return current
    if pay_frequency == PayFrequency.MONTHLY:
        day = pay_day_of_month if pay_day_of_month is not None else current.day
        return _first_monthly_on_or_after(minimum, day)
    return _roll_forward_fixed(current, minimum, FIXED_INTERVAL_DAYS[pay_frequency])


def _resolve_anchor(pay_settings: PayDaySettings, pay_frequency: PayFrequency, range_start: date) -> date:
    """
    First pay date on or after range_start.

    Resolution order:
    1. next_pay_date when it is not stale
    2. stale next_pay_date rolled forward
    3. last_pay_date + one step, rolled forward
    4. no reference: first occurrence in the current period
    """
    if pay_frequency == PayFrequency.MONTHLY:
        day = monthly_anchor_day(pay_settings) or range_start.day

        if pay_settings.next_pay_date is not None:
            if pay_settings.next_pay_date >= range_start:
                return pay_settings.next_pay_date
            return _first_monthly_on_or_after(range_start, day)

        if pay_settings.last_pay_date is not None:
            last = pay_settings.last_pay_date
            candidate = clamp_date(last.year, last.month, day)
            if candidate <= last:
                candidate = clamp_date(last.year, last.month + 1, day)
            if candidate < range_start:
                return _first_monthly_on_or_after(range_start, day)
            return candidate

        return _first_monthly_on_or_after(range_start, day)

    interval = FIXED_INTERVAL_DAYS[pay_frequency]
    if pay_settings.next_pay_date is not None:
        current = pay_settings.next_pay_date
    elif pay_settings.last_pay_date is not None:
        current = pay_settings.last_pay_date + timedelta(days=interval)
    else:
        return range_start

    return _roll_forward_fixed(current, range_start, interval)


def resolve_next_pay_date(
    pay_settings: PayDaySettings,
    today: date,
    pay_frequency: Optional[PayFrequency] = None,
) -> date:
    """The next pay date on or after today"""
    return _resolve_anchor(pay_settings, pay_frequency or pay_settings.pay_frequency, today)


def pay_days_between(
    pay_settings: PayDaySettings,
    range_start: date,
    range_end: date,
    pay_frequency: Optional[PayFrequency] = None,
    max_iterations: Optional[int] = None,
) -> List[date]:
    """
    Strictly increasing pay dates inside [range_start, range_end].

    pay_frequency overrides the configured frequency (what-if scenarios).
    """
    if max_iterations is None:
        max_iterations = app_settings.max_recurrence_iterations

    if range_start > range_end:
        return []

    frequency = pay_frequency or pay_settings.pay_frequency
    day = monthly_anchor_day(pay_settings) or range_start.day
    current = _resolve_anchor(pay_settings, frequency, range_start)

    pay_days: List[date] = []
    for _ in range(max_iterations):
        if current > range_end:
            return pay_days
        pay_days.append(current)
        current = next_pay_date_after(current, frequency, day)

    logger.warning(
        "Pay-day iteration cap reached",
        extra={"pay_frequency": frequency.value, "max_iterations": max_iterations},
    )
    return pay_days


def count_pay_periods(
    first_pay_date: date,
    due_date: date,
    pay_frequency: PayFrequency,
    pay_day_of_month: Optional[int] = None,
    max_iterations: Optional[int] = None,
) -> int:
    """
    Number of pay dates in [first_pay_date, due_date].

    A pay date falling on the due date counts: payday is processed before the bill.
    """
    if max_iterations is None:
        max_iterations = app_settings.max_recurrence_iterations

    if due_date < first_pay_date:
        return 0

    day = pay_day_of_month if pay_day_of_month is not None else first_pay_date.day
    periods = 0
    current = first_pay_date

    while current <= due_date:
        periods += 1
        if periods >= max_iterations:
            logger.warning(
                "Pay-period count capped",
                extra={"due_date": due_date.isoformat(), "max_iterations": max_iterations},
            )
            break
        current = next_pay_date_after(current, pay_frequency, day)

    return periods


def projected_date(
    start: date,
    periods: int,
    pay_frequency: PayFrequency,
    pay_day_of_month: Optional[int] = None,
) -> date:
    """Date reached after stepping `periods` pay periods from start"""
    day = pay_day_of_month if pay_day_of_month is not None else start.day
    projected = start
    for _ in range(min(max(periods, 0), app_settings.max_recurrence_iterations)):
        projected = next_pay_date_after(projected, pay_frequency, day)
    return projected
