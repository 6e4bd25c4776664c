"""Recurrence calculator - occurrence dates for fixed-interval and calendar schedules"""

import logging
from datetime import date, timedelta
from typing import List, Optional

from envelope_planner.config import settings
from envelope_planner.domain.models import Frequency, FrequencyUnit, TemporaryItem
from envelope_planner.utils.date_utils import add_months, months_between

logger = logging.getLogger(__name__)


def nth_occurrence(anchor: date, value: int, unit: FrequencyUnit, n: int) -> date:
    """
    Date of the n-th occurrence counted from the anchor (n=0 is the anchor).

    Days/weeks add a flat duration. Months/years step the calendar fields from the
    anchor and clamp the day to the target month, so a Jan 31 anchor yields
    Feb 28, Mar 31, Apr 30 without drifting.
    """
    if unit == FrequencyUnit.DAYS:
        return anchor + timedelta(days=value * n)
    if unit == FrequencyUnit.WEEKS:
        return anchor + timedelta(weeks=value * n)
    if unit == FrequencyUnit.MONTHS:
        return add_months(anchor, value * n)
    return add_months(anchor, 12 * value * n)


def next_occurrence(current: date, frequency: Frequency) -> date:
    return nth_occurrence(current, frequency.value, frequency.unit, 1)


def _first_index_on_or_after(anchor: date, value: int, unit: FrequencyUnit, minimum: date) -> int:
    """Smallest n with nth_occurrence(anchor, ...) >= minimum, computed without walking from the anchor"""
    if anchor >= minimum:
        return 0

    if unit in (FrequencyUnit.DAYS, FrequencyUnit.WEEKS):
        interval = value if unit == FrequencyUnit.DAYS else value * 7
        days_between = (minimum - anchor).days
        return (days_between + interval - 1) // interval

    step_months = value if unit == FrequencyUnit.MONTHS else value * 12
    n = max(0, months_between(anchor, minimum) // step_months - 1)
    while nth_occurrence(anchor, value, unit, n) < minimum:
        n += 1
    return n


def occurrences_between(
    anchor: date,
    value: int,
    unit: FrequencyUnit,
    range_start: date,
    range_end: date,
    max_iterations: Optional[int] = None,
) -> List[date]:
    """
    Ordered occurrence dates of a schedule inside [range_start, range_end].

    Pure function of its inputs. Returns an empty list when the anchor is past the
    range end or the frequency value is not positive. At most max_iterations dates
    are produced (default: settings.max_recurrence_iterations).
    """
    if max_iterations is None:
        max_iterations = settings.max_recurrence_iterations

    if value <= 0:
        logger.warning(
            "Ignoring schedule with non-positive frequency",
            extra={"frequency_value": value, "frequency_unit": unit.value},
        )
        return []

    if anchor > range_end or range_start > range_end:
        return []

    n = _first_index_on_or_after(anchor, value, unit, range_start)
    occurrences: List[date] = []

    for _ in range(max_iterations):
        current = nth_occurrence(anchor, value, unit, n)
        if current > range_end:
            return occurrences
        occurrences.append(current)
        n += 1

    logger.warning(
        "Recurrence iteration cap reached",
        extra={"anchor": anchor.isoformat(), "max_iterations": max_iterations},
    )
    return occurrences


def frequency_occurrences_between(
    anchor: date,
    frequency: Frequency,
    range_start: date,
    range_end: date,
    max_iterations: Optional[int] = None,
) -> List[date]:
    return occurrences_between(
        anchor, frequency.value, frequency.unit, range_start, range_end, max_iterations
    )


def temporary_occurrences_between(item: TemporaryItem, range_start: date, range_end: date) -> List[date]:
    """Occurrences of a what-if income/expense item, honoring its optional end date"""
    if item.is_one_time:
        if range_start <= item.start_date <= range_end:
            return [item.start_date]
        return []

    end = range_end if item.end_date is None else min(range_end, item.end_date)
    return frequency_occurrences_between(item.start_date, item.frequency, range_start, end)
