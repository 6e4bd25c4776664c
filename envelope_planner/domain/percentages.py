"""Percentage normalizer for splitting one contribution across several envelopes"""

import math
from typing import Dict, Iterable

from envelope_planner.domain.exceptions import InvalidInputError, UnknownEntryError
from envelope_planner.utils.money_utils import percent_of

TOTAL_PERCENT = 100.0


def _clamp(value: float) -> float:
    return min(max(value, 0.0), TOTAL_PERCENT)


def equal_split(ids: Iterable[str]) -> Dict[str, float]:
    """Initial allocation: every id gets the same share"""
    ids = list(ids)
    if not ids:
        return {}
    share = TOTAL_PERCENT / len(ids)
    return {entry_id: share for entry_id in ids}


def normalize(entries: Dict[str, float]) -> Dict[str, float]:
    """Rescale so the values sum to 100; an all-zero map is split equally"""
    if not entries:
        return {}
    total = sum(entries.values())
    if total <= 0:
        return equal_split(entries)
    factor = TOTAL_PERCENT / total
    return {entry_id: value * factor for entry_id, value in entries.items()}


def update_allocation(entries: Dict[str, float], changed_id: str, new_value: float) -> Dict[str, float]:
    """
    Set one entry and spread the opposite change evenly over the others.

    Requirements:
    - Result sums to 100 (within float tolerance) and every value stays in [0, 100]
    - Other entries are clamped during distribution, then everything is rescaled
    - A single entry is always 100
    - NaN or infinite values are rejected

    Example:
        {a: 40, b: 30, c: 30}, a -> 60  =>  {a: 60, b: 20, c: 20}

    Returns a new map; the input is not modified.
    """
    if changed_id not in entries:
        raise UnknownEntryError(f"Unknown allocation entry: {changed_id}")

    if not all(math.isfinite(value) for value in [new_value, *entries.values()]):
        raise InvalidInputError("Allocation percentages must be finite numbers")

    if len(entries) == 1:
        return {changed_id: TOTAL_PERCENT}

    new_value = _clamp(new_value)
    delta = new_value - entries[changed_id]

    updated = dict(entries)
    updated[changed_id] = new_value

    others = [entry_id for entry_id in entries if entry_id != changed_id]
    adjustment = -delta / len(others)
    for other_id in others:
        updated[other_id] = _clamp(updated[other_id] + adjustment)

    return normalize(updated)


def split_contribution(total_cents: int, entries: Dict[str, float]) -> Dict[str, int]:
    """
    Turn percentages into whole-cent contributions.

    Last entry absorbs the rounding remainder so the parts sum exactly to the total.

    Example:
        1000 cents at {a: 33.3, b: 33.3, c: 33.4} -> {a: 333, b: 333, c: 334}
    """
    if not entries:
        return {}
    if total_cents <= 0:
        return {entry_id: 0 for entry_id in entries}

    ids = list(entries)
    split: Dict[str, int] = {}
    for entry_id in ids[:-1]:
        split[entry_id] = percent_of(total_cents, entries[entry_id])

    # Last entry absorbs remainder to ensure exact total
    split[ids[-1]] = total_cents - sum(split.values())
    return split
