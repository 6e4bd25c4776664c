"""Whole-cent arithmetic helpers"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union


def divide_cents(amount_cents: int, divisor: Union[int, float]) -> int:
    """Divide an amount and round half-up to a whole cent"""
    quotient = Decimal(amount_cents) / Decimal(str(divisor))
    return int(quotient.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(amount_cents: int, percentage: float) -> int:
    """percentage% of an amount, rounded half-up to a whole cent"""
    share = Decimal(amount_cents) * Decimal(str(percentage)) / Decimal(100)
    return int(share.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
