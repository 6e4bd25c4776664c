"""Allocation engine - per-payday contribution needed to fund a target by its due date"""

import logging
import math
from datetime import date
from typing import List, Optional

from envelope_planner.config import settings
from envelope_planner.domain.models import (
    AllocationPhase,
    AllocationResult,
    CashFlowSuggestion,
    Envelope,
    Frequency,
    PayDaySettings,
    PayFrequency,
    ScheduledPayment,
)
from envelope_planner.domain.pay_days import (
    count_pay_periods,
    monthly_anchor_day,
    resolve_next_pay_date,
    roll_forward,
)
from envelope_planner.utils.money_utils import divide_cents

logger = logging.getLogger(__name__)


def periods_per_cycle(pay_frequency: PayFrequency, bill_frequency: Frequency) -> int:
    """
    Pay periods that recur per bill cycle: ceil(bill interval / pay interval), at least 1.

    Monthly pay with a monthly bill -> 1; biweekly pay with a monthly bill -> 3.
    """
    pay_days = pay_frequency.frequency.interval_days
    if pay_days <= 0:
        return 1
    # Round away float noise (e.g. 2.0000000001) before taking the ceiling
    ratio = round(bill_frequency.interval_days / pay_days, 9)
    return max(1, math.ceil(ratio))


def recommend(
    starting_cents: int,
    target_cents: int,
    due_date: date,
    pay_frequency: PayFrequency,
    bill_frequency: Frequency,
    next_pay_date: Optional[date] = None,
    today: Optional[date] = None,
    pay_day_of_month: Optional[int] = None,
) -> AllocationResult:
    """
    Recommend the per-pay-period contribution for one target.

    Policy, in priority order:
    - gap <= 0: already funded, keep the maintenance rhythm target / periods_per_cycle
    - no pay period before the due date: the whole gap, as a lump sum
    - steady state (periods_until_due >= periods_per_cycle): target / periods_per_cycle
    - catch-up: gap / periods_until_due

    Pay periods are counted from next_pay_date (default: today) up to and including
    the due date. A next_pay_date already in the past is rolled forward first.
    """
    if today is None:
        today = date.today()
    first_pay_date = roll_forward(next_pay_date or today, today, pay_frequency, pay_day_of_month)

    gap = target_cents - starting_cents
    periods_until_due = count_pay_periods(first_pay_date, due_date, pay_frequency, pay_day_of_month)
    per_cycle = periods_per_cycle(pay_frequency, bill_frequency)
    is_in_steady_state = periods_until_due >= per_cycle
    maintenance = divide_cents(target_cents, per_cycle)

    if gap <= 0:
        phase = AllocationPhase.FUNDED
        recommended = maintenance
    elif periods_until_due <= 0:
        phase = AllocationPhase.OVERDUE
        recommended = gap
    elif is_in_steady_state:
        phase = AllocationPhase.STEADY_STATE
        recommended = maintenance
    else:
        phase = AllocationPhase.CATCH_UP
        recommended = divide_cents(gap, periods_until_due)

    logger.debug(
        "Allocation recommended",
        extra={
            "phase": phase.value,
            "gap_cents": gap,
            "periods_until_due": periods_until_due,
            "periods_per_cycle": per_cycle,
            "recommended_cents": recommended,
        },
    )

    return AllocationResult(
        recommended_cents=recommended,
        is_in_steady_state=is_in_steady_state,
        periods_until_due=periods_until_due,
        periods_per_cycle=per_cycle,
        gap_cents=gap,
        phase=phase,
    )


def is_significant_change(old_cents: int, new_cents: int, threshold_cents: Optional[int] = None) -> bool:
    """Changes below the threshold (default 1 cent) are treated as no change"""
    if threshold_cents is None:
        threshold_cents = settings.significance_threshold_cents
    return abs(new_cents - old_cents) >= threshold_cents


def recalculate_after_autopilot(
    envelope: Envelope,
    scheduled_payments: List[ScheduledPayment],
    pay_settings: PayDaySettings,
    today: Optional[date] = None,
) -> Optional[CashFlowSuggestion]:
    """
    Re-derive an envelope's cash flow after one of its autopilot bills has run.

    Uses the envelope balance left after the bill as the starting amount and the
    next automatic bill as the target. Returns a suggestion only when the change is
    significant; the envelope itself is never modified.
    """
    if today is None:
        today = date.today()

    if not envelope.cash_flow_enabled:
        logger.debug("Cash flow not enabled, skipping", extra={"envelope_id": envelope.id})
        return None

    autopilots = [p for p in scheduled_payments if p.envelope_id == envelope.id and p.is_automatic]
    if not autopilots:
        logger.debug("No autopilot payments", extra={"envelope_id": envelope.id})
        return None

    next_payment = min(autopilots, key=lambda p: p.next_due_date)
    result = recommend(
        starting_cents=envelope.current_cents,
        target_cents=next_payment.amount_cents,
        due_date=next_payment.next_due_date,
        pay_frequency=pay_settings.pay_frequency,
        bill_frequency=next_payment.frequency,
        next_pay_date=resolve_next_pay_date(pay_settings, today),
        today=today,
        pay_day_of_month=monthly_anchor_day(pay_settings),
    )

    old_cents = envelope.cash_flow_cents or 0
    if not is_significant_change(old_cents, result.recommended_cents):
        logger.debug("No significant change", extra={"envelope_id": envelope.id})
        return None

    logger.info(
        "Cash flow suggestion",
        extra={
            "envelope_id": envelope.id,
            "old_cents": old_cents,
            "suggested_cents": result.recommended_cents,
            "steady_state": result.is_in_steady_state,
        },
    )

    return CashFlowSuggestion(
        envelope_id=envelope.id,
        envelope_name=envelope.name,
        old_cents=old_cents,
        suggested_cents=result.recommended_cents,
        bill_cents=next_payment.amount_cents,
        periods_per_cycle=result.periods_per_cycle,
        is_in_steady_state=result.is_in_steady_state,
    )
