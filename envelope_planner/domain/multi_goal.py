"""Multi-goal allocator - one cash-flow figure for an envelope with a horizon and an autopilot"""

import logging
import math
from datetime import date, timedelta
from typing import Optional, Tuple

from envelope_planner.config import settings
from envelope_planner.domain.allocation import periods_per_cycle
from envelope_planner.domain.models import (
    Affordability,
    AutopilotGoal,
    Coverage,
    CoverageStatus,
    Frequency,
    GoalAllocation,
    HorizonGoal,
    HorizonMode,
    PayDaySettings,
    SetupPhase,
)
from envelope_planner.domain.pay_days import (
    count_pay_periods,
    monthly_anchor_day,
    next_pay_date_after,
    projected_date,
    resolve_next_pay_date,
)
from envelope_planner.domain.recurrence import frequency_occurrences_between, nth_occurrence
from envelope_planner.utils.money_utils import divide_cents, percent_of

logger = logging.getLogger(__name__)


def calculate_coverage(
    starting_cents: int,
    bill_cents: int,
    bill_frequency: Frequency,
    per_period_cents: int,
    pay_settings: PayDaySettings,
    next_pay_date: date,
    today: date,
    first_bill_date: Optional[date] = None,
    max_cycles: Optional[int] = None,
) -> Coverage:
    """
    Simulate how many consecutive bills the balance plus ongoing contributions can pay.

    Runs at most max_cycles bill cycles (default: settings.max_coverage_cycles);
    surviving all of them counts as always covered.
    """
    if max_cycles is None:
        max_cycles = settings.max_coverage_cycles

    pay_frequency = pay_settings.pay_frequency
    day = monthly_anchor_day(pay_settings)
    per_cycle = periods_per_cycle(pay_frequency, bill_frequency)

    if first_bill_date is not None:
        periods_per_bill = count_pay_periods(next_pay_date, first_bill_date, pay_frequency, day)
        bill_anchor = first_bill_date
    else:
        periods_per_bill = per_cycle
        bill_anchor = today + timedelta(days=round(bill_frequency.interval_days))

    balance = starting_cents
    payments_covered = 0
    current_pay_date = next_pay_date
    periods_until_bill = periods_per_bill

    for cycle in range(max_cycles):
        for _ in range(periods_until_bill):
            balance += per_period_cents
            current_pay_date = next_pay_date_after(current_pay_date, pay_frequency, day)

        if balance < bill_cents:
            break
        balance -= bill_cents
        payments_covered += 1

        bill_date = nth_occurrence(bill_anchor, bill_frequency.value, bill_frequency.unit, cycle + 1)
        periods_until_bill = count_pay_periods(current_pay_date, bill_date, pay_frequency, day)
        if periods_until_bill <= 0:
            periods_until_bill = per_cycle

    always_covered = payments_covered >= max_cycles
    effective_periods = periods_per_bill if periods_per_bill > 0 else per_cycle
    optimal = divide_cents(bill_cents, effective_periods)

    bill_before_payday = False
    high_balance = False
    if always_covered:
        if per_period_cents > optimal:
            status = CoverageStatus.SURPLUS
            recommended = optimal
        else:
            status = CoverageStatus.COVERED
            recommended = per_period_cents
    elif payments_covered > 0:
        status = CoverageStatus.PARTIAL
        recommended = optimal
        high_balance = starting_cents >= bill_cents * 2
    else:
        recommended = optimal
        if starting_cents == bill_cents:
            status = CoverageStatus.EXACT
            bill_before_payday = first_bill_date is not None and first_bill_date < next_pay_date
        else:
            status = CoverageStatus.INSUFFICIENT

    return Coverage(
        payments_covered=payments_covered,
        always_covered=always_covered,
        recommended_cents=recommended,
        periods_per_bill=effective_periods,
        status=status,
        bill_before_payday=bill_before_payday,
        high_balance=high_balance,
    )


def _arrival_by_contribution(
    gap_cents: int,
    contribution_cents: int,
    next_pay_date: date,
    pay_settings: PayDaySettings,
) -> Tuple[int, date]:
    """Periods needed at a fixed contribution, and the payday of the last one"""
    periods = math.ceil(gap_cents / contribution_cents)
    arrival = projected_date(
        next_pay_date,
        periods - 1,
        pay_settings.pay_frequency,
        monthly_anchor_day(pay_settings),
    )
    return periods, arrival


def _horizon_cash_flow(
    horizon: HorizonGoal,
    effective_starting_cents: int,
    autopilot: Optional[AutopilotGoal],
    autopilot_starting_cents: int,
    pay_settings: PayDaySettings,
    next_pay_date: date,
    available_income_cents: int,
) -> Tuple[int, Optional[int], Optional[date]]:
    gap = horizon.target_cents - effective_starting_cents
    if gap <= 0:
        return 0, None, None

    if horizon.mode == HorizonMode.PERCENTAGE:
        if horizon.percentage is None:
            return 0, None, None
        contribution = percent_of(available_income_cents, horizon.percentage)
        if contribution <= 0:
            return 0, None, None
        periods, arrival = _arrival_by_contribution(gap, contribution, next_pay_date, pay_settings)
        return contribution, periods, arrival

    if horizon.mode == HorizonMode.FIXED_AMOUNT:
        contribution = horizon.fixed_cents or 0
        if contribution <= 0:
            return 0, None, None
        periods, arrival = _arrival_by_contribution(gap, contribution, next_pay_date, pay_settings)
        return contribution, periods, arrival

    if horizon.target_date is None:
        return 0, None, None

    periods = count_pay_periods(
        next_pay_date,
        horizon.target_date,
        pay_settings.pay_frequency,
        monthly_anchor_day(pay_settings),
    )

    # Autopilot bills falling before the horizon date drain the same envelope,
    # but only while the autopilot is not already funded by the starting balance
    adjusted_gap = gap
    if autopilot is not None and autopilot.first_date is not None:
        autopilot_gap = autopilot.amount_cents - autopilot_starting_cents
        if autopilot_gap > 0 and horizon.target_date > autopilot.first_date:
            bills = frequency_occurrences_between(
                autopilot.first_date,
                autopilot.frequency,
                autopilot.first_date,
                horizon.target_date,
            )
            adjusted_gap += len(bills) * autopilot.amount_cents

    if periods > 0:
        return divide_cents(adjusted_gap, periods), periods, horizon.target_date
    # Target date before the next payday: the whole gap is needed now
    return adjusted_gap, periods, horizon.target_date


def _autopilot_cash_flow(
    autopilot: AutopilotGoal,
    starting_cents: int,
    effective_starting_cents: int,
    pay_settings: PayDaySettings,
    next_pay_date: date,
    today: date,
    manual_override_cents: Optional[int],
) -> Tuple[int, Optional[int], Optional[SetupPhase], Optional[Coverage]]:
    pay_frequency = pay_settings.pay_frequency
    day = monthly_anchor_day(pay_settings)
    per_cycle = periods_per_cycle(pay_frequency, autopilot.frequency)
    gap = autopilot.amount_cents - effective_starting_cents

    if gap > 0:
        if autopilot.first_date is None:
            return divide_cents(gap, per_cycle), per_cycle, None, None

        periods = count_pay_periods(next_pay_date, autopilot.first_date, pay_frequency, day)
        if periods > 0:
            return divide_cents(gap, periods), periods, None, None

        setup = SetupPhase(
            initial_catch_up_cents=gap,
            ongoing_cents=divide_cents(autopilot.amount_cents, per_cycle),
            ends_on=autopilot.first_date,
            periods_until_steady_state=per_cycle,
        )
        return gap, 0, setup, None

    # Starting balance already covers the bill
    if autopilot.first_date is not None:
        baseline_periods = count_pay_periods(next_pay_date, autopilot.first_date, pay_frequency, day)
    else:
        baseline_periods = per_cycle
    baseline = (
        divide_cents(autopilot.amount_cents, baseline_periods)
        if baseline_periods > 0
        else autopilot.amount_cents
    )
    tested = manual_override_cents if manual_override_cents is not None else baseline

    coverage = calculate_coverage(
        starting_cents=starting_cents,
        bill_cents=autopilot.amount_cents,
        bill_frequency=autopilot.frequency,
        per_period_cents=tested,
        pay_settings=pay_settings,
        next_pay_date=next_pay_date,
        today=today,
        first_bill_date=autopilot.first_date,
    )
    cash_flow = coverage.recommended_cents if manual_override_cents is None else 0
    return cash_flow, None, None, coverage


def _affordability(
    total_cents: int,
    pay_settings: PayDaySettings,
    existing_commitments_cents: int,
    starting_cents: int,
    account_balance_cents: Optional[int],
    horizon: Optional[HorizonGoal],
) -> Affordability:
    expected_pay = pay_settings.expected_pay_cents
    if expected_pay <= 0:
        return Affordability(percentage_of_income=None, available_income_cents=None)

    percentage = total_cents / expected_pay * 100
    available = expected_pay - existing_commitments_cents
    if account_balance_cents is not None:
        unallocated = max(account_balance_cents - existing_commitments_cents, 0)
    else:
        unallocated = starting_cents

    is_affordable = True
    requires_current_balance = False
    risky_bridge = False
    shortfall = 0
    periods_of_coverage = None
    if total_cents > available:
        shortfall = total_cents - available
        periods_of_coverage = unallocated // shortfall
        if periods_of_coverage >= 1:
            requires_current_balance = True
            risky_bridge = periods_of_coverage < settings.affordability_cushion_periods
        else:
            is_affordable = False

    over_allocated = False
    if horizon is not None and horizon.mode == HorizonMode.PERCENTAGE and horizon.percentage is not None:
        commitments_percentage = existing_commitments_cents / expected_pay * 100
        over_allocated = commitments_percentage + horizon.percentage > 100

    return Affordability(
        percentage_of_income=percentage,
        available_income_cents=available,
        is_affordable=is_affordable,
        requires_current_balance=requires_current_balance,
        risky_bridge=risky_bridge,
        shortfall_cents=shortfall,
        periods_of_coverage=periods_of_coverage,
        over_allocated=over_allocated,
    )


def allocate_goals(
    starting_cents: int,
    pay_settings: PayDaySettings,
    horizon: Optional[HorizonGoal] = None,
    autopilot: Optional[AutopilotGoal] = None,
    existing_commitments_cents: int = 0,
    account_balance_cents: Optional[int] = None,
    manual_override_cents: Optional[int] = None,
    today: Optional[date] = None,
) -> GoalAllocation:
    """
    Combine a horizon goal and an autopilot bill on one envelope into one cash flow.

    Starting balance: when the first autopilot bill lands strictly before the next
    payday it consumes the balance, so the horizon gets no credit for it. Otherwise
    payday refills the envelope first and both goals may count the balance.
    """
    if today is None:
        today = date.today()

    next_pay_date = resolve_next_pay_date(pay_settings, today)
    available_income = pay_settings.expected_pay_cents - existing_commitments_cents

    if horizon is not None and horizon.target_cents <= 0:
        horizon = None
    if autopilot is not None and autopilot.amount_cents <= 0:
        autopilot = None

    autopilot_before_payday = False
    horizon_starting = starting_cents
    autopilot_starting = starting_cents
    if autopilot is not None and autopilot.first_date is not None:
        autopilot_before_payday = autopilot.first_date < next_pay_date
        if autopilot_before_payday:
            horizon_starting = 0

    total = 0
    horizon_periods = None
    arrival = None
    if horizon is not None:
        horizon_cents, horizon_periods, arrival = _horizon_cash_flow(
            horizon,
            horizon_starting,
            autopilot,
            autopilot_starting,
            pay_settings,
            next_pay_date,
            available_income,
        )
        total += horizon_cents

    autopilot_periods = None
    setup = None
    coverage = None
    if autopilot is not None:
        autopilot_cents, autopilot_periods, setup, coverage = _autopilot_cash_flow(
            autopilot,
            starting_cents,
            autopilot_starting,
            pay_settings,
            next_pay_date,
            today,
            manual_override_cents,
        )
        total += autopilot_cents

    affordability = _affordability(
        total,
        pay_settings,
        existing_commitments_cents,
        starting_cents,
        account_balance_cents,
        horizon,
    )

    logger.debug(
        "Goals allocated",
        extra={
            "cash_flow_cents": total,
            "autopilot_before_payday": autopilot_before_payday,
            "horizon_periods": horizon_periods,
            "autopilot_periods": autopilot_periods,
        },
    )

    return GoalAllocation(
        cash_flow_cents=total,
        horizon_periods=horizon_periods,
        autopilot_periods=autopilot_periods,
        autopilot_before_payday=autopilot_before_payday,
        horizon_effective_starting_cents=horizon_starting,
        autopilot_effective_starting_cents=autopilot_starting,
        next_pay_date=next_pay_date,
        affordability=affordability,
        projected_arrival_date=arrival,
        setup_phase=setup,
        coverage=coverage,
    )
