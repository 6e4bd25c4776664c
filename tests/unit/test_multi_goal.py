"""Unit tests for combined horizon + autopilot allocation"""

import pytest
from datetime import date
from envelope_planner.domain.models import (
    AutopilotGoal,
    CoverageStatus,
    Frequency,
    FrequencyUnit,
    HorizonGoal,
    HorizonMode,
    PayDaySettings,
    PayFrequency,
)
from envelope_planner.domain.multi_goal import allocate_goals, calculate_coverage


MONTHLY = Frequency(1, FrequencyUnit.MONTHS)


def test_horizon_with_date_only(monthly_pay, today):
    """$1000 gap over the Feb-May paydays -> $250 per payday"""
    allocation = allocate_goals(
        starting_cents=20000,
        pay_settings=monthly_pay,
        horizon=HorizonGoal(target_cents=120000, target_date=date(2025, 5, 1)),
        today=today,
    )

    assert allocation.next_pay_date == date(2025, 2, 1)
    assert allocation.horizon_periods == 4
    assert allocation.cash_flow_cents == 25000
    assert allocation.projected_arrival_date == date(2025, 5, 1)


def test_autopilot_before_payday_consumes_starting_balance(monthly_pay, today):
    allocation = allocate_goals(
        starting_cents=50000,
        pay_settings=monthly_pay,
        horizon=HorizonGoal(target_cents=100000, target_date=date(2025, 5, 1)),
        autopilot=AutopilotGoal(amount_cents=50000, frequency=MONTHLY, first_date=date(2025, 1, 20)),
        today=today,
    )

    assert allocation.autopilot_before_payday is True
    assert allocation.horizon_effective_starting_cents == 0
    assert allocation.autopilot_effective_starting_cents == 50000
    # Horizon: 100000 / 4; autopilot: one full bill per monthly payday
    assert allocation.cash_flow_cents == 25000 + 50000
    assert allocation.coverage is not None
    assert allocation.coverage.always_covered is True


def test_funded_autopilot_is_not_added_to_horizon(monthly_pay, today):
    """Starting balance covers the bill, so its occurrences are not charged to the horizon"""
    allocation = allocate_goals(
        starting_cents=50000,
        pay_settings=monthly_pay,
        horizon=HorizonGoal(target_cents=100000, target_date=date(2025, 5, 1)),
        autopilot=AutopilotGoal(amount_cents=30000, frequency=MONTHLY, first_date=date(2025, 2, 10)),
        today=today,
    )

    assert allocation.autopilot_before_payday is False
    assert allocation.horizon_effective_starting_cents == 50000
    # Horizon: (100000 - 50000) / 4; autopilot coverage: 30000 per payday
    assert allocation.cash_flow_cents == 12500 + 30000
    assert allocation.coverage.status == CoverageStatus.COVERED


def test_unfunded_autopilot_bills_are_added_to_horizon(monthly_pay, today):
    allocation = allocate_goals(
        starting_cents=0,
        pay_settings=monthly_pay,
        horizon=HorizonGoal(target_cents=100000, target_date=date(2025, 5, 1)),
        autopilot=AutopilotGoal(amount_cents=20000, frequency=MONTHLY, first_date=date(2025, 2, 10)),
        today=today,
    )

    # Horizon: (100000 + 3 bills of 20000) / 4; autopilot: 20000 over one payday
    assert allocation.cash_flow_cents == 40000 + 20000
    assert allocation.autopilot_periods == 1


def test_bill_before_payday_enters_setup_phase(monthly_pay, today):
    allocation = allocate_goals(
        starting_cents=10000,
        pay_settings=monthly_pay,
        autopilot=AutopilotGoal(amount_cents=40000, frequency=MONTHLY, first_date=date(2025, 1, 25)),
        today=today,
    )

    assert allocation.cash_flow_cents == 30000
    assert allocation.autopilot_periods == 0
    assert allocation.setup_phase is not None
    assert allocation.setup_phase.initial_catch_up_cents == 30000
    assert allocation.setup_phase.ongoing_cents == 40000
    assert allocation.setup_phase.ends_on == date(2025, 1, 25)


def test_percentage_mode_derives_arrival(monthly_pay, today):
    allocation = allocate_goals(
        starting_cents=0,
        pay_settings=monthly_pay,
        horizon=HorizonGoal(target_cents=100000, mode=HorizonMode.PERCENTAGE, percentage=10),
        today=today,
    )

    assert allocation.cash_flow_cents == 30000
    assert allocation.horizon_periods == 4
    assert allocation.projected_arrival_date == date(2025, 5, 1)
    assert allocation.affordability.over_allocated is False


def test_percentage_mode_over_allocated(monthly_pay, today):
    allocation = allocate_goals(
        starting_cents=0,
        pay_settings=monthly_pay,
        horizon=HorizonGoal(target_cents=100000, mode=HorizonMode.PERCENTAGE, percentage=10),
        existing_commitments_cents=280000,
        today=today,
    )

    assert allocation.affordability.over_allocated is True


def test_fixed_amount_mode(monthly_pay, today):
    allocation = allocate_goals(
        starting_cents=0,
        pay_settings=monthly_pay,
        horizon=HorizonGoal(target_cents=100000, mode=HorizonMode.FIXED_AMOUNT, fixed_cents=25000),
        today=today,
    )

    assert allocation.cash_flow_cents == 25000
    assert allocation.horizon_periods == 4
    assert allocation.projected_arrival_date == date(2025, 5, 1)


def test_arrival_is_payday_of_last_contribution(today):
    """$900 at $300 per biweekly payday: Jan 17, Jan 31, Feb 14 -> funded on Feb 14"""
    biweekly = PayDaySettings(pay_frequency=PayFrequency.BIWEEKLY, next_pay_date=date(2025, 1, 17))
    allocation = allocate_goals(
        starting_cents=0,
        pay_settings=biweekly,
        horizon=HorizonGoal(target_cents=90000, mode=HorizonMode.FIXED_AMOUNT, fixed_cents=30000),
        today=today,
    )

    assert allocation.horizon_periods == 3
    assert allocation.projected_arrival_date == date(2025, 2, 14)


def test_affordability_bridged_by_balance(monthly_pay, today):
    horizon = HorizonGoal(target_cents=120000, target_date=date(2025, 5, 1))

    bridged = allocate_goals(
        starting_cents=20000,
        pay_settings=monthly_pay,
        horizon=horizon,
        existing_commitments_cents=290000,
        account_balance_cents=350000,
        today=today,
    ).affordability
    assert bridged.available_income_cents == 10000
    assert bridged.shortfall_cents == 15000
    assert bridged.periods_of_coverage == 4
    assert bridged.requires_current_balance is True
    assert bridged.risky_bridge is False
    assert bridged.percentage_of_income == pytest.approx(25000 / 300000 * 100)

    thin = allocate_goals(
        starting_cents=20000,
        pay_settings=monthly_pay,
        horizon=horizon,
        existing_commitments_cents=290000,
        today=today,
    ).affordability
    assert thin.periods_of_coverage == 1
    assert thin.risky_bridge is True

    unaffordable = allocate_goals(
        starting_cents=20000,
        pay_settings=monthly_pay,
        horizon=horizon,
        existing_commitments_cents=290000,
        account_balance_cents=300000,
        today=today,
    ).affordability
    assert unaffordable.is_affordable is False


def test_manual_override_reports_partial_coverage(monthly_pay, today):
    allocation = allocate_goals(
        starting_cents=100000,
        pay_settings=monthly_pay,
        autopilot=AutopilotGoal(amount_cents=30000, frequency=MONTHLY, first_date=date(2025, 2, 10)),
        manual_override_cents=10000,
        today=today,
    )

    assert allocation.cash_flow_cents == 0
    assert allocation.coverage.status == CoverageStatus.PARTIAL
    assert allocation.coverage.payments_covered == 5
    assert allocation.coverage.recommended_cents == 30000
    assert allocation.coverage.high_balance is True


def test_coverage_surplus(monthly_pay, today):
    coverage = calculate_coverage(
        starting_cents=100000,
        bill_cents=30000,
        bill_frequency=MONTHLY,
        per_period_cents=50000,
        pay_settings=monthly_pay,
        next_pay_date=date(2025, 2, 1),
        today=today,
        first_bill_date=date(2025, 2, 10),
    )

    assert coverage.always_covered is True
    assert coverage.status == CoverageStatus.SURPLUS
    assert coverage.recommended_cents == 30000


def test_coverage_insufficient(monthly_pay, today):
    coverage = calculate_coverage(
        starting_cents=0,
        bill_cents=30000,
        bill_frequency=MONTHLY,
        per_period_cents=0,
        pay_settings=monthly_pay,
        next_pay_date=date(2025, 2, 1),
        today=today,
        first_bill_date=date(2025, 2, 10),
    )

    assert coverage.payments_covered == 0
    assert coverage.status == CoverageStatus.INSUFFICIENT


def test_no_expected_pay_skips_affordability(today):
    allocation = allocate_goals(
        starting_cents=0,
        pay_settings=PayDaySettings(next_pay_date=date(2025, 2, 1)),
        horizon=HorizonGoal(target_cents=50000, target_date=date(2025, 3, 1)),
        today=today,
    )

    assert allocation.affordability.percentage_of_income is None
    assert allocation.cash_flow_cents == 25000
