"""Unit tests for the gap / steady-state allocation engine"""

import pytest
from datetime import date, timedelta
from envelope_planner.domain.allocation import (
    is_significant_change,
    periods_per_cycle,
    recalculate_after_autopilot,
    recommend,
)
from envelope_planner.domain.models import (
    AllocationPhase,
    Envelope,
    Frequency,
    FrequencyUnit,
    PayDaySettings,
    PayFrequency,
    ScheduledPayment,
)


MONTHLY = Frequency(1, FrequencyUnit.MONTHS)
YEARLY = Frequency(1, FrequencyUnit.YEARS)


@pytest.mark.parametrize(
    "pay_frequency,bill_frequency,expected",
    [
        (PayFrequency.MONTHLY, MONTHLY, 1),
        (PayFrequency.BIWEEKLY, MONTHLY, 3),
        (PayFrequency.FOURWEEKLY, MONTHLY, 2),
        (PayFrequency.WEEKLY, Frequency(1, FrequencyUnit.WEEKS), 1),
        (PayFrequency.BIWEEKLY, Frequency(1, FrequencyUnit.WEEKS), 1),
        (PayFrequency.MONTHLY, YEARLY, 12),
    ],
)
def test_periods_per_cycle(pay_frequency, bill_frequency, expected):
    assert periods_per_cycle(pay_frequency, bill_frequency) == expected


def test_catch_up_spreads_gap_over_remaining_periods(today):
    """$500 due in exactly 10 biweekly pay periods -> $50/period, not yet steady"""
    next_pay = date(2025, 1, 17)
    result = recommend(
        starting_cents=0,
        target_cents=50000,
        due_date=next_pay + timedelta(days=14 * 9),
        pay_frequency=PayFrequency.BIWEEKLY,
        bill_frequency=YEARLY,
        next_pay_date=next_pay,
        today=today,
    )

    assert result.recommended_cents == 5000
    assert result.periods_until_due == 10
    assert result.is_in_steady_state is False
    assert result.gap_cents == 50000
    assert result.phase == AllocationPhase.CATCH_UP


def test_funded_target_keeps_maintenance_rhythm(today):
    result = recommend(
        starting_cents=50000,
        target_cents=50000,
        due_date=date(2025, 6, 1),
        pay_frequency=PayFrequency.BIWEEKLY,
        bill_frequency=MONTHLY,
        next_pay_date=date(2025, 1, 17),
        today=today,
    )

    assert result.gap_cents == 0
    assert result.recommended_cents == 16667  # 500.00 / 3, rounded half-up
    assert result.phase == AllocationPhase.FUNDED


def test_overdue_bill_needs_full_gap(today):
    result = recommend(
        starting_cents=10000,
        target_cents=60000,
        due_date=today - timedelta(days=1),
        pay_frequency=PayFrequency.BIWEEKLY,
        bill_frequency=MONTHLY,
        today=today,
    )

    assert result.periods_until_due == 0
    assert result.recommended_cents == 50000
    assert result.phase == AllocationPhase.OVERDUE


def test_steady_state_recommends_target_per_cycle(today):
    result = recommend(
        starting_cents=10000,
        target_cents=50000,
        due_date=date(2025, 4, 5),
        pay_frequency=PayFrequency.MONTHLY,
        bill_frequency=MONTHLY,
        next_pay_date=date(2025, 2, 1),
        today=today,
    )

    assert result.periods_until_due == 3
    assert result.is_in_steady_state is True
    assert result.recommended_cents == 50000
    assert result.phase == AllocationPhase.STEADY_STATE


def test_more_periods_never_increase_catch_up_recommendation(today):
    """Yearly bill on biweekly pay: 27 periods per cycle, so k < 27 stays in catch-up"""
    next_pay = date(2025, 1, 17)
    results = [
        recommend(
            starting_cents=20000,
            target_cents=120000,
            due_date=next_pay + timedelta(days=14 * k - 1),
            pay_frequency=PayFrequency.BIWEEKLY,
            bill_frequency=YEARLY,
            next_pay_date=next_pay,
            today=today,
        )
        for k in range(0, 27)
    ]
    recommendations = [r.recommended_cents for r in results]

    assert all(r.is_in_steady_state is False for r in results)
    assert all(later <= earlier for earlier, later in zip(recommendations, recommendations[1:]))
    assert recommendations[0] == 100000  # due before the first payday


def test_catch_up_never_exceeds_remaining_gap(today):
    """$100 short of $1000 with two biweekly paydays left -> $50 each"""
    result = recommend(
        starting_cents=90000,
        target_cents=100000,
        due_date=date(2025, 1, 31),
        pay_frequency=PayFrequency.BIWEEKLY,
        bill_frequency=MONTHLY,
        next_pay_date=date(2025, 1, 17),
        today=today,
    )

    assert result.periods_until_due == 2
    assert result.phase == AllocationPhase.CATCH_UP
    assert result.recommended_cents == 5000


def test_past_next_pay_date_is_rolled_forward(today):
    """A payday two weeks ago lands on today, so yesterday's bill is overdue"""
    result = recommend(
        starting_cents=10000,
        target_cents=60000,
        due_date=today - timedelta(days=1),
        pay_frequency=PayFrequency.BIWEEKLY,
        bill_frequency=MONTHLY,
        next_pay_date=today - timedelta(days=14),
        today=today,
    )

    assert result.periods_until_due == 0
    assert result.phase == AllocationPhase.OVERDUE
    assert result.recommended_cents == 50000


def test_past_monthly_pay_date_keeps_its_day(today):
    """Paid on the 10th: from Jan 15 the next payday is Feb 10, only one before Feb 20"""
    result = recommend(
        starting_cents=0,
        target_cents=40000,
        due_date=date(2025, 2, 20),
        pay_frequency=PayFrequency.MONTHLY,
        bill_frequency=YEARLY,
        next_pay_date=date(2024, 12, 10),
        today=today,
    )

    assert result.periods_until_due == 1
    assert result.recommended_cents == 40000


def test_steady_state_is_idempotent(today):
    kwargs = dict(
        starting_cents=0,
        target_cents=90000,
        due_date=date(2025, 8, 1),
        pay_frequency=PayFrequency.BIWEEKLY,
        bill_frequency=MONTHLY,
        next_pay_date=date(2025, 1, 17),
        today=today,
    )
    first = recommend(**kwargs)
    second = recommend(**kwargs)

    assert first.is_in_steady_state is True
    assert first == second


def test_significance_threshold():
    assert is_significant_change(5000, 5000) is False
    assert is_significant_change(5000, 5001) is True
    assert is_significant_change(5000, 5040, threshold_cents=50) is False


@pytest.fixture
def bills_envelope() -> Envelope:
    return Envelope(
        id="env_phone",
        name="Phone",
        current_cents=0,
        linked_account_id="acc_checking",
        cash_flow_enabled=True,
        cash_flow_cents=10000,
    )


@pytest.fixture
def phone_autopilot() -> ScheduledPayment:
    return ScheduledPayment(
        id="sp_phone",
        name="Phone",
        amount_cents=60000,
        frequency_value=1,
        frequency_unit=FrequencyUnit.MONTHS,
        next_due_date=date(2025, 3, 1),
        envelope_id="env_phone",
        is_automatic=True,
    )


def test_recalculate_after_autopilot_suggests_change(bills_envelope, phone_autopilot, monthly_pay, today):
    suggestion = recalculate_after_autopilot(bills_envelope, [phone_autopilot], monthly_pay, today)

    assert suggestion is not None
    assert suggestion.old_cents == 10000
    assert suggestion.suggested_cents == 60000
    assert suggestion.bill_cents == 60000
    assert suggestion.requires_user_approval is True


def test_recalculate_after_autopilot_no_change(bills_envelope, phone_autopilot, monthly_pay, today):
    envelope = Envelope(
        id="env_phone",
        name="Phone",
        linked_account_id="acc_checking",
        cash_flow_enabled=True,
        cash_flow_cents=60000,
    )
    assert recalculate_after_autopilot(envelope, [phone_autopilot], monthly_pay, today) is None


def test_recalculate_ignores_manual_reminders(bills_envelope, monthly_pay, today):
    reminder = ScheduledPayment(
        id="sp_manual",
        name="Phone reminder",
        amount_cents=60000,
        frequency_value=1,
        frequency_unit=FrequencyUnit.MONTHS,
        next_due_date=date(2025, 3, 1),
        envelope_id="env_phone",
        is_automatic=False,
    )
    assert recalculate_after_autopilot(bills_envelope, [reminder], monthly_pay, today) is None


def test_recalculate_skips_disabled_cash_flow(phone_autopilot, today):
    envelope = Envelope(id="env_phone", name="Phone")
    settings = PayDaySettings(next_pay_date=date(2025, 2, 1))
    assert recalculate_after_autopilot(envelope, [phone_autopilot], settings, today) is None
