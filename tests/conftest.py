"""Pytest fixtures for testing"""

import pytest
from datetime import date
from fastapi.testclient import TestClient
from envelope_planner.api.main import create_app
from envelope_planner.api.dependencies import get_today
from envelope_planner.domain.models import (
    Account,
    Envelope,
    FrequencyUnit,
    PayDaySettings,
    PayFrequency,
    ScheduledPayment,
)


# Wednesday; every calculation in the suite runs against this date
FIXED_TODAY = date(2025, 1, 15)


@pytest.fixture
def today() -> date:
    return FIXED_TODAY


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client pinned to the fixed date"""
    app = create_app()
    app.dependency_overrides[get_today] = lambda: FIXED_TODAY
    return TestClient(app)


@pytest.fixture
def checking() -> Account:
    return Account(id="acc_checking", name="Checking", balance_cents=100000, is_default=True)


@pytest.fixture
def savings() -> Account:
    return Account(id="acc_savings", name="Savings", balance_cents=50000)


@pytest.fixture
def monthly_pay() -> PayDaySettings:
    """$3000 on the 1st of each month, paid into checking"""
    return PayDaySettings(
        pay_frequency=PayFrequency.MONTHLY,
        expected_pay_cents=300000,
        next_pay_date=date(2025, 2, 1),
        default_account_id="acc_checking",
    )


@pytest.fixture
def rent_envelope() -> Envelope:
    return Envelope(
        id="env_rent",
        name="Rent",
        current_cents=20000,
        target_cents=120000,
        linked_account_id="acc_checking",
        cash_flow_enabled=True,
        cash_flow_cents=60000,
    )


@pytest.fixture
def rent_payment() -> ScheduledPayment:
    return ScheduledPayment(
        id="sp_rent",
        name="Rent",
        amount_cents=100000,
        frequency_value=1,
        frequency_unit=FrequencyUnit.MONTHS,
        next_due_date=date(2025, 2, 5),
        envelope_id="env_rent",
        is_automatic=True,
    )


@pytest.fixture
def projection_payload() -> dict:
    """JSON snapshot bundle for POST /v1/projection"""
    return {
        "target_date": "2025-03-15",
        "accounts": [
            {"id": "acc_checking", "name": "Checking", "balance_cents": 100000, "is_default": True},
        ],
        "envelopes": [
            {
                "id": "env_rent",
                "name": "Rent",
                "current_cents": 20000,
                "target_cents": 120000,
                "linked_account_id": "acc_checking",
                "cash_flow_enabled": True,
                "cash_flow_cents": 60000,
            },
        ],
        "scheduled_payments": [
            {
                "id": "sp_rent",
                "name": "Rent",
                "amount_cents": 100000,
                "frequency_value": 1,
                "frequency_unit": "months",
                "next_due_date": "2025-02-05",
                "envelope_id": "env_rent",
                "is_automatic": True,
            },
        ],
        "pay_settings": {
            "pay_frequency": "monthly",
            "expected_pay_cents": 300000,
            "next_pay_date": "2025-02-01",
            "default_account_id": "acc_checking",
        },
    }
