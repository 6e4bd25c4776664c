"""Domain models - pure Python dataclasses representing budgeting entities"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Dict, List, Optional

from envelope_planner.config import settings
from envelope_planner.domain.exceptions import (
    InvalidFrequencyError,
    InvalidInputError,
    InvalidTargetDateError,
)


class FrequencyUnit(str, Enum):
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    YEARS = "years"


FREQUENCY_PRESETS = {
    "daily": (1, FrequencyUnit.DAYS),
    "weekly": (1, FrequencyUnit.WEEKS),
    "biweekly": (2, FrequencyUnit.WEEKS),
    "fourweekly": (4, FrequencyUnit.WEEKS),
    "monthly": (1, FrequencyUnit.MONTHS),
    "yearly": (1, FrequencyUnit.YEARS),
}


@dataclass(frozen=True)
class Frequency:
    """Recurrence interval expressed as value + unit (e.g. 2 weeks)"""

    value: int
    unit: FrequencyUnit

    def __post_init__(self) -> None:
        if self.value <= 0:
            raise InvalidFrequencyError(f"Frequency value must be positive, got {self.value}")

    @classmethod
    def from_name(cls, name: str) -> "Frequency":
        """Resolve a named preset: daily, weekly, biweekly, fourweekly, monthly, yearly"""
        normalized = "".join(ch for ch in name.strip().lower() if ch.isalnum())
        preset = FREQUENCY_PRESETS.get(normalized)
        if preset is None:
            raise InvalidFrequencyError(f"Unknown frequency: {name}")
        return cls(*preset)

    @property
    def interval_days(self) -> float:
        """Average length of one interval in days (months and years use calendar averages)"""
        if self.unit == FrequencyUnit.DAYS:
            unit_days = 1.0
        elif self.unit == FrequencyUnit.WEEKS:
            unit_days = 7.0
        elif self.unit == FrequencyUnit.MONTHS:
            unit_days = settings.days_per_month
        else:
            unit_days = settings.days_per_year
        return self.value * unit_days


class PayFrequency(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    FOURWEEKLY = "fourweekly"
    MONTHLY = "monthly"

    @property
    def frequency(self) -> Frequency:
        return Frequency.from_name(self.value)


class EventType(str, Enum):
    PAY_DAY = "pay_day"
    SCHEDULED_PAYMENT = "scheduled_payment"
    TEMPORARY_INCOME = "temporary_income"
    TEMPORARY_EXPENSE = "temporary_expense"
    CASH_FLOW = "cash_flow"
    ENVELOPE_CASH_FLOW_WITHDRAWAL = "envelope_cash_flow_withdrawal"


class FlowImpact(str, Enum):
    EXTERNAL = "external"  # crosses the system boundary
    INTERNAL = "internal"  # moves between modeled entities


class FlowDirection(str, Enum):
    INFLOW = "inflow"
    OUTFLOW = "outflow"
    MOVE = "move"


class TransactionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TRANSFER = "transfer"


class HorizonMode(str, Enum):
    DATE = "date"  # user sets the date, contribution is derived
    PERCENTAGE = "percentage"  # share of available income, arrival date is derived
    FIXED_AMOUNT = "fixed_amount"  # user sets the contribution, arrival date is derived


class AllocationPhase(str, Enum):
    FUNDED = "funded"
    OVERDUE = "overdue"
    STEADY_STATE = "steady_state"
    CATCH_UP = "catch_up"


class CoverageStatus(str, Enum):
    SURPLUS = "surplus"  # always covered, contribution above what the bill needs
    COVERED = "covered"  # always covered at the tested contribution
    PARTIAL = "partial"  # covers some bills, then runs short
    EXACT = "exact"  # balance equals the bill
    INSUFFICIENT = "insufficient"


class WarningKind(str, Enum):
    ORPHANED_SCHEDULED_PAYMENT = "orphaned_scheduled_payment"
    MISSING_ACCOUNT = "missing_account"
    ITERATION_CAP = "iteration_cap"


# --- Snapshots supplied by the caller ---


@dataclass(frozen=True)
class Account:
    """Bank-like money account; balance may be negative for credit accounts"""

    id: str
    name: str
    balance_cents: int
    credit_limit_cents: Optional[int] = None
    is_default: bool = False


@dataclass(frozen=True)
class Envelope:
    """Named sub-allocation of money with optional target and per-payday cash flow"""

    id: str
    name: str
    current_cents: int = 0
    target_cents: Optional[int] = None
    target_date: Optional[date] = None
    linked_account_id: Optional[str] = None
    group_id: Optional[str] = None
    cash_flow_enabled: bool = False
    cash_flow_cents: Optional[int] = None

    def __post_init__(self) -> None:
        if self.target_date is not None and self.target_cents is None:
            raise InvalidTargetDateError(f"Envelope {self.id} has a target date without a target amount")


@dataclass(frozen=True)
class PayDaySettings:
    """Income schedule; one per user"""

    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    expected_pay_cents: int = 0
    last_pay_date: Optional[date] = None
    next_pay_date: Optional[date] = None
    pay_day_of_month: Optional[int] = None  # monthly only, 1-31
    default_account_id: Optional[str] = None

    def __post_init__(self) -> None:
        if self.pay_day_of_month is not None and not 1 <= self.pay_day_of_month <= 31:
            raise InvalidInputError(f"pay_day_of_month must be 1-31, got {self.pay_day_of_month}")


@dataclass(frozen=True)
class ScheduledPayment:
    """Recurring bill; autopilot when is_automatic, otherwise a reminder"""

    id: str
    name: str
    amount_cents: int
    frequency_value: int
    frequency_unit: FrequencyUnit
    next_due_date: date
    envelope_id: Optional[str] = None
    account_id: Optional[str] = None  # account-level payments only
    is_automatic: bool = False

    def __post_init__(self) -> None:
        if self.frequency_value <= 0:
            raise InvalidFrequencyError(
                f"Scheduled payment {self.id} has non-positive frequency {self.frequency_value}"
            )

    @property
    def frequency(self) -> Frequency:
        return Frequency(self.frequency_value, self.frequency_unit)


@dataclass(frozen=True)
class TemporaryItem:
    """What-if income or expense; one-time when frequency is None"""

    id: str
    name: str
    amount_cents: int
    start_date: date
    is_income: bool
    frequency: Optional[Frequency] = None
    end_date: Optional[date] = None
    linked_account_id: Optional[str] = None
    envelope_id: Optional[str] = None

    @property
    def is_one_time(self) -> bool:
        return self.frequency is None


@dataclass(frozen=True)
class EnvelopeSettingOverride:
    cash_flow_enabled: Optional[bool] = None
    cash_flow_cents: Optional[int] = None


@dataclass(frozen=True)
class Scenario:
    """What-if overrides applied on top of the stored snapshots"""

    envelope_enabled: Dict[str, bool] = field(default_factory=dict)
    envelope_overrides: Dict[str, int] = field(default_factory=dict)  # projected balance overrides
    envelope_settings: Dict[str, EnvelopeSettingOverride] = field(default_factory=dict)
    custom_pay_cents: Optional[int] = None
    custom_pay_frequency: Optional[PayFrequency] = None
    scheduled_payment_date_overrides: Dict[str, date] = field(default_factory=dict)
    temporary_items: List[TemporaryItem] = field(default_factory=list)

    def is_enabled(self, envelope_id: str) -> bool:
        return self.envelope_enabled.get(envelope_id, True)


# --- Projection output ---


@dataclass(frozen=True)
class ProjectionEvent:
    """Generated timeline entry; never persisted"""

    date: date
    type: EventType
    description: str
    amount_cents: int
    is_credit: bool
    is_external: bool
    direction: FlowDirection
    envelope_id: Optional[str] = None
    envelope_name: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None


@dataclass(frozen=True)
class ProjectionWarning:
    """Dangling reference or guard trip that was skipped during simulation"""

    kind: WarningKind
    message: str
    reference_id: Optional[str] = None  # the missing id
    subject_id: Optional[str] = None  # the entity that referenced it


@dataclass(frozen=True)
class EnvelopeProjection:
    envelope_id: str
    envelope_name: str
    current_cents: int
    projected_cents: int
    target_cents: int
    has_target: bool
    will_meet_target: bool
    target_date: Optional[date] = None
    target_achieved_date: Optional[date] = None
    overachievement_cents: Optional[int] = None
    days_until_target: Optional[int] = None
    days_before_target_date: Optional[int] = None


@dataclass(frozen=True)
class AccountProjection:
    account_id: str
    account_name: str
    projected_balance_cents: int
    assigned_cents: int
    available_cents: int
    envelope_projections: List[EnvelopeProjection]


@dataclass(frozen=True)
class ProjectionResult:
    projection_date: date
    account_projections: Dict[str, AccountProjection]
    timeline: List[ProjectionEvent]
    total_available_cents: int
    total_assigned_cents: int
    total_spent_cents: int
    warnings: List[ProjectionWarning] = field(default_factory=list)


# --- Allocation output ---


@dataclass(frozen=True)
class AllocationResult:
    """Per-pay-period contribution recommendation for one target"""

    recommended_cents: int
    is_in_steady_state: bool
    periods_until_due: int
    periods_per_cycle: int
    gap_cents: int
    phase: AllocationPhase


@dataclass(frozen=True)
class CashFlowSuggestion:
    """Suggested cash-flow change after an autopilot bill ran; applied only on user approval"""

    envelope_id: str
    envelope_name: str
    old_cents: int
    suggested_cents: int
    bill_cents: int
    periods_per_cycle: int
    is_in_steady_state: bool
    requires_user_approval: bool = True


@dataclass(frozen=True)
class HorizonGoal:
    """One-time savings target"""

    target_cents: int
    target_date: Optional[date] = None
    mode: HorizonMode = HorizonMode.DATE
    percentage: Optional[float] = None
    fixed_cents: Optional[int] = None


@dataclass(frozen=True)
class AutopilotGoal:
    """Recurring bill funded from the same envelope"""

    amount_cents: int
    frequency: Frequency
    first_date: Optional[date] = None


@dataclass(frozen=True)
class SetupPhase:
    """Bill due before the next payday: catch up now, then settle to the ongoing amount"""

    initial_catch_up_cents: int
    ongoing_cents: int
    ends_on: Optional[date]
    periods_until_steady_state: int


@dataclass(frozen=True)
class Coverage:
    payments_covered: int
    always_covered: bool
    recommended_cents: int
    periods_per_bill: int
    status: CoverageStatus
    bill_before_payday: bool = False
    high_balance: bool = False


@dataclass(frozen=True)
class Affordability:
    percentage_of_income: Optional[float]
    available_income_cents: Optional[int]
    is_affordable: bool = True
    requires_current_balance: bool = False
    risky_bridge: bool = False  # unallocated balance bridges the shortfall for too few periods
    shortfall_cents: int = 0
    periods_of_coverage: Optional[int] = None
    over_allocated: bool = False


@dataclass(frozen=True)
class GoalAllocation:
    """Blended cash flow for an envelope carrying a horizon and an autopilot"""

    cash_flow_cents: int
    horizon_periods: Optional[int]
    autopilot_periods: Optional[int]
    autopilot_before_payday: bool
    horizon_effective_starting_cents: int
    autopilot_effective_starting_cents: int
    next_pay_date: date
    affordability: Affordability
    projected_arrival_date: Optional[date] = None
    setup_phase: Optional[SetupPhase] = None
    coverage: Optional[Coverage] = None


# --- Direct ledger operations ---


@dataclass(frozen=True)
class Transaction:
    """Balance change record; every ledger mutation produces at least one"""

    id: str
    kind: TransactionKind
    amount_cents: int
    date: date
    description: str
    impact: FlowImpact
    direction: FlowDirection
    account_id: Optional[str] = None
    envelope_id: Optional[str] = None
    transfer_link_id: Optional[str] = None
    transfer_direction: Optional[str] = None  # "in" | "out"
