"""Pydantic schemas for API request/response validation"""

from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from envelope_planner.domain.models import (
    Account,
    AllocationPhase,
    AutopilotGoal,
    CoverageStatus,
    Envelope,
    EnvelopeSettingOverride,
    EventType,
    FlowDirection,
    Frequency,
    FrequencyUnit,
    HorizonGoal,
    HorizonMode,
    PayDaySettings,
    PayFrequency,
    Scenario,
    ScheduledPayment,
    TemporaryItem,
    WarningKind,
)


# --- Snapshots ---


class AccountSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    balance_cents: int
    credit_limit_cents: Optional[int] = None
    is_default: bool = False

    def to_domain(self) -> Account:
        return Account(**self.model_dump())


class EnvelopeSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    current_cents: int = 0
    target_cents: Optional[int] = None
    target_date: Optional[date] = None
    linked_account_id: Optional[str] = None
    group_id: Optional[str] = None
    cash_flow_enabled: bool = False
    cash_flow_cents: Optional[int] = None

    def to_domain(self) -> Envelope:
        return Envelope(**self.model_dump())


class PayDaySettingsSchema(BaseModel):
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    expected_pay_cents: int = 0
    last_pay_date: Optional[date] = None
    next_pay_date: Optional[date] = None
    pay_day_of_month: Optional[int] = None
    default_account_id: Optional[str] = None

    def to_domain(self) -> PayDaySettings:
        return PayDaySettings(**self.model_dump())


class FrequencySchema(BaseModel):
    """Interval as value + unit, e.g. {"value": 2, "unit": "weeks"}"""

    value: int
    unit: FrequencyUnit

    def to_domain(self) -> Frequency:
        return Frequency(self.value, self.unit)


class ScheduledPaymentSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    amount_cents: int
    frequency_value: int
    frequency_unit: FrequencyUnit
    next_due_date: date
    envelope_id: Optional[str] = None
    account_id: Optional[str] = None
    is_automatic: bool = False

    def to_domain(self) -> ScheduledPayment:
        return ScheduledPayment(**self.model_dump())


class TemporaryItemSchema(BaseModel):
    id: str = Field(..., min_length=1)
    name: str
    amount_cents: int
    start_date: date
    is_income: bool
    frequency: Optional[FrequencySchema] = None
    end_date: Optional[date] = None
    linked_account_id: Optional[str] = None
    envelope_id: Optional[str] = None

    def to_domain(self) -> TemporaryItem:
        return TemporaryItem(
            id=self.id,
            name=self.name,
            amount_cents=self.amount_cents,
            start_date=self.start_date,
            is_income=self.is_income,
            frequency=self.frequency.to_domain() if self.frequency else None,
            end_date=self.end_date,
            linked_account_id=self.linked_account_id,
            envelope_id=self.envelope_id,
        )


class EnvelopeSettingOverrideSchema(BaseModel):
    cash_flow_enabled: Optional[bool] = None
    cash_flow_cents: Optional[int] = None


class ScenarioSchema(BaseModel):
    """What-if overrides; every field optional"""

    envelope_enabled: Dict[str, bool] = {}
    envelope_overrides: Dict[str, int] = {}
    envelope_settings: Dict[str, EnvelopeSettingOverrideSchema] = {}
    custom_pay_cents: Optional[int] = None
    custom_pay_frequency: Optional[PayFrequency] = None
    scheduled_payment_date_overrides: Dict[str, date] = {}
    temporary_items: List[TemporaryItemSchema] = []

    def to_domain(self) -> Scenario:
        return Scenario(
            envelope_enabled=dict(self.envelope_enabled),
            envelope_overrides=dict(self.envelope_overrides),
            envelope_settings={
                envelope_id: EnvelopeSettingOverride(**override.model_dump())
                for envelope_id, override in self.envelope_settings.items()
            },
            custom_pay_cents=self.custom_pay_cents,
            custom_pay_frequency=self.custom_pay_frequency,
            scheduled_payment_date_overrides=dict(self.scheduled_payment_date_overrides),
            temporary_items=[item.to_domain() for item in self.temporary_items],
        )


# --- Projection ---


class ProjectionRequest(BaseModel):
    """Request body for POST /v1/projection"""

    target_date: date
    accounts: List[AccountSchema] = []
    envelopes: List[EnvelopeSchema] = []
    scheduled_payments: List[ScheduledPaymentSchema] = []
    pay_settings: PayDaySettingsSchema = PayDaySettingsSchema()
    scenario: Optional[ScenarioSchema] = None


class ProjectionEventSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class ProjectionWarningSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    kind: WarningKind
    message: str
    reference_id: Optional[str] = None
    subject_id: Optional[str] = None


class EnvelopeProjectionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class AccountProjectionSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: str
    account_name: str
    projected_balance_cents: int
    assigned_cents: int
    available_cents: int
    envelope_projections: List[EnvelopeProjectionSchema]


class ProjectionResponse(BaseModel):
    """Response for POST /v1/projection"""

    model_config = ConfigDict(from_attributes=True)

    projection_date: date
    account_projections: Dict[str, AccountProjectionSchema]
    timeline: List[ProjectionEventSchema]
    total_available_cents: int
    total_assigned_cents: int
    total_spent_cents: int
    warnings: List[ProjectionWarningSchema]


# --- Allocation ---


class RecommendRequest(BaseModel):
    """Request body for POST /v1/allocation/recommend"""

    starting_cents: int
    target_cents: int
    due_date: date
    pay_frequency: PayFrequency
    bill_frequency: FrequencySchema
    next_pay_date: Optional[date] = None
    pay_day_of_month: Optional[int] = Field(None, ge=1, le=31)


class RecommendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    recommended_cents: int
    is_in_steady_state: bool
    periods_until_due: int
    periods_per_cycle: int
    gap_cents: int
    phase: AllocationPhase


class HorizonGoalSchema(BaseModel):
    target_cents: int
    target_date: Optional[date] = None
    mode: HorizonMode = HorizonMode.DATE
    percentage: Optional[float] = Field(None, ge=0, le=100)
    fixed_cents: Optional[int] = None

    def to_domain(self) -> HorizonGoal:
        return HorizonGoal(**self.model_dump())


class AutopilotGoalSchema(BaseModel):
    amount_cents: int
    frequency: FrequencySchema
    first_date: Optional[date] = None

    def to_domain(self) -> AutopilotGoal:
        return AutopilotGoal(
            amount_cents=self.amount_cents,
            frequency=self.frequency.to_domain(),
            first_date=self.first_date,
        )


class GoalsRequest(BaseModel):
    """Request body for POST /v1/allocation/goals"""

    starting_cents: int = 0
    pay_settings: PayDaySettingsSchema
    horizon: Optional[HorizonGoalSchema] = None
    autopilot: Optional[AutopilotGoalSchema] = None
    existing_commitments_cents: int = 0
    account_balance_cents: Optional[int] = None
    manual_override_cents: Optional[int] = None


class SetupPhaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    initial_catch_up_cents: int
    ongoing_cents: int
    ends_on: Optional[date] = None
    periods_until_steady_state: int


class CoverageSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payments_covered: int
    always_covered: bool
    recommended_cents: int
    periods_per_bill: int
    status: CoverageStatus
    bill_before_payday: bool
    high_balance: bool


class AffordabilitySchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    percentage_of_income: Optional[float] = None
    available_income_cents: Optional[int] = None
    is_affordable: bool
    requires_current_balance: bool
    risky_bridge: bool
    shortfall_cents: int
    periods_of_coverage: Optional[int] = None
    over_allocated: bool


class GoalsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    cash_flow_cents: int
    horizon_periods: Optional[int] = None
    autopilot_periods: Optional[int] = None
    autopilot_before_payday: bool
    horizon_effective_starting_cents: int
    autopilot_effective_starting_cents: int
    next_pay_date: date
    affordability: AffordabilitySchema
    projected_arrival_date: Optional[date] = None
    setup_phase: Optional[SetupPhaseSchema] = None
    coverage: Optional[CoverageSchema] = None


class PercentagesRequest(BaseModel):
    """Request body for POST /v1/allocation/percentages"""

    model_config = ConfigDict(allow_inf_nan=False)

    entries: Dict[str, float] = Field(..., min_length=1)
    changed_id: str
    new_value: float
    total_cents: Optional[int] = Field(None, ge=0, description="Contribution to split, in cents")


class PercentagesResponse(BaseModel):
    entries: Dict[str, float]
    contributions: Optional[Dict[str, int]] = None
