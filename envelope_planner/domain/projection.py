"""Projection timeline simulator - replays income, bills and cash flow up to a target date"""

import logging
from datetime import date, timedelta
from typing import Dict, List, Optional, Set, Tuple

from envelope_planner.config import settings
from envelope_planner.domain.exceptions import InvalidTargetDateError
from envelope_planner.domain.models import (
    Account,
    AccountProjection,
    Envelope,
    EnvelopeProjection,
    EventType,
    FlowDirection,
    PayDaySettings,
    ProjectionEvent,
    ProjectionResult,
    ProjectionWarning,
    Scenario,
    ScheduledPayment,
    WarningKind,
)
from envelope_planner.domain.pay_days import pay_days_between
from envelope_planner.domain.recurrence import occurrences_between, temporary_occurrences_between

logger = logging.getLogger(__name__)

# Same-date order: income lands (and fills envelopes) before anything is paid out
EVENT_PRIORITY = {
    EventType.PAY_DAY: 0,
    EventType.TEMPORARY_INCOME: 1,
    EventType.SCHEDULED_PAYMENT: 2,
    EventType.TEMPORARY_EXPENSE: 3,
}

INCOME_EVENTS = (EventType.PAY_DAY, EventType.TEMPORARY_INCOME)


class _Simulation:
    """Mutable balance maps for a single project() call; discarded afterwards"""

    def __init__(
        self,
        accounts: List[Account],
        envelopes: List[Envelope],
        pay_settings: PayDaySettings,
        scenario: Scenario,
        today: date,
        target_date: date,
    ):
        self.accounts = accounts
        self.envelopes = envelopes
        self.pay_settings = pay_settings
        self.scenario = scenario
        self.today = today
        self.target_date = target_date
        self.range_start = today + timedelta(days=1)

        self.accounts_by_id: Dict[str, Account] = {a.id: a for a in accounts}
        self.envelopes_by_id: Dict[str, Envelope] = {e.id: e for e in envelopes}
        self.enabled_envelopes = [e for e in envelopes if scenario.is_enabled(e.id)]

        self.account_balances: Dict[str, int] = {a.id: a.balance_cents for a in accounts}
        self.envelope_balances: Dict[str, int] = {e.id: e.current_cents for e in self.enabled_envelopes}
        self.target_achieved: Dict[str, date] = {}
        self.total_spent = 0

        self.timeline: List[ProjectionEvent] = []
        self.warnings: List[ProjectionWarning] = []
        self._warned: Set[Tuple[WarningKind, Optional[str], Optional[str]]] = set()

        self.income_account = self._resolve_income_account()

    # --- helpers ---

    def warn(self, kind: WarningKind, message: str, reference_id: Optional[str], subject_id: Optional[str]) -> None:
        key = (kind, reference_id, subject_id)
        if key in self._warned:
            return
        self._warned.add(key)
        logger.warning(message, extra={"warning_kind": kind.value, "reference_id": reference_id, "subject_id": subject_id})
        self.warnings.append(
            ProjectionWarning(kind=kind, message=message, reference_id=reference_id, subject_id=subject_id)
        )

    def account_name(self, account_id: Optional[str]) -> str:
        account = self.accounts_by_id.get(account_id) if account_id else None
        return account.name if account else settings.default_account_name

    def known_account(self, account_id: Optional[str], subject_id: str) -> Optional[str]:
        """account_id when it exists in the snapshot; warns and returns None otherwise"""
        if account_id is None:
            return None
        if account_id in self.accounts_by_id:
            return account_id
        self.warn(WarningKind.MISSING_ACCOUNT, f"Account {account_id} not found", account_id, subject_id)
        return None

    def _resolve_income_account(self) -> Optional[Account]:
        default_id = self.pay_settings.default_account_id
        if default_id:
            if default_id in self.accounts_by_id:
                return self.accounts_by_id[default_id]
            self.warn(WarningKind.MISSING_ACCOUNT, f"Pay-day account {default_id} not found", default_id, None)
        for account in self.accounts:
            if account.is_default:
                return account
        return self.accounts[0] if self.accounts else None

    def _check_cap(self, dates: List[date], subject_id: Optional[str]) -> None:
        if len(dates) >= settings.max_recurrence_iterations:
            self.warn(
                WarningKind.ITERATION_CAP,
                "Recurrence truncated at iteration cap",
                None,
                subject_id,
            )

    # --- event generation ---

    def build_events(self, scheduled_payments: List[ScheduledPayment]) -> List[ProjectionEvent]:
        events: List[ProjectionEvent] = []
        events.extend(self._pay_day_events())
        events.extend(self._scheduled_payment_events(scheduled_payments))
        events.extend(self._temporary_events())

        # Stable sort keeps generation order within a (date, priority) bucket
        return sorted(events, key=lambda e: (e.date, EVENT_PRIORITY[e.type]))

    def _pay_day_events(self) -> List[ProjectionEvent]:
        pay_cents = self.scenario.custom_pay_cents
        if pay_cents is None:
            pay_cents = self.pay_settings.expected_pay_cents
        pay_frequency = self.scenario.custom_pay_frequency or self.pay_settings.pay_frequency

        pay_dates = pay_days_between(self.pay_settings, self.range_start, self.target_date, pay_frequency)
        self._check_cap(pay_dates, None)

        account_id = self.income_account.id if self.income_account else None
        return [
            ProjectionEvent(
                date=pay_date,
                type=EventType.PAY_DAY,
                description="Pay day",
                amount_cents=pay_cents,
                is_credit=True,
                is_external=True,  # money from employer
                direction=FlowDirection.INFLOW,
                account_id=account_id,
                account_name=self.account_name(account_id),
            )
            for pay_date in pay_dates
        ]

    def _scheduled_payment_events(self, scheduled_payments: List[ScheduledPayment]) -> List[ProjectionEvent]:
        events: List[ProjectionEvent] = []
        income_account_id = self.income_account.id if self.income_account else None

        for payment in scheduled_payments:
            envelope_name = None
            if payment.envelope_id is not None:
                envelope = self.envelopes_by_id.get(payment.envelope_id)
                if envelope is None:
                    self.warn(
                        WarningKind.ORPHANED_SCHEDULED_PAYMENT,
                        f"Scheduled payment {payment.id} references missing envelope {payment.envelope_id}",
                        payment.envelope_id,
                        payment.id,
                    )
                    continue
                if not self.scenario.is_enabled(envelope.id):
                    continue
                envelope_name = envelope.name
                account_id = envelope.linked_account_id
            elif payment.account_id is not None:
                account_id = self.known_account(payment.account_id, payment.id)
                if account_id is None:
                    continue
            else:
                account_id = income_account_id

            override = self.scenario.scheduled_payment_date_overrides.get(payment.id)
            if override is not None:
                # An override replaces the recurrence, it does not add to it
                occurrences = [override] if self.range_start <= override <= self.target_date else []
            else:
                occurrences = occurrences_between(
                    payment.next_due_date,
                    payment.frequency_value,
                    payment.frequency_unit,
                    self.range_start,
                    self.target_date,
                )
                self._check_cap(occurrences, payment.id)

            for occurrence in occurrences:
                events.append(
                    ProjectionEvent(
                        date=occurrence,
                        type=EventType.SCHEDULED_PAYMENT,
                        description=payment.name,
                        amount_cents=payment.amount_cents,
                        is_credit=False,
                        is_external=True,  # bill paid to a vendor
                        direction=FlowDirection.OUTFLOW,
                        envelope_id=payment.envelope_id,
                        envelope_name=envelope_name,
                        account_id=account_id,
                        account_name=self.account_name(account_id) if account_id else None,
                    )
                )

        return events

    def _temporary_events(self) -> List[ProjectionEvent]:
        events: List[ProjectionEvent] = []
        income_account_id = self.income_account.id if self.income_account else None

        for item in self.scenario.temporary_items:
            if item.linked_account_id is not None:
                account_id = self.known_account(item.linked_account_id, item.id)
            else:
                account_id = income_account_id

            envelope_id = None
            envelope_name = None
            if not item.is_income and item.envelope_id is not None:
                envelope = self.envelopes_by_id.get(item.envelope_id)
                if envelope is None:
                    self.warn(
                        WarningKind.ORPHANED_SCHEDULED_PAYMENT,
                        f"Temporary expense {item.id} references missing envelope {item.envelope_id}",
                        item.envelope_id,
                        item.id,
                    )
                    continue
                if not self.scenario.is_enabled(envelope.id):
                    continue
                envelope_id = envelope.id
                envelope_name = envelope.name

            for occurrence in temporary_occurrences_between(item, self.range_start, self.target_date):
                events.append(
                    ProjectionEvent(
                        date=occurrence,
                        type=EventType.TEMPORARY_INCOME if item.is_income else EventType.TEMPORARY_EXPENSE,
                        description=item.name,
                        amount_cents=item.amount_cents,
                        is_credit=item.is_income,
                        is_external=True,
                        direction=FlowDirection.INFLOW if item.is_income else FlowDirection.OUTFLOW,
                        envelope_id=envelope_id,
                        envelope_name=envelope_name,
                        account_id=account_id,
                        account_name=self.account_name(account_id),
                    )
                )

        return events

    # --- replay ---

    def replay(self, events: List[ProjectionEvent]) -> None:
        for event in events:
            self.timeline.append(event)
            if event.type in INCOME_EVENTS:
                self._apply_income(event)
            elif not event.is_credit:
                self._apply_outflow(event)

    def _apply_income(self, event: ProjectionEvent) -> None:
        if event.account_id in self.account_balances:
            self.account_balances[event.account_id] += event.amount_cents

        for envelope in self.enabled_envelopes:
            override = self.scenario.envelope_settings.get(envelope.id)
            enabled = envelope.cash_flow_enabled
            amount = envelope.cash_flow_cents or 0
            if override is not None:
                if override.cash_flow_enabled is not None:
                    enabled = override.cash_flow_enabled
                if override.cash_flow_cents is not None:
                    amount = override.cash_flow_cents
            if not enabled or amount <= 0:
                continue

            # The envelope's own account bears the debit when it exists
            bearing_account_id = (
                envelope.linked_account_id
                if envelope.linked_account_id in self.account_balances
                else event.account_id
            )
            bearing_account_name = self.account_name(bearing_account_id)

            self.envelope_balances[envelope.id] += amount
            self._record_target_crossing(envelope, event.date)
            if bearing_account_id in self.account_balances:
                self.account_balances[bearing_account_id] -= amount

            self.timeline.append(
                ProjectionEvent(
                    date=event.date,
                    type=EventType.CASH_FLOW,
                    description=f"Cash flow from {bearing_account_name}",
                    amount_cents=amount,
                    is_credit=True,
                    is_external=False,  # account -> envelope
                    direction=FlowDirection.MOVE,
                    envelope_id=envelope.id,
                    envelope_name=envelope.name,
                    account_id=bearing_account_id,
                    account_name=bearing_account_name,
                )
            )
            self.timeline.append(
                ProjectionEvent(
                    date=event.date,
                    type=EventType.ENVELOPE_CASH_FLOW_WITHDRAWAL,
                    description=f"Cash flow to {envelope.name}",
                    amount_cents=amount,
                    is_credit=False,
                    is_external=False,
                    direction=FlowDirection.MOVE,
                    envelope_name=envelope.name,
                    account_id=bearing_account_id,
                    account_name=bearing_account_name,
                )
            )

    def _apply_outflow(self, event: ProjectionEvent) -> None:
        if event.envelope_id is not None:
            if event.envelope_id in self.envelope_balances:
                self.envelope_balances[event.envelope_id] -= event.amount_cents
                self.total_spent += event.amount_cents
            return

        if event.account_id in self.account_balances:
            self.account_balances[event.account_id] -= event.amount_cents
            self.total_spent += event.amount_cents

    def _record_target_crossing(self, envelope: Envelope, on: date) -> None:
        """First date the balance reaches the target; never overwritten"""
        target = envelope.target_cents
        if not target or target <= 0 or envelope.id in self.target_achieved:
            return
        if self.envelope_balances[envelope.id] >= target:
            self.target_achieved[envelope.id] = on

    # --- results ---

    def _envelope_projection(self, envelope: Envelope) -> EnvelopeProjection:
        projected = self.scenario.envelope_overrides.get(envelope.id, self.envelope_balances[envelope.id])
        target = envelope.target_cents or 0
        has_target = target > 0
        will_meet_target = has_target and projected >= target
        achieved = self.target_achieved.get(envelope.id)

        return EnvelopeProjection(
            envelope_id=envelope.id,
            envelope_name=envelope.name,
            current_cents=envelope.current_cents,
            projected_cents=projected,
            target_cents=target,
            has_target=has_target,
            will_meet_target=will_meet_target,
            target_date=envelope.target_date,
            target_achieved_date=achieved,
            overachievement_cents=projected - target if will_meet_target else None,
            days_until_target=(achieved - self.today).days if achieved else None,
            days_before_target_date=(
                (envelope.target_date - achieved).days if achieved and envelope.target_date else None
            ),
        )

    def build_result(self) -> ProjectionResult:
        account_projections: Dict[str, AccountProjection] = {}
        total_available = 0
        total_assigned = 0

        for account in self.accounts:
            envelope_projections = [
                self._envelope_projection(e) for e in self.enabled_envelopes if e.linked_account_id == account.id
            ]
            assigned = sum(p.projected_cents for p in envelope_projections)
            balance = self.account_balances[account.id]
            available = balance - assigned

            account_projections[account.id] = AccountProjection(
                account_id=account.id,
                account_name=account.name,
                projected_balance_cents=balance,
                assigned_cents=assigned,
                available_cents=available,
                envelope_projections=envelope_projections,
            )
            total_available += available
            total_assigned += assigned

        unlinked = []
        for envelope in self.enabled_envelopes:
            if not envelope.linked_account_id:
                unlinked.append(envelope)
            elif envelope.linked_account_id not in self.accounts_by_id:
                self.known_account(envelope.linked_account_id, envelope.id)
                unlinked.append(envelope)

        if unlinked:
            envelope_projections = [self._envelope_projection(e) for e in unlinked]
            assigned = sum(p.projected_cents for p in envelope_projections)
            account_projections[settings.unlinked_account_id] = AccountProjection(
                account_id=settings.unlinked_account_id,
                account_name=settings.unlinked_account_name,
                projected_balance_cents=assigned,
                assigned_cents=assigned,
                available_cents=0,  # no account balance to measure against
                envelope_projections=envelope_projections,
            )
            total_assigned += assigned

        return ProjectionResult(
            projection_date=self.target_date,
            account_projections=account_projections,
            timeline=self.timeline,
            total_available_cents=total_available,
            total_assigned_cents=total_assigned,
            total_spent_cents=self.total_spent,
            warnings=self.warnings,
        )


def project(
    target_date: date,
    accounts: List[Account],
    envelopes: List[Envelope],
    scheduled_payments: List[ScheduledPayment],
    pay_settings: PayDaySettings,
    scenario: Optional[Scenario] = None,
    today: Optional[date] = None,
) -> ProjectionResult:
    """
    Simulate balances forward to target_date.

    Flow:
    1. Seed account/envelope balances (scenario-disabled envelopes are left out)
    2. Generate pay days, scheduled-payment occurrences and what-if items
       strictly after today up to and including target_date
    3. Sort by date, then income before outflows
    4. Replay: income credits its account and fills every cash-flow envelope;
       bills and expenses debit their envelope or account and count as spent
    5. Aggregate per-account results plus an unlinked pseudo-account

    Dangling references are skipped and reported in ProjectionResult.warnings.
    """
    if today is None:
        today = date.today()

    if target_date <= today:
        raise InvalidTargetDateError("Target date must be in the future")

    simulation = _Simulation(
        accounts=accounts,
        envelopes=envelopes,
        pay_settings=pay_settings,
        scenario=scenario or Scenario(),
        today=today,
        target_date=target_date,
    )
    events = simulation.build_events(scheduled_payments)
    simulation.replay(events)
    return simulation.build_result()
