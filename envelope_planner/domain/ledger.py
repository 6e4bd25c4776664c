"""Direct ledger operations - account/envelope balance changes with paired transaction records"""

import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import List, Optional, Tuple

from envelope_planner.domain.exceptions import (
    AccountNotFoundError,
    InsufficientFundsError,
    InvalidInputError,
)
from envelope_planner.domain.models import (
    Account,
    Envelope,
    FlowDirection,
    FlowImpact,
    Transaction,
    TransactionKind,
)

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


def _require_positive(amount_cents: int) -> None:
    if amount_cents <= 0:
        raise InvalidInputError(f"Amount must be positive, got {amount_cents}")


def _spendable(account: Account) -> int:
    """Balance plus any credit line"""
    return account.balance_cents + (account.credit_limit_cents or 0)


def deposit(
    account: Account, amount_cents: int, description: str = "Deposit", on: Optional[date] = None
) -> Tuple[Account, Transaction]:
    """Money entering the system into an account"""
    _require_positive(amount_cents)
    updated = replace(account, balance_cents=account.balance_cents + amount_cents)
    transaction = Transaction(
        id=_new_id(),
        kind=TransactionKind.DEPOSIT,
        amount_cents=amount_cents,
        date=on or date.today(),
        description=description,
        impact=FlowImpact.EXTERNAL,
        direction=FlowDirection.INFLOW,
        account_id=account.id,
    )
    logger.info("Deposit", extra={"account_id": account.id, "amount_cents": amount_cents})
    return updated, transaction


def withdraw(
    account: Account, amount_cents: int, description: str = "Withdrawal", on: Optional[date] = None
) -> Tuple[Account, Transaction]:
    """Money leaving the system; may overdraw up to the credit limit"""
    _require_positive(amount_cents)
    if amount_cents > _spendable(account):
        raise InsufficientFundsError(
            f"Insufficient funds in {account.name}: {_spendable(account)} available, {amount_cents} requested"
        )

    updated = replace(account, balance_cents=account.balance_cents - amount_cents)
    transaction = Transaction(
        id=_new_id(),
        kind=TransactionKind.WITHDRAWAL,
        amount_cents=amount_cents,
        date=on or date.today(),
        description=description,
        impact=FlowImpact.EXTERNAL,
        direction=FlowDirection.OUTFLOW,
        account_id=account.id,
    )
    logger.info("Withdrawal", extra={"account_id": account.id, "amount_cents": amount_cents})
    return updated, transaction


def _transfer_pair(
    amount_cents: int,
    on: date,
    description: str,
    source_account_id: Optional[str] = None,
    destination_account_id: Optional[str] = None,
    destination_envelope_id: Optional[str] = None,
) -> List[Transaction]:
    link_id = _new_id()
    common = dict(
        kind=TransactionKind.TRANSFER,
        amount_cents=amount_cents,
        date=on,
        description=description,
        impact=FlowImpact.INTERNAL,
        direction=FlowDirection.MOVE,
        transfer_link_id=link_id,
    )
    return [
        Transaction(id=_new_id(), account_id=source_account_id, transfer_direction="out", **common),
        Transaction(
            id=_new_id(),
            account_id=destination_account_id,
            envelope_id=destination_envelope_id,
            transfer_direction="in",
            **common,
        ),
    ]


def transfer(
    source: Account,
    destination: Account,
    amount_cents: int,
    description: str = "Transfer",
    on: Optional[date] = None,
) -> Tuple[Account, Account, List[Transaction]]:
    """
    Move money between two accounts.

    Produces an out/in transaction pair sharing a transfer_link_id; the total
    across both accounts is unchanged.
    """
    _require_positive(amount_cents)
    if source.id == destination.id:
        raise InvalidInputError("Cannot transfer an account to itself")
    if amount_cents > _spendable(source):
        raise InsufficientFundsError(f"Insufficient funds in {source.name}")

    updated_source = replace(source, balance_cents=source.balance_cents - amount_cents)
    updated_destination = replace(destination, balance_cents=destination.balance_cents + amount_cents)
    transactions = _transfer_pair(
        amount_cents,
        on or date.today(),
        description,
        source_account_id=source.id,
        destination_account_id=destination.id,
    )

    logger.info(
        "Transfer",
        extra={"source_id": source.id, "destination_id": destination.id, "amount_cents": amount_cents},
    )
    return updated_source, updated_destination, transactions


def transfer_to_envelope(
    account: Account,
    envelope: Envelope,
    amount_cents: int,
    description: Optional[str] = None,
    on: Optional[date] = None,
) -> Tuple[Account, Envelope, List[Transaction]]:
    """Fund an envelope from an account; only the account balance is spendable here, not credit"""
    _require_positive(amount_cents)
    if account.balance_cents < amount_cents:
        raise InsufficientFundsError(f"Insufficient funds in {account.name}")

    updated_account = replace(account, balance_cents=account.balance_cents - amount_cents)
    updated_envelope = replace(envelope, current_cents=envelope.current_cents + amount_cents)
    transactions = _transfer_pair(
        amount_cents,
        on or date.today(),
        description or f"Transfer to {envelope.name}",
        source_account_id=account.id,
        destination_envelope_id=envelope.id,
    )

    logger.info(
        "Envelope funded",
        extra={"account_id": account.id, "envelope_id": envelope.id, "amount_cents": amount_cents},
    )
    return updated_account, updated_envelope, transactions


def set_default_account(accounts: List[Account], account_id: str) -> List[Account]:
    """Mark one account as default and clear the flag on every other"""
    if not any(a.id == account_id for a in accounts):
        raise AccountNotFoundError(f"Account not found: {account_id}")
    return [replace(a, is_default=a.id == account_id) for a in accounts]


def assigned_amount(account: Account, envelopes: List[Envelope]) -> int:
    """Per-payday cash flow committed by envelopes linked to this account"""
    return sum(
        e.cash_flow_cents or 0
        for e in envelopes
        if e.linked_account_id == account.id and e.cash_flow_enabled
    )


def available_amount(account: Account, envelopes: List[Envelope]) -> int:
    return account.balance_cents - assigned_amount(account, envelopes)
