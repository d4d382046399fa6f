"""Gem ledger: append-only earn/spend accounting.

The ledger is a pure value (GemLedger).  ``earn`` and ``spend`` return a
NEW ledger plus the transaction they appended; the old ledger is left as
it was, so a caller that fails later simply drops the new value and
nothing was recorded.

BALANCE vs HISTORY
------------------
Only the last ``history_limit`` transactions are retained.  The running
totals (balance, total_earned, total_spent, transaction_count) live next
to the log and are updated on every append, so pruning old entries never
changes the balance.  ``balance_from_transactions`` rebuilds a balance
from a complete, unpruned log, which is how tests check conservation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import replace

from skilltree.core.errors import DataIntegrityError, InvalidInputError
from skilltree.models.gems import (
    GemLedger,
    GemReason,
    GemTransaction,
    InsufficientFunds,
    TransactionType,
)

DEFAULT_HISTORY_LIMIT = 100


def _require_amount(amount: object) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidInputError(f"amount must be an integer (got {amount!r})")
    if amount <= 0:
        raise InvalidInputError(f"amount must be positive (got {amount})")
    return amount


def _append(
    ledger: GemLedger,
    type: TransactionType,
    amount: int,
    reason: GemReason,
    timestamp: int,
    history_limit: int,
) -> tuple[GemLedger, GemTransaction]:
    if type is TransactionType.EARN:
        balance = ledger.balance + amount
        earned, spent = ledger.total_earned + amount, ledger.total_spent
    else:
        balance = ledger.balance - amount
        earned, spent = ledger.total_earned, ledger.total_spent + amount

    count = ledger.transaction_count + 1
    transaction = GemTransaction(
        id=f"gem-{count:06d}",
        type=type,
        amount=amount,
        reason=reason,
        timestamp=timestamp,
        balance_after=balance,
    )
    history = (ledger.history + (transaction,))[-history_limit:]
    return (
        GemLedger(
            balance=balance,
            total_earned=earned,
            total_spent=spent,
            transaction_count=count,
            history=history,
        ),
        transaction,
    )


def earn(
    ledger: GemLedger,
    amount: int,
    reason: GemReason,
    *,
    timestamp: int,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> tuple[GemLedger, GemTransaction]:
    """Post ``amount`` gems and return the new ledger with its transaction.

    Every recorded transaction carries a positive amount, so an earn of 0
    raises InvalidInputError rather than appending an empty entry.
    """
    _require_amount(amount)
    return _append(
        ledger, TransactionType.EARN, amount, reason, timestamp, history_limit
    )


def spend(
    ledger: GemLedger,
    amount: int,
    reason: GemReason,
    *,
    timestamp: int,
    history_limit: int = DEFAULT_HISTORY_LIMIT,
) -> tuple[GemLedger, GemTransaction] | InsufficientFunds:
    """Spend gems, or return InsufficientFunds and append nothing."""
    _require_amount(amount)
    if ledger.balance < amount:
        return InsufficientFunds(requested=amount, balance=ledger.balance)
    return _append(
        ledger, TransactionType.SPEND, amount, reason, timestamp, history_limit
    )


def prune(ledger: GemLedger, history_limit: int) -> GemLedger:
    """Trim retained history; totals are untouched."""
    if len(ledger.history) <= history_limit:
        return ledger
    return replace(ledger, history=ledger.history[-history_limit:])


def balance_from_transactions(transactions: Iterable[GemTransaction]) -> int:
    balance = 0
    for tx in transactions:
        balance += tx.amount if tx.type is TransactionType.EARN else -tx.amount
    return balance


def check_ledger_invariants(ledger: GemLedger) -> None:
    """Raise DataIntegrityError if the totals or the retained chain disagree."""
    if ledger.balance < 0:
        raise DataIntegrityError(f"negative gem balance {ledger.balance}")
    if ledger.balance != ledger.total_earned - ledger.total_spent:
        raise DataIntegrityError(
            f"balance {ledger.balance} != earned {ledger.total_earned} "
            f"- spent {ledger.total_spent}"
        )
    if len(ledger.history) > ledger.transaction_count:
        raise DataIntegrityError("ledger retains more entries than it ever recorded")

    previous: GemTransaction | None = None
    for tx in ledger.history:
        if tx.balance_after < 0:
            raise DataIntegrityError(f"transaction {tx.id} leaves a negative balance")
        if previous is not None:
            delta = tx.amount if tx.type is TransactionType.EARN else -tx.amount
            if tx.balance_after != previous.balance_after + delta:
                raise DataIntegrityError(f"transaction {tx.id} breaks the balance chain")
        previous = tx
    if previous is not None and previous.balance_after != ledger.balance:
        raise DataIntegrityError("latest transaction disagrees with the running balance")
