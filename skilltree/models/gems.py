from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class TransactionType(StrEnum):
    EARN = "earn"
    SPEND = "spend"


@dataclass(frozen=True, slots=True)
class GemReason:
    category: str  # module_completion|daily_login|streak_milestone|league_promotion|...
    description: str


@dataclass(frozen=True, slots=True)
class GemTransaction:
    """One immutable ledger entry.  balance_after is the running balance."""

    id: str
    type: TransactionType
    amount: int
    reason: GemReason
    timestamp: int
    balance_after: int


@dataclass(frozen=True, slots=True)
class InsufficientFunds:
    """Typed failure returned (never raised) when a spend exceeds the balance."""

    requested: int
    balance: int

    @property
    def shortfall(self) -> int:
        return self.requested - self.balance


@dataclass(frozen=True, slots=True)
class LedgerStats:
    total_earned: int
    total_spent: int
    balance: int
    transaction_count: int


@dataclass(frozen=True, slots=True)
class GemLedger:
    """Running totals plus a bounded tail of the transaction log.

    The totals are authoritative.  ``history`` keeps only the most recent
    entries, so the balance is never recomputed from it.
    """

    balance: int = 0
    total_earned: int = 0
    total_spent: int = 0
    transaction_count: int = 0
    history: tuple[GemTransaction, ...] = ()

    def stats(self) -> LedgerStats:
        return LedgerStats(
            total_earned=self.total_earned,
            total_spent=self.total_spent,
            balance=self.balance,
            transaction_count=self.transaction_count,
        )
