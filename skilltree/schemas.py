"""Pydantic shapes at the engine's edges.

Inbound:   catalog records and completion events from collaborators.
Outbound:  progress snapshots and ledger views for rendering.
Stored:    the JSON document a key-value store keeps per learner.

Domain code never sees these models; each one converts to or from the
frozen dataclasses in ``skilltree.models`` at the boundary.
"""

from __future__ import annotations

import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, StrictInt

from skilltree.models.catalog import SkillEdge, SkillNode
from skilltree.models.gems import (
    GemLedger,
    GemReason,
    GemTransaction,
    LedgerStats,
    TransactionType,
)
from skilltree.models.learner import LearnerState, Streak, XpProgress
from skilltree.models.progress import CompletionEvent, NodeStatus, ProgressRecord

# ---------------------------------------------------------------------------
# Inbound
# ---------------------------------------------------------------------------


class CatalogNodeIn(BaseModel):
    # Content-management exports carry many presentation fields we ignore.
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(min_length=1)
    prerequisites: list[str] = Field(default_factory=list)
    base_xp: StrictInt = Field(
        default=0, ge=0, validation_alias=AliasChoices("base_xp", "baseXP", "xpReward")
    )
    is_checkpoint: bool = Field(
        default=False, validation_alias=AliasChoices("is_checkpoint", "isCheckpoint")
    )
    title: str = ""
    category: str = Field(
        default="", validation_alias=AliasChoices("category", "categoryId")
    )
    position: int = 0

    def to_domain(self) -> SkillNode:
        return SkillNode(
            id=self.id,
            prerequisites=frozenset(self.prerequisites),
            base_xp=self.base_xp,
            is_checkpoint=self.is_checkpoint,
            title=self.title,
            category=self.category,
            position=self.position,
        )


class CatalogEdgeIn(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    from_node: str = Field(validation_alias=AliasChoices("from_node", "from"))
    to_node: str = Field(validation_alias=AliasChoices("to_node", "to"))

    def to_domain(self) -> SkillEdge:
        return SkillEdge(from_node=self.from_node, to_node=self.to_node)


class CompletionEventIn(BaseModel):
    learner_id: str = Field(min_length=1)
    node_id: str = Field(min_length=1)
    score: StrictInt
    occurred_at: int | None = None  # epoch seconds; None = now

    def to_domain(self, now: int) -> CompletionEvent:
        return CompletionEvent(
            learner_id=self.learner_id,
            node_id=self.node_id,
            score=self.score,
            occurred_at=self.occurred_at if self.occurred_at is not None else now,
        )


# ---------------------------------------------------------------------------
# Outbound / stored
# ---------------------------------------------------------------------------


class ProgressRecordOut(BaseModel):
    node_id: str
    status: NodeStatus
    stars: int = Field(ge=0, le=3)
    best_score: int = Field(ge=0, le=100)
    attempts: int = Field(ge=0)
    completed_at: int | None = None

    @staticmethod
    def from_domain(record: ProgressRecord) -> ProgressRecordOut:
        return ProgressRecordOut(
            node_id=record.node_id,
            status=record.status,
            stars=record.stars,
            best_score=record.best_score,
            attempts=record.attempts,
            completed_at=record.completed_at,
        )

    def to_domain(self) -> ProgressRecord:
        return ProgressRecord(
            node_id=self.node_id,
            status=self.status,
            stars=self.stars,
            best_score=self.best_score,
            attempts=self.attempts,
            completed_at=self.completed_at,
        )


class GemTransactionOut(BaseModel):
    id: str
    type: TransactionType
    amount: int = Field(gt=0)
    category: str
    description: str
    timestamp: int
    balance_after: int = Field(ge=0)

    @staticmethod
    def from_domain(tx: GemTransaction) -> GemTransactionOut:
        return GemTransactionOut(
            id=tx.id,
            type=tx.type,
            amount=tx.amount,
            category=tx.reason.category,
            description=tx.reason.description,
            timestamp=tx.timestamp,
            balance_after=tx.balance_after,
        )

    def to_domain(self) -> GemTransaction:
        return GemTransaction(
            id=self.id,
            type=self.type,
            amount=self.amount,
            reason=GemReason(self.category, self.description),
            timestamp=self.timestamp,
            balance_after=self.balance_after,
        )


class LedgerStatsOut(BaseModel):
    total_earned: int
    total_spent: int
    balance: int
    transaction_count: int

    @staticmethod
    def from_domain(stats: LedgerStats) -> LedgerStatsOut:
        return LedgerStatsOut(
            total_earned=stats.total_earned,
            total_spent=stats.total_spent,
            balance=stats.balance,
            transaction_count=stats.transaction_count,
        )


class LearnerStateDoc(BaseModel):
    """The per-learner document persisted in the key-value store."""

    learner_id: str
    version: int = Field(default=0, ge=0)
    progress: list[ProgressRecordOut] = Field(default_factory=list)

    gem_balance: int = Field(default=0, ge=0)
    gems_earned: int = Field(default=0, ge=0)
    gems_spent: int = Field(default=0, ge=0)
    gem_transaction_count: int = Field(default=0, ge=0)
    gem_history: list[GemTransactionOut] = Field(default_factory=list)

    total_xp: int = Field(default=0, ge=0)
    level: int = Field(default=1, ge=1)
    xp_in_level: int = Field(default=0, ge=0)
    xp_for_next_level: int = Field(default=100, gt=0)
    daily_xp_day: datetime.date | None = None
    daily_xp: int = Field(default=0, ge=0)

    streak: int = Field(default=0, ge=0)
    best_streak: int = Field(default=0, ge=0)
    last_active_on: datetime.date | None = None

    claims: dict[str, datetime.date] = Field(default_factory=dict)

    @staticmethod
    def from_domain(state: LearnerState) -> LearnerStateDoc:
        return LearnerStateDoc(
            learner_id=state.learner_id,
            version=state.version,
            progress=[ProgressRecordOut.from_domain(r) for r in state.progress.values()],
            gem_balance=state.ledger.balance,
            gems_earned=state.ledger.total_earned,
            gems_spent=state.ledger.total_spent,
            gem_transaction_count=state.ledger.transaction_count,
            gem_history=[GemTransactionOut.from_domain(t) for t in state.ledger.history],
            total_xp=state.xp.total_xp,
            level=state.xp.level,
            xp_in_level=state.xp.xp_in_level,
            xp_for_next_level=state.xp.xp_for_next_level,
            daily_xp_day=state.xp.daily_xp_day,
            daily_xp=state.xp.daily_xp,
            streak=state.streak.current,
            best_streak=state.streak.best,
            last_active_on=state.streak.last_active_on,
            claims=dict(state.claims),
        )

    def to_domain(self) -> LearnerState:
        return LearnerState(
            learner_id=self.learner_id,
            version=self.version,
            progress={r.node_id: r.to_domain() for r in self.progress},
            ledger=GemLedger(
                balance=self.gem_balance,
                total_earned=self.gems_earned,
                total_spent=self.gems_spent,
                transaction_count=self.gem_transaction_count,
                history=tuple(t.to_domain() for t in self.gem_history),
            ),
            xp=XpProgress(
                total_xp=self.total_xp,
                level=self.level,
                xp_in_level=self.xp_in_level,
                xp_for_next_level=self.xp_for_next_level,
                daily_xp_day=self.daily_xp_day,
                daily_xp=self.daily_xp,
            ),
            streak=Streak(
                current=self.streak,
                best=self.best_streak,
                last_active_on=self.last_active_on,
            ),
            claims=dict(self.claims),
        )
