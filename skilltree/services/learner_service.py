"""The engine's front door: learner-scoped operations over a LearnerRepo.

Every mutating call runs the same cycle:

    load  → materialize against the catalog, prune ledger history
    apply → a pure function from services/ (completion, ledger, bonuses)
    check → progress and ledger invariants
    save  → compare-and-set on the learner's version

A ConcurrentUpdateError from the save means another process wrote the
learner in between; the whole cycle is retried from a fresh load, up to
``max_retries`` attempts.  Within one process a per-learner lock keeps
calls for the same learner in order, so retries only happen across
processes sharing a store.

Nothing is persisted when the apply step raises or returns the state it
was given (a rejected spend, a bonus already claimed today).  Metrics are
counted after the save succeeds, so a retried attempt is never counted
twice.
"""

from __future__ import annotations

import logging
import threading
import time
import weakref
from collections.abc import Callable
from dataclasses import replace
from typing import TypeVar

from skilltree.core.errors import ConcurrentUpdateError, InvalidInputError
from skilltree.core.metrics import (
    BONUS_CLAIMS,
    GEM_SPEND_REJECTED,
    GEM_TRANSACTIONS,
    NODE_COMPLETIONS,
    NODES_UNLOCKED,
    STORE_CONFLICTS,
)
from skilltree.models.catalog import Catalog, SkillEdge, SkillNode
from skilltree.models.gems import GemReason, GemTransaction, InsufficientFunds, LedgerStats
from skilltree.models.learner import LearnerState
from skilltree.models.progress import CompletionEvent
from skilltree.repos.learner_repo import LearnerRepo
from skilltree.schemas import CompletionEventIn
from skilltree.services import bonuses, completion, reports
from skilltree.services import ledger as gem_ledger
from skilltree.services.bonuses import StreakUpdate
from skilltree.services.completion import CompletionResult, utc_day
from skilltree.services.rewards import XpTable, league_key, purchase_cost
from skilltree.services.unlock import (
    check_progress_invariants,
    edge_statuses,
    materialize,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _require_learner_id(learner_id: object) -> str:
    if not isinstance(learner_id, str) or not learner_id.strip():
        raise InvalidInputError(f"learner_id must be a non-empty string (got {learner_id!r})")
    return learner_id


class SkillTreeService:
    def __init__(
        self,
        catalog: Catalog,
        repo: LearnerRepo,
        *,
        xp_table: XpTable = XpTable.MODULE_COMPLETION,
        history_limit: int = gem_ledger.DEFAULT_HISTORY_LIMIT,
        max_retries: int = 3,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if history_limit < 1:
            raise InvalidInputError(f"history_limit must be >= 1 (got {history_limit})")
        if max_retries < 1:
            raise InvalidInputError(f"max_retries must be >= 1 (got {max_retries})")
        self._catalog = catalog
        self._repo = repo
        self._xp_table = XpTable(xp_table)
        self._history_limit = history_limit
        self._max_retries = max_retries
        self._clock = clock

        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = (
            weakref.WeakValueDictionary()
        )
        self._locks_guard = threading.Lock()

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    # ------------------------------------------------------------------
    # Load / save cycle
    # ------------------------------------------------------------------

    def _now(self) -> int:
        return int(self._clock())

    def _lock_for(self, learner_id: str) -> threading.Lock:
        # Entries vanish once no caller references the lock.
        with self._locks_guard:
            lock = self._locks.get(learner_id)
            if lock is None:
                lock = self._locks[learner_id] = threading.Lock()
            return lock

    def _load(self, learner_id: str) -> LearnerState:
        stored = self._repo.load(learner_id)
        if stored is None:
            stored = LearnerState.new(learner_id)
        return replace(
            stored,
            progress=materialize(stored.progress, self._catalog),
            ledger=gem_ledger.prune(stored.ledger, self._history_limit),
        )

    def _mutate(
        self,
        learner_id: str,
        operation: str,
        apply: Callable[[LearnerState], tuple[LearnerState, T]],
    ) -> tuple[LearnerState, T]:
        _require_learner_id(learner_id)
        with self._lock_for(learner_id):
            for attempt in range(1, self._max_retries + 1):
                state = self._load(learner_id)
                new_state, result = apply(state)
                if new_state is state:
                    return state, result

                check_progress_invariants(new_state.progress, self._catalog)
                gem_ledger.check_ledger_invariants(new_state.ledger)
                try:
                    stored = self._repo.save(new_state)
                except ConcurrentUpdateError:
                    STORE_CONFLICTS.inc()
                    logger.warning(
                        "Learner state changed during %s (attempt %d/%d)",
                        operation,
                        attempt,
                        self._max_retries,
                        extra={
                            "learner_id": learner_id,
                            "operation": operation,
                            "version": state.version,
                        },
                    )
                    if attempt == self._max_retries:
                        raise
                    continue
                return stored, result
        raise AssertionError("unreachable")

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------

    def snapshot(self, learner_id: str) -> LearnerState:
        """Current state for a learner, materialized against the catalog."""
        return self._load(_require_learner_id(learner_id))

    def complete_node(
        self,
        learner_id: str,
        node_id: str,
        score: int,
        *,
        occurred_at: int | None = None,
    ) -> CompletionResult:
        timestamp = self._now() if occurred_at is None else occurred_at

        def apply(state: LearnerState) -> tuple[LearnerState, CompletionResult]:
            return completion.complete_node(
                self._catalog,
                state,
                node_id,
                score,
                occurred_at=timestamp,
                xp_table=self._xp_table,
                history_limit=self._history_limit,
            )

        try:
            stored, result = self._mutate(learner_id, "complete_node", apply)
        except InvalidInputError:
            logger.warning(
                "Rejected completion",
                extra={"learner_id": learner_id, "node_id": node_id, "operation": "complete_node"},
            )
            raise

        NODE_COMPLETIONS.labels(stars=str(result.stars)).inc()
        if result.unlocked_node_ids:
            NODES_UNLOCKED.inc(len(result.unlocked_node_ids))
        if result.transaction is not None:
            GEM_TRANSACTIONS.labels(type="earn").inc()
        logger.info(
            "Node attempt recorded (score=%d xp=%d gems=%d unlocked=%s)",
            result.score,
            result.xp_earned,
            result.gems_earned,
            ",".join(result.unlocked_node_ids) or "-",
            extra={
                "learner_id": learner_id,
                "node_id": node_id,
                "operation": "complete_node",
                "stars": result.stars,
                "version": stored.version,
            },
        )
        return result

    def submit(self, event: CompletionEvent | CompletionEventIn) -> CompletionResult:
        """Process a completion event from the assessment service."""
        if isinstance(event, CompletionEventIn):
            event = event.to_domain(self._now())
        return self.complete_node(
            event.learner_id, event.node_id, event.score, occurred_at=event.occurred_at
        )

    def start_node(self, learner_id: str, node_id: str) -> LearnerState:
        stored, _ = self._mutate(
            learner_id,
            "start_node",
            lambda state: (completion.start_node(self._catalog, state, node_id), None),
        )
        logger.debug(
            "Node started",
            extra={"learner_id": learner_id, "node_id": node_id, "operation": "start_node"},
        )
        return stored

    # ------------------------------------------------------------------
    # Gems
    # ------------------------------------------------------------------

    def earn_gems(self, learner_id: str, amount: int, reason: GemReason) -> GemTransaction:
        timestamp = self._now()
        _, tx = self._mutate(
            learner_id,
            "earn_gems",
            lambda state: self._earn(state, amount, reason, timestamp),
        )
        GEM_TRANSACTIONS.labels(type="earn").inc()
        logger.info(
            "Gems earned (%s)",
            reason.category,
            extra={"learner_id": learner_id, "operation": "earn_gems", "amount": amount},
        )
        return tx

    def _earn(
        self, state: LearnerState, amount: int, reason: GemReason, timestamp: int
    ) -> tuple[LearnerState, GemTransaction]:
        ledger, tx = gem_ledger.earn(
            state.ledger,
            amount,
            reason,
            timestamp=timestamp,
            history_limit=self._history_limit,
        )
        return replace(state, ledger=ledger), tx

    def spend_gems(
        self, learner_id: str, amount: int, reason: GemReason
    ) -> GemTransaction | InsufficientFunds:
        """Spend gems.  A short balance is returned as InsufficientFunds, not raised."""
        timestamp = self._now()

        def apply(
            state: LearnerState,
        ) -> tuple[LearnerState, GemTransaction | InsufficientFunds]:
            outcome = gem_ledger.spend(
                state.ledger,
                amount,
                reason,
                timestamp=timestamp,
                history_limit=self._history_limit,
            )
            if isinstance(outcome, InsufficientFunds):
                return state, outcome
            ledger, tx = outcome
            return replace(state, ledger=ledger), tx

        _, outcome = self._mutate(learner_id, "spend_gems", apply)
        context = {"learner_id": learner_id, "operation": "spend_gems", "amount": amount}
        if isinstance(outcome, InsufficientFunds):
            GEM_SPEND_REJECTED.inc()
            logger.warning(
                "Spend rejected: balance %d, short by %d",
                outcome.balance,
                outcome.shortfall,
                extra=context,
            )
            return outcome
        GEM_TRANSACTIONS.labels(type="spend").inc()
        logger.info("Gems spent (%s)", reason.category, extra=context)
        return outcome

    def purchase(self, learner_id: str, item: str) -> GemTransaction | InsufficientFunds:
        cost = purchase_cost(item)
        return self.spend_gems(learner_id, cost.amount, cost.reason)

    def ledger_stats(self, learner_id: str) -> LedgerStats:
        return self.snapshot(learner_id).ledger.stats()

    def transactions(self, learner_id: str, limit: int | None = None) -> list[GemTransaction]:
        """Retained transactions, newest first."""
        history = list(reversed(self.snapshot(learner_id).ledger.history))
        return history[:limit] if limit is not None else history

    # ------------------------------------------------------------------
    # Bonuses and streaks
    # ------------------------------------------------------------------

    def _claim(
        self,
        learner_id: str,
        operation: str,
        key: str,
        claim: Callable[..., tuple[LearnerState, GemTransaction | None]],
    ) -> GemTransaction | None:
        timestamp = self._now()
        day = utc_day(timestamp)

        def apply(state: LearnerState) -> tuple[LearnerState, tuple[GemTransaction | None, str]]:
            new_state, tx = claim(
                state, day=day, timestamp=timestamp, history_limit=self._history_limit
            )
            if tx is not None:
                return new_state, (tx, "claimed")
            if bonuses.already_claimed(state, key, day):
                return state, (None, "already_claimed")
            return state, (None, "not_eligible")

        _, (tx, outcome) = self._mutate(learner_id, operation, apply)
        BONUS_CLAIMS.labels(result=outcome).inc()
        if tx is not None:
            GEM_TRANSACTIONS.labels(type="earn").inc()
        logger.info(
            "Bonus %s: %s",
            key,
            outcome,
            extra={
                "learner_id": learner_id,
                "operation": operation,
                "amount": tx.amount if tx is not None else None,
            },
        )
        return tx

    def claim_daily_login(self, learner_id: str) -> GemTransaction | None:
        return self._claim(
            learner_id, "claim_daily_login", "daily_login", bonuses.claim_daily_login
        )

    def claim_daily_goal(self, learner_id: str, target_xp: int) -> GemTransaction | None:
        return self._claim(
            learner_id,
            "claim_daily_goal",
            "daily_goal",
            lambda state, **kw: bonuses.claim_daily_goal(state, target_xp, **kw),
        )

    def award_league_promotion(self, learner_id: str, league: str) -> GemTransaction | None:
        return self._claim(
            learner_id,
            "award_league_promotion",
            f"league_promotion:{league_key(league)}",
            lambda state, **kw: bonuses.award_league_promotion(state, league, **kw),
        )

    def record_activity(self, learner_id: str) -> StreakUpdate:
        timestamp = self._now()
        _, update = self._mutate(
            learner_id,
            "record_activity",
            lambda state: bonuses.record_activity(
                state,
                day=utc_day(timestamp),
                timestamp=timestamp,
                history_limit=self._history_limit,
            ),
        )
        if update.milestone_transaction is not None:
            GEM_TRANSACTIONS.labels(type="earn").inc()
            logger.info(
                "Streak milestone reached: %d days",
                update.streak.current,
                extra={
                    "learner_id": learner_id,
                    "operation": "record_activity",
                    "amount": update.milestone_transaction.amount,
                },
            )
        return update

    # ------------------------------------------------------------------
    # Tree queries
    # ------------------------------------------------------------------

    def edges(self, learner_id: str) -> list[SkillEdge]:
        return edge_statuses(self._catalog, self.snapshot(learner_id).progress)

    def completion_stats(self, learner_id: str) -> reports.CompletionStats:
        return reports.completion_stats(self._catalog, self.snapshot(learner_id).progress)

    def tree_progress(self, learner_id: str) -> int:
        return reports.tree_progress(self._catalog, self.snapshot(learner_id).progress)

    def category_progress(self, learner_id: str, category: str) -> reports.CategoryProgress:
        return reports.category_progress(
            self._catalog, self.snapshot(learner_id).progress, category
        )

    def next_available(self, learner_id: str) -> list[SkillNode]:
        return reports.next_available_nodes(self._catalog, self.snapshot(learner_id).progress)
