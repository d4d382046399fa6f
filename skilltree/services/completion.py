"""Completion workflow: one graded attempt in, new learner state out.

    complete_node(catalog, state, node_id, score, occurred_at=...)
      1. validate (node exists, score in 0..100, node unlocked unless
         the attempt earns 0 stars)
      2. stars = stars_for_score(score)
      3. update the node's record (attempts+1, best score/stars kept)
      4. propagate unlocks over the whole catalog
      5. post the star gems to the ledger, add XP
      -> (new LearnerState, CompletionResult)

Everything is validated before anything is built, and the input state is
never modified, so a failure leaves the caller holding exactly what it
had.  The same events folded in the same order always give the same
state (see ``replay``).
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable
from dataclasses import dataclass, replace

from skilltree.core.errors import InvalidInputError, NodeLockedError
from skilltree.models.catalog import Catalog
from skilltree.models.gems import GemTransaction
from skilltree.models.learner import LearnerState
from skilltree.models.progress import (
    CompletionEvent,
    NodeStatus,
    ProgressRecord,
    ProgressSet,
)
from skilltree.services import ledger as gem_ledger
from skilltree.services.progression import apply_xp
from skilltree.services.rewards import (
    XpTable,
    module_completion_reward,
    stars_for_score,
    xp_for_completion,
)
from skilltree.services.unlock import materialize, propagate


@dataclass(frozen=True, slots=True)
class CompletionResult:
    node_id: str
    score: int
    stars: int
    xp_earned: int
    gems_earned: int
    progress: ProgressSet
    unlocked_node_ids: tuple[str, ...]
    is_new_best_score: bool
    previous_best_score: int
    transaction: GemTransaction | None = None
    leveled_up: bool = False
    levels_gained: int = 0
    level: int = 1
    total_xp: int = 0


def utc_day(timestamp: int) -> datetime.date:
    return datetime.datetime.fromtimestamp(timestamp, datetime.UTC).date()


def _record_for_attempt(
    catalog: Catalog, progress: ProgressSet, node_id: str, *, advances: bool = True
) -> ProgressRecord:
    node = catalog.get(node_id)
    record = progress.get(node_id) or ProgressRecord.new(node)
    if advances and record.status is NodeStatus.LOCKED:
        raise NodeLockedError(node_id)
    return record


def complete_node(
    catalog: Catalog,
    state: LearnerState,
    node_id: str,
    score: int,
    *,
    occurred_at: int,
    xp_table: XpTable = XpTable.MODULE_COMPLETION,
    history_limit: int = gem_ledger.DEFAULT_HISTORY_LIMIT,
) -> tuple[LearnerState, CompletionResult]:
    node = catalog.get(node_id)
    stars = stars_for_score(score)
    progress = materialize(state.progress, catalog)
    previous = _record_for_attempt(catalog, progress, node_id, advances=stars > 0)
    xp_earned = xp_for_completion(node.base_xp, stars, xp_table)

    record = replace(
        previous,
        attempts=previous.attempts + 1,
        best_score=max(previous.best_score, score),
        stars=max(previous.stars, stars),
    )
    if stars > 0:
        record = replace(record, status=NodeStatus.COMPLETED, completed_at=occurred_at)

    progress, unlocked = propagate({**progress, node_id: record}, catalog)

    ledger, transaction = state.ledger, None
    reward = module_completion_reward(stars)
    if reward is not None:
        ledger, transaction = gem_ledger.earn(
            ledger,
            reward.amount,
            reward.reason,
            timestamp=occurred_at,
            history_limit=history_limit,
        )

    xp, levels_gained = apply_xp(state.xp, xp_earned, utc_day(occurred_at))

    new_state = replace(state, progress=progress, ledger=ledger, xp=xp)
    result = CompletionResult(
        node_id=node_id,
        score=score,
        stars=stars,
        xp_earned=xp_earned,
        gems_earned=reward.amount if reward is not None else 0,
        progress=progress,
        unlocked_node_ids=tuple(unlocked),
        is_new_best_score=score > previous.best_score,
        previous_best_score=previous.best_score,
        transaction=transaction,
        leveled_up=levels_gained > 0,
        levels_gained=levels_gained,
        level=xp.level,
        total_xp=xp.total_xp,
    )
    return new_state, result


def start_node(catalog: Catalog, state: LearnerState, node_id: str) -> LearnerState:
    """Mark a ``current`` node as ``in-progress``; other statuses are kept."""
    progress = materialize(state.progress, catalog)
    record = _record_for_attempt(catalog, progress, node_id)
    if record.status is not NodeStatus.CURRENT:
        if progress == state.progress:
            return state
        return replace(state, progress=progress)
    progress = {**progress, node_id: replace(record, status=NodeStatus.IN_PROGRESS)}
    return replace(state, progress=progress)


def replay(
    catalog: Catalog,
    learner_id: str,
    events: Iterable[CompletionEvent],
    *,
    xp_table: XpTable = XpTable.MODULE_COMPLETION,
    history_limit: int = gem_ledger.DEFAULT_HISTORY_LIMIT,
) -> LearnerState:
    """Fold completion events, in order, over a fresh learner state."""
    state = LearnerState.new(learner_id)
    for event in events:
        if event.learner_id != learner_id:
            raise InvalidInputError(
                f"event for learner {event.learner_id!r} replayed as {learner_id!r}"
            )
        state, _ = complete_node(
            catalog,
            state,
            event.node_id,
            event.score,
            occurred_at=event.occurred_at,
            xp_table=xp_table,
            history_limit=history_limit,
        )
    return state
