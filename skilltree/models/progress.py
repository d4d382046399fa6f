from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from skilltree.models.catalog import SkillNode


class NodeStatus(StrEnum):
    """Per-learner node state: locked → current → in-progress → completed."""

    LOCKED = "locked"
    CURRENT = "current"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"

    @property
    def is_unlocked(self) -> bool:
        return self is not NodeStatus.LOCKED


@dataclass(frozen=True, slots=True)
class ProgressRecord:
    """A learner's standing on one node.

    stars and best_score only ever go up.  completed_at is an epoch
    timestamp (seconds, UTC) of the latest completion that earned a star.
    """

    node_id: str
    status: NodeStatus = NodeStatus.LOCKED
    stars: int = 0
    best_score: int = 0
    attempts: int = 0
    completed_at: int | None = None

    @staticmethod
    def new(node: SkillNode) -> ProgressRecord:
        status = NodeStatus.LOCKED if node.prerequisites else NodeStatus.CURRENT
        return ProgressRecord(node_id=node.id, status=status)


# node_id -> record.  Treated as immutable: every transformation builds a new dict.
ProgressSet = dict[str, ProgressRecord]


@dataclass(frozen=True, slots=True)
class CompletionEvent:
    """A graded activity finished by a learner, as reported by the quiz side."""

    learner_id: str
    node_id: str
    score: int
    occurred_at: int


def completed_node_ids(progress: ProgressSet) -> frozenset[str]:
    return frozenset(
        node_id
        for node_id, record in progress.items()
        if record.status is NodeStatus.COMPLETED
    )
