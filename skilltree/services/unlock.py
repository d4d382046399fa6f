"""Unlock propagation over the prerequisite DAG.

A locked node becomes ``current`` once EVERY one of its prerequisites is
``completed`` (AND, never ANY).  Completion is never revoked, so the set
of satisfied prerequisites only grows and a node that unlocks stays
unlocked.

Two entry points:

  propagate()              full re-scan of the catalog, repeated until a
                           pass changes nothing.  The workflow uses this.

  unlockable_dependents()  looks only at the direct dependents of one
                           just-completed node.  One completion therefore
                           opens at most one level (A→B→C: completing A
                           opens B, never C).  Kept so tests can check it
                           agrees with the full scan.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import replace

from skilltree.core.errors import DataIntegrityError
from skilltree.models.catalog import Catalog, SkillEdge, SkillNode
from skilltree.models.progress import (
    NodeStatus,
    ProgressRecord,
    ProgressSet,
    completed_node_ids,
)
from skilltree.services.rewards import MAX_SCORE, MAX_STARS


def prerequisites_met(node: SkillNode, progress: Mapping[str, ProgressRecord]) -> bool:
    for prereq_id in node.prerequisites:
        record = progress.get(prereq_id)
        if record is None or record.status is not NodeStatus.COMPLETED:
            return False
    return True


def propagate(
    progress: ProgressSet, catalog: Catalog
) -> tuple[ProgressSet, list[str]]:
    """Unlock every reachable locked node.

    Returns the updated progress set and the ids that moved from locked to
    current, in catalog order.  A node with no record yet is treated as a
    fresh locked record.  The input mapping is not modified.
    """
    updated = dict(progress)
    unlocked: list[str] = []

    changed = True
    while changed:
        changed = False
        for node in catalog:
            record = updated.get(node.id)
            if record is None:
                record = ProgressRecord(node_id=node.id)
            if record.status is not NodeStatus.LOCKED:
                continue
            if prerequisites_met(node, updated):
                updated[node.id] = replace(record, status=NodeStatus.CURRENT)
                unlocked.append(node.id)
                changed = True

    return updated, unlocked


def unlockable_dependents(
    node_id: str, progress: Mapping[str, ProgressRecord], catalog: Catalog
) -> list[str]:
    """Direct dependents of ``node_id`` that are locked and now fully satisfied."""
    result = []
    for dependent_id in catalog.dependents(node_id):
        record = progress.get(dependent_id)
        if record is not None and record.status is not NodeStatus.LOCKED:
            continue
        if prerequisites_met(catalog.get(dependent_id), progress):
            result.append(dependent_id)
    return result


def materialize(progress: ProgressSet, catalog: Catalog) -> ProgressSet:
    """Combine the catalog with a learner's stored progress.

    Creates the missing records (current for root nodes, locked otherwise)
    and reconciles unlocks, which matters when the catalog gained nodes
    since the progress was saved.  Records for ids the catalog no longer
    knows are kept untouched.
    """
    updated = dict(progress)
    for node in catalog:
        if node.id not in updated:
            updated[node.id] = ProgressRecord.new(node)
    updated, _ = propagate(updated, catalog)
    return updated


def edge_statuses(
    catalog: Catalog, progress: Mapping[str, ProgressRecord]
) -> list[SkillEdge]:
    """Catalog edges with is_active recomputed as "source node is completed"."""
    done = completed_node_ids(dict(progress))
    return [replace(edge, is_active=edge.from_node in done) for edge in catalog.edges]


def check_progress_invariants(
    progress: Mapping[str, ProgressRecord], catalog: Catalog
) -> None:
    """Raise DataIntegrityError if any record breaks a progress invariant."""
    for node_id, record in progress.items():
        if record.node_id != node_id:
            raise DataIntegrityError(
                f"record keyed {node_id!r} describes {record.node_id!r}"
            )
        if not 0 <= record.stars <= MAX_STARS:
            raise DataIntegrityError(f"node {node_id!r} has {record.stars} stars")
        if not 0 <= record.best_score <= MAX_SCORE:
            raise DataIntegrityError(
                f"node {node_id!r} has best_score {record.best_score}"
            )
        if record.status is NodeStatus.COMPLETED and record.stars < 1:
            raise DataIntegrityError(f"node {node_id!r} is completed with 0 stars")
        if node_id not in catalog or record.status is NodeStatus.LOCKED:
            continue
        if not prerequisites_met(catalog.get(node_id), progress):
            raise DataIntegrityError(
                f"node {node_id!r} is {record.status} with unmet prerequisites"
            )
