from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from skilltree.models.catalog import Catalog, SkillNode
from skilltree.models.progress import NodeStatus, ProgressRecord
from skilltree.services.rewards import MAX_STARS


@dataclass(frozen=True, slots=True)
class CompletionStats:
    total_modules: int
    completed_modules: int
    total_stars: int
    max_stars: int
    completion_percentage: float
    average_score: float


@dataclass(frozen=True, slots=True)
class CategoryProgress:
    category: str
    total: int
    completed: int
    percentage: int


def _catalog_records(
    catalog: Catalog, progress: Mapping[str, ProgressRecord]
) -> list[ProgressRecord]:
    return [progress[n.id] for n in catalog if n.id in progress]


def _percent(part: int, whole: int) -> int:
    # Math.round semantics: halves go up
    return int(part * 100 / whole + 0.5) if whole else 0


def completion_stats(
    catalog: Catalog, progress: Mapping[str, ProgressRecord]
) -> CompletionStats:
    records = _catalog_records(catalog, progress)
    completed = [r for r in records if r.status is NodeStatus.COMPLETED]
    total = len(catalog)
    return CompletionStats(
        total_modules=total,
        completed_modules=len(completed),
        total_stars=sum(r.stars for r in records),
        max_stars=total * MAX_STARS,
        completion_percentage=len(completed) * 100 / total if total else 0.0,
        average_score=(
            sum(r.best_score for r in completed) / len(completed) if completed else 0.0
        ),
    )


def tree_progress(catalog: Catalog, progress: Mapping[str, ProgressRecord]) -> int:
    """Completed nodes as a rounded percentage of the catalog."""
    completed = sum(
        1
        for r in _catalog_records(catalog, progress)
        if r.status is NodeStatus.COMPLETED
    )
    return _percent(completed, len(catalog))


def total_stars(catalog: Catalog, progress: Mapping[str, ProgressRecord]) -> int:
    return sum(r.stars for r in _catalog_records(catalog, progress))


def category_progress(
    catalog: Catalog, progress: Mapping[str, ProgressRecord], category: str
) -> CategoryProgress:
    nodes = catalog.in_category(category)
    completed = sum(
        1
        for n in nodes
        if n.id in progress and progress[n.id].status is NodeStatus.COMPLETED
    )
    return CategoryProgress(
        category=category,
        total=len(nodes),
        completed=completed,
        percentage=_percent(completed, len(nodes)),
    )


def next_available_nodes(
    catalog: Catalog, progress: Mapping[str, ProgressRecord]
) -> list[SkillNode]:
    """Unlocked nodes the learner has not completed yet, in catalog order."""
    result = []
    for node in catalog:
        record = progress.get(node.id)
        if record is None:
            continue
        if record.status.is_unlocked and record.status is not NodeStatus.COMPLETED:
            result.append(node)
    return result
