from __future__ import annotations

from skilltree.models.catalog import Catalog
from skilltree.models.learner import LearnerState
from skilltree.services import reports
from skilltree.services.completion import complete_node
from skilltree.services.unlock import materialize

from conftest import NOON


def _progress(catalog: Catalog, *scores: tuple[str, int]):
    state = LearnerState.new("l1")
    for node_id, score in scores:
        state, _ = complete_node(catalog, state, node_id, score, occurred_at=NOON)
    return materialize(state.progress, catalog)


def test_fresh_learner_stats(catalog: Catalog) -> None:
    progress = materialize({}, catalog)
    stats = reports.completion_stats(catalog, progress)
    assert (stats.total_modules, stats.completed_modules, stats.max_stars) == (15, 0, 45)
    assert stats.completion_percentage == 0.0
    assert stats.average_score == 0.0
    assert reports.tree_progress(catalog, progress) == 0
    assert [n.id for n in reports.next_available_nodes(catalog, progress)] == ["node-1"]


def test_stats_after_some_completions(catalog: Catalog) -> None:
    progress = _progress(catalog, ("node-1", 95), ("node-2", 80), ("node-3", 40))
    stats = reports.completion_stats(catalog, progress)
    assert stats.completed_modules == 2
    assert stats.total_stars == 5
    assert stats.average_score == 87.5
    # 2 of 15 = 13.33..%
    assert reports.tree_progress(catalog, progress) == 13
    assert reports.total_stars(catalog, progress) == 5
    assert [n.id for n in reports.next_available_nodes(catalog, progress)] == ["node-3"]


def test_category_progress(catalog: Catalog) -> None:
    progress = _progress(catalog, ("node-1", 95), ("node-2", 80))
    algebra = reports.category_progress(catalog, progress, "algebra")
    assert (algebra.total, algebra.completed, algebra.percentage) == (3, 2, 67)
    assert reports.category_progress(catalog, progress, "geometry").percentage == 0
    assert reports.category_progress(catalog, progress, "music").total == 0
