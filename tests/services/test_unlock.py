from __future__ import annotations

import pytest

from skilltree.core.errors import DataIntegrityError
from skilltree.models.catalog import Catalog
from skilltree.models.progress import NodeStatus, ProgressRecord
from skilltree.services.unlock import (
    check_progress_invariants,
    edge_statuses,
    materialize,
    propagate,
    unlockable_dependents,
)


def _done(node_id: str) -> ProgressRecord:
    return ProgressRecord(node_id=node_id, status=NodeStatus.COMPLETED, stars=2, best_score=80)


def test_materialize_creates_root_current_and_rest_locked(diamond: Catalog) -> None:
    progress = materialize({}, diamond)
    assert {k: r.status for k, r in progress.items()} == {
        "A": NodeStatus.CURRENT,
        "B": NodeStatus.LOCKED,
        "C": NodeStatus.LOCKED,
        "D": NodeStatus.LOCKED,
    }


def test_materialize_keeps_records_for_retired_nodes(chain: Catalog) -> None:
    retired = ProgressRecord(node_id="Z", status=NodeStatus.COMPLETED, stars=1, best_score=60)
    progress = materialize({"Z": retired}, chain)
    assert progress["Z"] is retired


@pytest.mark.parametrize("order", [("B", "C"), ("C", "B")])
def test_and_semantics_in_either_order(diamond: Catalog, order: tuple[str, str]) -> None:
    progress = materialize({}, diamond)
    progress["A"] = _done("A")
    progress, _ = propagate(progress, diamond)

    first, second = order
    progress[first] = _done(first)
    progress, unlocked = propagate(progress, diamond)
    assert unlocked == []
    assert progress["D"].status is NodeStatus.LOCKED

    progress[second] = _done(second)
    progress, unlocked = propagate(progress, diamond)
    assert unlocked == ["D"]
    assert progress["D"].status is NodeStatus.CURRENT


def test_completion_opens_only_the_next_level(chain: Catalog) -> None:
    progress = materialize({}, chain)
    progress["A"] = _done("A")

    assert unlockable_dependents("A", progress, chain) == ["B"]
    progress, unlocked = propagate(progress, chain)
    assert unlocked == ["B"]
    assert progress["C"].status is NodeStatus.LOCKED


def test_full_scan_repairs_a_stale_chain(chain: Catalog) -> None:
    # A and B completed while C was never reconciled (e.g. catalog grew).
    progress = {"A": _done("A"), "B": _done("B"), "C": ProgressRecord(node_id="C")}
    updated, unlocked = propagate(progress, chain)
    assert unlocked == ["C"]
    assert updated["C"].status is NodeStatus.CURRENT
    assert progress["C"].status is NodeStatus.LOCKED


def test_propagate_never_relocks(diamond: Catalog) -> None:
    progress = materialize({}, diamond)
    progress["B"] = ProgressRecord(node_id="B", status=NodeStatus.IN_PROGRESS)
    updated, unlocked = propagate(progress, diamond)
    assert updated["B"].status is NodeStatus.IN_PROGRESS
    assert unlocked == []


def test_edge_statuses_follow_source_completion(diamond: Catalog) -> None:
    progress = materialize({}, diamond)
    progress["A"] = _done("A")
    active = {(e.from_node, e.to_node) for e in edge_statuses(diamond, progress) if e.is_active}
    assert active == {("A", "B"), ("A", "C")}


def test_check_progress_invariants_accepts_materialized_state(diamond: Catalog) -> None:
    check_progress_invariants(materialize({}, diamond), diamond)


def test_check_progress_invariants_rejects_unlocked_without_prerequisites(
    chain: Catalog,
) -> None:
    progress = materialize({}, chain)
    progress["C"] = ProgressRecord(node_id="C", status=NodeStatus.CURRENT)
    with pytest.raises(DataIntegrityError, match="unmet prerequisites"):
        check_progress_invariants(progress, chain)


def test_check_progress_invariants_rejects_completed_without_stars(chain: Catalog) -> None:
    progress = materialize({}, chain)
    progress["A"] = ProgressRecord(node_id="A", status=NodeStatus.COMPLETED)
    with pytest.raises(DataIntegrityError, match="0 stars"):
        check_progress_invariants(progress, chain)
