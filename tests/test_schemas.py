from __future__ import annotations

import pytest
from pydantic import ValidationError

from skilltree.models.gems import GemReason
from skilltree.models.learner import LearnerState
from skilltree.schemas import (
    CatalogEdgeIn,
    CatalogNodeIn,
    CompletionEventIn,
    GemTransactionOut,
    LearnerStateDoc,
    LedgerStatsOut,
)
from skilltree.services import ledger as gem_ledger


def test_catalog_node_ignores_presentation_fields() -> None:
    model = CatalogNodeIn.model_validate(
        {"id": "n1", "xpReward": 50, "icon": "∑", "color": "#fff", "prerequisites": []}
    )
    node = model.to_domain()
    assert node.base_xp == 50
    assert node.prerequisites == frozenset()


def test_catalog_edge_accepts_from_to() -> None:
    edge = CatalogEdgeIn.model_validate({"from": "a", "to": "b", "isActive": True}).to_domain()
    assert (edge.from_node, edge.to_node, edge.is_active) == ("a", "b", False)


def test_completion_event_requires_integer_score() -> None:
    with pytest.raises(ValidationError):
        CompletionEventIn(learner_id="l1", node_id="n1", score="90")  # type: ignore[arg-type]
    with pytest.raises(ValidationError):
        CompletionEventIn(learner_id="", node_id="n1", score=90)


def test_completion_event_defaults_timestamp_to_now() -> None:
    event = CompletionEventIn(learner_id="l1", node_id="n1", score=90)
    assert event.to_domain(now=1234).occurred_at == 1234
    stamped = CompletionEventIn(learner_id="l1", node_id="n1", score=90, occurred_at=99)
    assert stamped.to_domain(now=1234).occurred_at == 99


def test_transaction_out_flattens_reason() -> None:
    _, tx = gem_ledger.earn(
        LearnerState.new("l1").ledger, 5, GemReason("daily_login", "Daily login"), timestamp=7
    )
    out = GemTransactionOut.from_domain(tx)
    assert out.model_dump(mode="json") == {
        "id": "gem-000001",
        "type": "earn",
        "amount": 5,
        "category": "daily_login",
        "description": "Daily login",
        "timestamp": 7,
        "balance_after": 5,
    }
    assert out.to_domain() == tx


def test_empty_learner_document_round_trips() -> None:
    state = LearnerState.new("l1")
    doc = LearnerStateDoc.from_domain(state)
    assert LearnerStateDoc.model_validate_json(doc.model_dump_json()).to_domain() == state


def test_ledger_stats_out_mirrors_domain_stats() -> None:
    ledger, _ = gem_ledger.earn(
        LearnerState.new("l1").ledger, 12, GemReason("test", "seed"), timestamp=1
    )
    assert LedgerStatsOut.from_domain(ledger.stats()).model_dump() == {
        "total_earned": 12,
        "total_spent": 0,
        "balance": 12,
        "transaction_count": 1,
    }
