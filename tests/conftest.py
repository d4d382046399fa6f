from __future__ import annotations

import datetime
import sys
from pathlib import Path

import pytest

from skilltree.models.catalog import Catalog, SkillNode
from skilltree.repos.learner_repo import InMemoryLearnerRepo
from skilltree.services.catalog import default_catalog
from skilltree.services.learner_service import SkillTreeService

# Ensure repo root is on sys.path so `import skilltree` works under pytest.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# 2026-03-02T12:00:00Z
NOON = int(datetime.datetime(2026, 3, 2, 12, tzinfo=datetime.UTC).timestamp())
DAY = 86_400


class FakeClock:
    """Deterministic clock for the service; tests advance it explicitly."""

    def __init__(self, start: int = NOON) -> None:
        self.now = start

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> None:
        self.now += seconds


def node(node_id: str, *prereqs: str, base_xp: int = 50, **kwargs) -> SkillNode:
    return SkillNode(id=node_id, prerequisites=frozenset(prereqs), base_xp=base_xp, **kwargs)


@pytest.fixture
def catalog() -> Catalog:
    return default_catalog()


@pytest.fixture
def chain() -> Catalog:
    """A → B → C."""
    return Catalog([node("A"), node("B", "A"), node("C", "B")])


@pytest.fixture
def diamond() -> Catalog:
    """A → {B, C} → D."""
    return Catalog([node("A"), node("B", "A"), node("C", "A"), node("D", "B", "C")])


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def repo() -> InMemoryLearnerRepo:
    return InMemoryLearnerRepo()


@pytest.fixture
def service(catalog: Catalog, repo: InMemoryLearnerRepo, clock: FakeClock) -> SkillTreeService:
    return SkillTreeService(catalog, repo, clock=clock)
