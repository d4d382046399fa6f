"""Both LearnerRepo implementations must behave the same: a save is a
compare-and-set on the learner's version, and a stale save is refused.

The Redis repo runs against a small in-process stand-in that honours
WATCH: a key written after it was watched aborts the transaction.
"""

from __future__ import annotations

import datetime
from dataclasses import replace

import pytest
import redis

from skilltree.core.errors import ConcurrentUpdateError, DataIntegrityError
from skilltree.models.catalog import Catalog
from skilltree.models.learner import LearnerState
from skilltree.repos.learner_repo import InMemoryLearnerRepo
from skilltree.repos.redis_learner_repo import RedisLearnerRepo
from skilltree.schemas import LearnerStateDoc
from skilltree.services.completion import complete_node

from conftest import NOON


class _FakePipeline:
    def __init__(self, server: _FakeRedis) -> None:
        self._server = server
        self._watched: dict[str, int] = {}
        self._queued: list[tuple[str, str]] = []

    def __enter__(self) -> _FakePipeline:
        return self

    def __exit__(self, *exc: object) -> None:
        self._watched.clear()

    def watch(self, key: str) -> None:
        self._watched[key] = self._server.writes.get(key, 0)

    def get(self, key: str) -> str | None:
        return self._server.get(key)

    def multi(self) -> None:
        self._queued = []

    def set(self, key: str, value: str) -> None:
        self._queued.append((key, value))

    def execute(self) -> list[bool]:
        for key, seen in self._watched.items():
            if self._server.writes.get(key, 0) != seen:
                raise redis.WatchError(f"Watched variable changed: {key}")
        for key, value in self._queued:
            self._server.set(key, value)
        return [True] * len(self._queued)


class _FakeRedis:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.writes: dict[str, int] = {}
        # Called between WATCH and EXEC to simulate another writer.
        self.on_watch_read = None

    def get(self, key: str) -> str | None:
        value = self.data.get(key)
        if self.on_watch_read is not None:
            hook, self.on_watch_read = self.on_watch_read, None
            hook()
        return value

    def set(self, key: str, value: str) -> None:
        self.data[key] = value
        self.writes[key] = self.writes.get(key, 0) + 1

    def pipeline(self) -> _FakePipeline:
        return _FakePipeline(self)


@pytest.fixture
def fake_redis() -> _FakeRedis:
    return _FakeRedis()


@pytest.fixture(params=["memory", "redis"])
def any_repo(request: pytest.FixtureRequest, fake_redis: _FakeRedis):
    if request.param == "memory":
        return InMemoryLearnerRepo()
    return RedisLearnerRepo(fake_redis)  # type: ignore[arg-type]


def _played(catalog: Catalog) -> LearnerState:
    state, _ = complete_node(catalog, LearnerState.new("l1"), "node-1", 95, occurred_at=NOON)
    return replace(
        state,
        claims={"daily_login": datetime.date(2026, 3, 2)},
    )


def test_load_unknown_learner_returns_none(any_repo) -> None:
    assert any_repo.load("nobody") is None


def test_save_bumps_version_and_round_trips(any_repo, catalog: Catalog) -> None:
    state = _played(catalog)
    stored = any_repo.save(state)
    assert stored.version == 1

    loaded = any_repo.load("l1")
    assert loaded == stored
    assert loaded.ledger.balance == 10
    assert loaded.claims == {"daily_login": datetime.date(2026, 3, 2)}


def test_stale_save_is_refused(any_repo, catalog: Catalog) -> None:
    state = _played(catalog)
    any_repo.save(state)
    with pytest.raises(ConcurrentUpdateError) as exc_info:
        any_repo.save(state)  # still version 0
    assert exc_info.value.expected_version == 0
    assert any_repo.load("l1").version == 1


def test_redis_watch_conflict_becomes_concurrent_update(
    fake_redis: _FakeRedis, catalog: Catalog
) -> None:
    repo = RedisLearnerRepo(fake_redis)  # type: ignore[arg-type]
    state = _played(catalog)
    fake_redis.on_watch_read = lambda: fake_redis.set("learner:l1", "{}")
    with pytest.raises(ConcurrentUpdateError):
        repo.save(state)


def test_redis_malformed_document_is_a_data_error(fake_redis: _FakeRedis) -> None:
    fake_redis.set("learner:l1", '{"learner_id": "l1", "gem_balance": -4}')
    with pytest.raises(DataIntegrityError, match="malformed"):
        RedisLearnerRepo(fake_redis).load("l1")  # type: ignore[arg-type]


def test_stored_document_shape(fake_redis: _FakeRedis, catalog: Catalog) -> None:
    RedisLearnerRepo(fake_redis).save(_played(catalog))  # type: ignore[arg-type]
    doc = LearnerStateDoc.model_validate_json(fake_redis.data["learner:l1"])
    assert doc.version == 1
    assert doc.gem_balance == 10
    assert doc.gem_history[0].category == "module_completion"
    statuses = {r.node_id: r.status for r in doc.progress}
    assert statuses["node-1"] == "completed"
    assert statuses["node-2"] == "current"
