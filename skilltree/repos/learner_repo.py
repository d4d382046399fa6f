from __future__ import annotations

import threading
from dataclasses import replace
from typing import Protocol

from skilltree.core.errors import ConcurrentUpdateError
from skilltree.models.learner import LearnerState


class LearnerRepo(Protocol):
    def load(self, learner_id: str) -> LearnerState | None: ...

    def save(self, state: LearnerState) -> LearnerState:
        """Compare-and-set on ``state.version``.

        Stores the state with its version bumped by one and returns the
        stored copy.  Raises ConcurrentUpdateError when the stored version
        is no longer ``state.version``.
        """
        ...


class InMemoryLearnerRepo:
    """Per-process store for tests and local dev."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: dict[str, LearnerState] = {}

    def load(self, learner_id: str) -> LearnerState | None:
        with self._lock:
            return self._store.get(learner_id)

    def save(self, state: LearnerState) -> LearnerState:
        with self._lock:
            current = self._store.get(state.learner_id)
            current_version = current.version if current is not None else 0
            if current_version != state.version:
                raise ConcurrentUpdateError(state.learner_id, state.version)
            stored = replace(state, version=state.version + 1)
            self._store[state.learner_id] = stored
            return stored
