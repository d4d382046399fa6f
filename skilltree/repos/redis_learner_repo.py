"""Redis implementation of LearnerRepo."""

from __future__ import annotations

import logging
from dataclasses import replace

import redis
from pydantic import ValidationError

from skilltree.core.errors import ConcurrentUpdateError, DataIntegrityError
from skilltree.models.learner import LearnerState
from skilltree.schemas import LearnerStateDoc

logger = logging.getLogger(__name__)


class RedisLearnerRepo:
    """Satisfies the LearnerRepo Protocol with one JSON document per learner.

    save() uses WATCH/MULTI: the key is watched, its stored version is
    compared with the caller's, and the write is queued in a transaction
    that Redis aborts if anyone touched the key in between.
    """

    _PREFIX = "learner:"

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client

    def _key(self, learner_id: str) -> str:
        return f"{self._PREFIX}{learner_id}"

    def _decode(self, learner_id: str, raw: str | None) -> LearnerState | None:
        if raw is None:
            return None
        try:
            return LearnerStateDoc.model_validate_json(raw).to_domain()
        except ValidationError as exc:
            logger.error(
                "Stored learner document is unreadable",
                extra={"learner_id": learner_id},
            )
            raise DataIntegrityError(
                f"stored state for learner {learner_id!r} is malformed"
            ) from exc

    def load(self, learner_id: str) -> LearnerState | None:
        return self._decode(learner_id, self._redis.get(self._key(learner_id)))

    def save(self, state: LearnerState) -> LearnerState:
        key = self._key(state.learner_id)
        stored = replace(state, version=state.version + 1)
        payload = LearnerStateDoc.from_domain(stored).model_dump_json()

        with self._redis.pipeline() as pipe:
            try:
                pipe.watch(key)
                current = self._decode(state.learner_id, pipe.get(key))
                current_version = current.version if current is not None else 0
                if current_version != state.version:
                    raise ConcurrentUpdateError(state.learner_id, state.version)
                pipe.multi()
                pipe.set(key, payload)
                pipe.execute()
            except redis.WatchError as exc:
                raise ConcurrentUpdateError(state.learner_id, state.version) from exc
        return stored
