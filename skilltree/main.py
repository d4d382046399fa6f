from __future__ import annotations

import logging

from skilltree.core.config import SETTINGS
from skilltree.core.logging import setup_logging
from skilltree.db.redis import check_redis, redis_client
from skilltree.models.catalog import Catalog
from skilltree.repos.learner_repo import InMemoryLearnerRepo, LearnerRepo
from skilltree.repos.redis_learner_repo import RedisLearnerRepo
from skilltree.services.catalog import default_catalog
from skilltree.services.learner_service import SkillTreeService
from skilltree.services.rewards import XpTable

logger = logging.getLogger(__name__)


def build_learner_repo() -> LearnerRepo:
    """Redis when REDIS_URL is configured and reachable, memory otherwise."""
    if redis_client is not None and check_redis(redis_client):
        return RedisLearnerRepo(redis_client)
    return InMemoryLearnerRepo()


def build_service(catalog: Catalog | None = None) -> SkillTreeService:
    """Wire the engine from settings.  Call once at host-application startup."""
    setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

    catalog = catalog if catalog is not None else default_catalog()
    repo = build_learner_repo()
    service = SkillTreeService(
        catalog,
        repo,
        xp_table=XpTable(SETTINGS.xp_table),
        history_limit=SETTINGS.gem_history_limit,
        max_retries=SETTINGS.store_max_retries,
    )
    logger.info(
        "Skill tree engine ready: env=%s nodes=%d store=%s xp_table=%s",
        SETTINGS.app_env,
        len(catalog),
        type(repo).__name__,
        SETTINGS.xp_table,
    )
    return service
