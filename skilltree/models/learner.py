from __future__ import annotations

import datetime
from dataclasses import dataclass, field

from skilltree.models.gems import GemLedger
from skilltree.models.progress import ProgressSet


@dataclass(frozen=True, slots=True)
class XpProgress:
    """Lifetime XP with level bookkeeping, plus today's XP for daily goals."""

    total_xp: int = 0
    level: int = 1
    xp_in_level: int = 0
    xp_for_next_level: int = 100
    daily_xp_day: datetime.date | None = None
    daily_xp: int = 0

    def xp_on(self, day: datetime.date) -> int:
        return self.daily_xp if self.daily_xp_day == day else 0


@dataclass(frozen=True, slots=True)
class Streak:
    current: int = 0
    best: int = 0
    last_active_on: datetime.date | None = None


@dataclass(frozen=True, slots=True)
class LearnerState:
    """Everything the engine persists for one learner.

    version is the optimistic-concurrency token: the store bumps it on
    every successful save and refuses a save made from a stale copy.
    claims maps a bonus key (e.g. "daily_login") to the last day it was
    claimed; it is kept outside the ledger.
    """

    learner_id: str
    progress: ProgressSet = field(default_factory=dict)
    ledger: GemLedger = GemLedger()
    xp: XpProgress = XpProgress()
    streak: Streak = Streak()
    claims: dict[str, datetime.date] = field(default_factory=dict)
    version: int = 0

    @staticmethod
    def new(learner_id: str) -> LearnerState:
        return LearnerState(learner_id=learner_id)
