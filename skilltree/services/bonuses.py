"""Day-guarded gem bonuses: daily login, daily goal, streaks, league promotion.

Each bonus is an ordinary ``earn`` on the ledger.  What makes it a bonus
is the guard: ``LearnerState.claims`` remembers, per claim key, the last
calendar day (UTC) the bonus was paid, and a second claim on the same day
returns ``None`` without touching the ledger.  The claim map sits beside
the ledger, not inside it, so the ledger stays a pure money log.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, replace

from skilltree.models.gems import GemTransaction
from skilltree.models.learner import LearnerState, Streak
from skilltree.services import ledger as gem_ledger
from skilltree.services import progression
from skilltree.services.rewards import (
    DAILY_LOGIN,
    GemReward,
    daily_goal_reward,
    league_key,
    league_promotion_reward,
    streak_milestone_reward,
)


@dataclass(frozen=True, slots=True)
class StreakUpdate:
    streak: Streak
    milestone_transaction: GemTransaction | None = None


def already_claimed(state: LearnerState, key: str, day: datetime.date) -> bool:
    return state.claims.get(key) == day


def claim(
    state: LearnerState,
    key: str,
    reward: GemReward,
    *,
    day: datetime.date,
    timestamp: int,
    history_limit: int,
) -> tuple[LearnerState, GemTransaction | None]:
    """Pay ``reward`` once per ``key`` per day."""
    if already_claimed(state, key, day):
        return state, None
    ledger, tx = gem_ledger.earn(
        state.ledger,
        reward.amount,
        reward.reason,
        timestamp=timestamp,
        history_limit=history_limit,
    )
    claims = {**state.claims, key: day}
    return replace(state, ledger=ledger, claims=claims), tx


def claim_daily_login(
    state: LearnerState, *, day: datetime.date, timestamp: int, history_limit: int
) -> tuple[LearnerState, GemTransaction | None]:
    return claim(
        state,
        "daily_login",
        DAILY_LOGIN,
        day=day,
        timestamp=timestamp,
        history_limit=history_limit,
    )


def claim_daily_goal(
    state: LearnerState,
    target_xp: int,
    *,
    day: datetime.date,
    timestamp: int,
    history_limit: int,
) -> tuple[LearnerState, GemTransaction | None]:
    """Pay the daily-goal tier for ``target_xp`` if today's XP reached it."""
    reward = daily_goal_reward(target_xp)
    if state.xp.xp_on(day) < target_xp:
        return state, None
    return claim(
        state,
        "daily_goal",
        reward,
        day=day,
        timestamp=timestamp,
        history_limit=history_limit,
    )


def award_league_promotion(
    state: LearnerState,
    league: str,
    *,
    day: datetime.date,
    timestamp: int,
    history_limit: int,
) -> tuple[LearnerState, GemTransaction | None]:
    reward = league_promotion_reward(league)
    return claim(
        state,
        f"league_promotion:{league_key(league)}",
        reward,
        day=day,
        timestamp=timestamp,
        history_limit=history_limit,
    )


def record_activity(
    state: LearnerState, *, day: datetime.date, timestamp: int, history_limit: int
) -> tuple[LearnerState, StreakUpdate]:
    """Advance the streak and pay a milestone bonus when one is reached."""
    streak = progression.record_activity(state.streak, day)
    if streak == state.streak:
        return state, StreakUpdate(streak=streak)

    state = replace(state, streak=streak)
    reward = streak_milestone_reward(streak.current)
    if reward is None:
        return state, StreakUpdate(streak=streak)

    state, tx = claim(
        state,
        f"streak_milestone:{streak.current}",
        reward,
        day=day,
        timestamp=timestamp,
        history_limit=history_limit,
    )
    return state, StreakUpdate(streak=streak, milestone_transaction=tx)
