"""Reward math: score → stars → XP and gems, plus the named gem tables.

Every function here is pure and total over its documented domain.  Input
outside the domain raises InvalidInputError instead of being clamped, so
an upstream bug (a score of 140, a star count of -1) surfaces in tests
rather than quietly turning into a reward.

TWO XP TABLES
-------------
Completing a module and completing a node-level quiz historically used
different star multipliers:

    stars              0     1     2     3
    module_completion  0.5   0.75  1.0   1.25
    node_unlock        0.5   1.0   1.25  1.5

Neither is declared canonical.  Callers pick one explicitly via XpTable;
the service default comes from the XP_TABLE setting.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from skilltree.core.errors import InvalidInputError
from skilltree.models.gems import GemReason

MAX_SCORE = 100
MAX_STARS = 3

# (minimum score, stars), highest first
_STAR_THRESHOLDS = ((90, 3), (75, 2), (60, 1))


class XpTable(StrEnum):
    MODULE_COMPLETION = "module_completion"
    NODE_UNLOCK = "node_unlock"


_XP_MULTIPLIERS: dict[XpTable, tuple[Decimal, ...]] = {
    XpTable.MODULE_COMPLETION: (
        Decimal("0.5"),
        Decimal("0.75"),
        Decimal("1.0"),
        Decimal("1.25"),
    ),
    XpTable.NODE_UNLOCK: (
        Decimal("0.5"),
        Decimal("1.0"),
        Decimal("1.25"),
        Decimal("1.5"),
    ),
}


def _require_int(name: str, value: object, low: int, high: int | None = None) -> int:
    # bool is an int subclass; True is not a score.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{name} must be an integer (got {value!r})")
    if value < low or (high is not None and value > high):
        bound = f"{low}..{high}" if high is not None else f">= {low}"
        raise InvalidInputError(f"{name} must be {bound} (got {value})")
    return value


def validate_score(score: object) -> int:
    return _require_int("score", score, 0, MAX_SCORE)


def validate_stars(stars: object) -> int:
    return _require_int("stars", stars, 0, MAX_STARS)


def stars_for_score(score: int) -> int:
    validate_score(score)
    for minimum, stars in _STAR_THRESHOLDS:
        if score >= minimum:
            return stars
    return 0


def xp_for_completion(
    base_xp: int, stars: int, table: XpTable = XpTable.MODULE_COMPLETION
) -> int:
    """``round(base_xp * multiplier[stars])`` with halves rounded up (50 * 1.25 → 63)."""
    _require_int("base_xp", base_xp, 0)
    validate_stars(stars)
    try:
        multipliers = _XP_MULTIPLIERS[XpTable(table)]
    except ValueError:
        raise InvalidInputError(f"unknown XP table {table!r}") from None
    multiplier = multipliers[stars]
    return int((base_xp * multiplier).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def xp_for_level(level: int) -> int:
    """XP needed to clear ``level``: floor(100 * level^1.5)."""
    _require_int("level", level, 1)
    return math.floor(100 * level**1.5)


# ---------------------------------------------------------------------------
# Named gem rewards and costs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GemReward:
    amount: int
    reason: GemReason


def _reward(amount: int, category: str, description: str) -> GemReward:
    return GemReward(amount=amount, reason=GemReason(category, description))


_STAR_GEMS: dict[int, GemReward] = {
    1: _reward(3, "module_completion", "Module completed (1 star)"),
    2: _reward(5, "module_completion", "Module completed (2 stars)"),
    3: _reward(10, "module_completion", "Module completed (3 stars)"),
}

DAILY_LOGIN = _reward(5, "daily_login", "Daily login")

# (minimum daily XP target, reward), highest first
_DAILY_GOAL_TIERS = (
    (100, _reward(10, "daily_goal", "Daily goal (intense)")),
    (50, _reward(5, "daily_goal", "Daily goal (serious)")),
    (20, _reward(2, "daily_goal", "Daily goal (regular)")),
    (0, _reward(1, "daily_goal", "Daily goal (casual)")),
)

_STREAK_MILESTONES: dict[int, GemReward] = {
    7: _reward(15, "streak_milestone", "7-day streak"),
    14: _reward(30, "streak_milestone", "14-day streak"),
    30: _reward(75, "streak_milestone", "30-day streak"),
    100: _reward(250, "streak_milestone", "100-day streak"),
}

LEAGUE_PROMOTIONS: dict[str, GemReward] = {
    "silver": _reward(25, "league_promotion", "Promoted to Silver"),
    "gold": _reward(50, "league_promotion", "Promoted to Gold"),
    "diamond": _reward(75, "league_promotion", "Promoted to Diamond"),
    "platinum": _reward(100, "league_promotion", "Promoted to Platinum"),
    "quantum": _reward(200, "league_promotion", "Promoted to Quantum"),
}

GEM_COSTS: dict[str, GemReward] = {
    "streak_freeze": _reward(10, "streak_freeze", "Streak Freeze (24h)"),
    "streak_repair": _reward(50, "streak_repair", "Streak Repair"),
    "unlimited_hearts": _reward(350, "unlimited_hearts", "Unlimited Hearts (30 min)"),
    "xp_boost": _reward(100, "xp_boost", "XP Boost 2x (30 min)"),
    "time_warp": _reward(25, "time_warp", "Time Warp (skip 1h refill)"),
    "hint_token": _reward(30, "hint_token", "Hint Token"),
}


def gems_for_stars(stars: int) -> int:
    validate_stars(stars)
    reward = _STAR_GEMS.get(stars)
    return reward.amount if reward is not None else 0


def module_completion_reward(stars: int) -> GemReward | None:
    validate_stars(stars)
    return _STAR_GEMS.get(stars)


def daily_goal_reward(target_xp: int) -> GemReward:
    _require_int("target_xp", target_xp, 0)
    for minimum, reward in _DAILY_GOAL_TIERS:
        if target_xp >= minimum:
            return reward
    return _DAILY_GOAL_TIERS[-1][1]


def streak_milestone_reward(days: int) -> GemReward | None:
    _require_int("days", days, 0)
    return _STREAK_MILESTONES.get(days)


def league_key(league: object) -> str:
    """Lower-cased, stripped league name; the key bonuses are guarded on."""
    if not isinstance(league, str):
        raise InvalidInputError(f"league must be a string (got {league!r})")
    return league.strip().lower()


def league_promotion_reward(league: str) -> GemReward:
    reward = LEAGUE_PROMOTIONS.get(league_key(league))
    if reward is None:
        raise InvalidInputError(
            f"league must be one of {sorted(LEAGUE_PROMOTIONS)} (got {league!r})"
        )
    return reward


def purchase_cost(item: str) -> GemReward:
    cost = GEM_COSTS.get(item) if isinstance(item, str) else None
    if cost is None:
        raise InvalidInputError(
            f"item must be one of {sorted(GEM_COSTS)} (got {item!r})"
        )
    return cost
