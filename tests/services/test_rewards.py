from __future__ import annotations

import pytest

from skilltree.core.errors import InvalidInputError
from skilltree.services import rewards
from skilltree.services.rewards import XpTable

# ---- score -> stars ----


@pytest.mark.parametrize(
    ("score", "stars"),
    [(0, 0), (59, 0), (60, 1), (74, 1), (75, 2), (89, 2), (90, 3), (100, 3)],
)
def test_stars_for_score_boundaries(score: int, stars: int) -> None:
    assert rewards.stars_for_score(score) == stars


def test_stars_are_monotonic_in_score() -> None:
    stars = [rewards.stars_for_score(s) for s in range(0, 101)]
    assert stars == sorted(stars)
    assert set(stars) == {0, 1, 2, 3}


@pytest.mark.parametrize("score", [-1, 101, 140, 72.5, "90", None, True])
def test_stars_for_score_rejects_out_of_domain(score: object) -> None:
    with pytest.raises(InvalidInputError):
        rewards.stars_for_score(score)  # type: ignore[arg-type]


# ---- XP ----


def test_xp_module_completion_table() -> None:
    assert [rewards.xp_for_completion(100, s) for s in range(4)] == [50, 75, 100, 125]


def test_xp_node_unlock_table() -> None:
    assert [
        rewards.xp_for_completion(100, s, XpTable.NODE_UNLOCK) for s in range(4)
    ] == [50, 100, 125, 150]


def test_xp_rounds_halves_up() -> None:
    # 50 * 1.25 = 62.5
    assert rewards.xp_for_completion(50, 3) == 63
    # 55 * 0.5 = 27.5
    assert rewards.xp_for_completion(55, 0) == 28
    assert rewards.xp_for_completion(50, 3, XpTable.NODE_UNLOCK) == 75


def test_xp_accepts_table_by_name() -> None:
    assert rewards.xp_for_completion(100, 1, "node_unlock") == 100  # type: ignore[arg-type]


def test_xp_never_decreases_with_more_stars() -> None:
    for table in XpTable:
        for base in (0, 1, 33, 50, 85):
            xp = [rewards.xp_for_completion(base, s, table) for s in range(4)]
            assert xp == sorted(xp)


@pytest.mark.parametrize(
    ("base_xp", "stars", "table"),
    [(-1, 1, XpTable.MODULE_COMPLETION), (50, 4, XpTable.MODULE_COMPLETION), (50, 1, "quiz")],
)
def test_xp_rejects_invalid_input(base_xp: int, stars: int, table: str) -> None:
    with pytest.raises(InvalidInputError):
        rewards.xp_for_completion(base_xp, stars, table)  # type: ignore[arg-type]


def test_xp_for_level_curve() -> None:
    assert rewards.xp_for_level(1) == 100
    assert rewards.xp_for_level(2) == 282
    assert rewards.xp_for_level(4) == 800
    with pytest.raises(InvalidInputError):
        rewards.xp_for_level(0)


# ---- gems ----


def test_gems_for_stars() -> None:
    assert [rewards.gems_for_stars(s) for s in range(4)] == [0, 3, 5, 10]


def test_module_completion_reward_is_none_without_stars() -> None:
    assert rewards.module_completion_reward(0) is None
    reward = rewards.module_completion_reward(3)
    assert reward is not None
    assert reward.amount == 10
    assert reward.reason.category == "module_completion"


@pytest.mark.parametrize("stars", [-1, 4])
def test_gems_for_stars_rejects_invalid_stars(stars: int) -> None:
    with pytest.raises(InvalidInputError):
        rewards.gems_for_stars(stars)


@pytest.mark.parametrize(
    ("target", "amount"), [(0, 1), (10, 1), (20, 2), (49, 2), (50, 5), (100, 10), (250, 10)]
)
def test_daily_goal_tiers(target: int, amount: int) -> None:
    assert rewards.daily_goal_reward(target).amount == amount


@pytest.mark.parametrize(("days", "amount"), [(7, 15), (14, 30), (30, 75), (100, 250)])
def test_streak_milestones(days: int, amount: int) -> None:
    reward = rewards.streak_milestone_reward(days)
    assert reward is not None
    assert reward.amount == amount


def test_no_milestone_between_thresholds() -> None:
    assert rewards.streak_milestone_reward(8) is None
    assert rewards.streak_milestone_reward(0) is None


def test_league_promotion_is_case_insensitive() -> None:
    assert rewards.league_promotion_reward(" Gold ").amount == 50
    assert rewards.league_promotion_reward("quantum").amount == 200
    with pytest.raises(InvalidInputError, match="league must be one of"):
        rewards.league_promotion_reward("bronze")


@pytest.mark.parametrize("league", [None, 3, ["gold"]])
def test_league_must_be_a_string(league: object) -> None:
    with pytest.raises(InvalidInputError, match="league must be a string"):
        rewards.league_promotion_reward(league)  # type: ignore[arg-type]


def test_purchase_costs() -> None:
    assert rewards.purchase_cost("streak_freeze").amount == 10
    assert rewards.purchase_cost("unlimited_hearts").amount == 350
    with pytest.raises(InvalidInputError, match="item must be one of"):
        rewards.purchase_cost("extra_life")
    with pytest.raises(InvalidInputError, match="item must be one of"):
        rewards.purchase_cost(["streak_freeze"])  # type: ignore[arg-type]
