from __future__ import annotations

import datetime
from dataclasses import replace

from skilltree.core.errors import InvalidInputError
from skilltree.models.learner import Streak, XpProgress
from skilltree.services.rewards import xp_for_level


def apply_xp(
    xp: XpProgress, amount: int, day: datetime.date
) -> tuple[XpProgress, int]:
    """Add XP, rolling over as many levels as it covers.

    Returns the new XpProgress and the number of levels gained.  Today's
    XP is reset when ``day`` differs from the day it was last counted on.
    """
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidInputError(f"xp amount must be a non-negative integer (got {amount!r})")

    level = xp.level
    in_level = xp.xp_in_level + amount
    needed = xp.xp_for_next_level
    gained = 0
    while in_level >= needed:
        in_level -= needed
        level += 1
        gained += 1
        needed = xp_for_level(level)

    return (
        XpProgress(
            total_xp=xp.total_xp + amount,
            level=level,
            xp_in_level=in_level,
            xp_for_next_level=needed,
            daily_xp_day=day,
            daily_xp=xp.xp_on(day) + amount,
        ),
        gained,
    )


def record_activity(streak: Streak, day: datetime.date) -> Streak:
    """Advance the daily streak for activity on ``day``.

    Same day: unchanged.  The next day: +1.  Any longer gap (or the first
    activity ever): the streak restarts at 1.  Activity dated before the
    last active day is ignored.
    """
    last = streak.last_active_on
    if last is not None and day <= last:
        return streak

    if last is not None and day - last == datetime.timedelta(days=1):
        current = streak.current + 1
    else:
        current = 1
    return replace(
        streak, current=current, best=max(streak.best, current), last_active_on=day
    )
