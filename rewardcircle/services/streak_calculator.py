"""
Visit streak calculation.
"""
from datetime import date
from typing import NamedTuple, Optional


class StreakUpdate(NamedTuple):
    new_streak: int
    bonus_points: int


def update_streak(
    current_streak: int,
    last_visit_date: Optional[date],
    today: date,
    config,
) -> StreakUpdate:
    """
    Advance a customer's visit streak for a visit happening ``today``.

    A visit within ``config.window_days`` of the previous one continues the
    streak; once the streak reaches ``config.min_visits_for_bonus`` every
    further qualifying visit earns ``config.bonus_points`` again. Several
    visits on one calendar day count once.

    Args:
        current_streak: Streak count stored on the customer
        last_visit_date: Date of the previous visit, None for a first visit
        today: Date of this visit
        config: StreakConfig (enabled, window_days, min_visits_for_bonus, bonus_points)

    Returns:
        StreakUpdate(new_streak, bonus_points)
    """
    if not config.enabled:
        return StreakUpdate(current_streak, 0)

    if last_visit_date is None:
        return StreakUpdate(1, 0)

    diff_days = (today - last_visit_date).days

    # Same day, or a stored date ahead of our clock
    if diff_days <= 0:
        return StreakUpdate(current_streak, 0)

    if diff_days <= config.window_days:
        new_streak = current_streak + 1
        bonus = config.bonus_points if new_streak >= config.min_visits_for_bonus else 0
        return StreakUpdate(new_streak, bonus)

    # Streak broken
    return StreakUpdate(1, 0)
