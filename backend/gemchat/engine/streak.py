"""
Daily chat streak — pure functions, no DB access.
"""
from datetime import date, timedelta

STREAK_BONUS = 5


def compute_streak(
    last_message_date: date | None,
    current_streak: int,
    today: date,
) -> tuple[int, int]:
    """
    Returns (bonus_points, new_streak_value).
    A repeat message on the same day keeps the streak and earns no bonus.
    """
    if last_message_date == today:
        return 0, current_streak

    # Calendar-date subtraction, not elapsed seconds
    yesterday = today - timedelta(days=1)

    if last_message_date == yesterday:
        return STREAK_BONUS, current_streak + 1

    # First message ever, or the streak was broken
    return 0, 1


def parse_last_message_date(value) -> date | None:
    """Accept the ISO string Supabase returns, a date, or None."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
