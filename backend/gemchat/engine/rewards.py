"""
Reward accrual rules — pure functions, no DB access.

One call per chat interaction turns a profile snapshot into the profile
fields to write back and, when the balance moves, one ledger entry.
"""
from dataclasses import dataclass
from datetime import date

from ..errors import InsufficientPointsError
from .streak import compute_streak, parse_last_message_date

MESSAGE_POINTS = 1
BOOST_COST = 10


@dataclass(frozen=True)
class ProfileSnapshot:
    reward_points: int
    daily_streak: int
    last_message_date: date | None
    total_messages: int

    @classmethod
    def from_row(cls, row: dict) -> "ProfileSnapshot":
        return cls(
            reward_points=row.get("reward_points") or 0,
            daily_streak=row.get("daily_streak") or 0,
            last_message_date=parse_last_message_date(row.get("last_message_date")),
            total_messages=row.get("total_messages") or 0,
        )


@dataclass(frozen=True)
class LedgerEntry:
    points_change: int
    transaction_type: str   # 'message' | 'streak' | 'boost'
    description: str


@dataclass(frozen=True)
class RewardOutcome:
    points_earned: int
    points_spent: int
    net_delta: int
    new_streak: int
    new_total_points: int
    profile_updates: dict
    transaction: LedgerEntry | None


def check_boost_balance(reward_points: int, boost: bool) -> None:
    if boost and reward_points < BOOST_COST:
        raise InsufficientPointsError(BOOST_COST)


def describe_transaction(net_delta: int, points_earned: int, new_streak: int, boost: bool) -> LedgerEntry | None:
    if net_delta == 0:
        return None
    if boost:
        return LedgerEntry(net_delta, "boost", "Boost used for priority response")
    if points_earned > MESSAGE_POINTS:
        return LedgerEntry(net_delta, "streak", f"Daily streak bonus ({new_streak} days)")
    return LedgerEntry(net_delta, "message", "Message sent")


def compute_reward(profile: ProfileSnapshot, today: date, boost: bool = False) -> RewardOutcome:
    """
    Raises InsufficientPointsError before computing anything when a boost
    can't be paid for; otherwise total over its inputs.
    """
    check_boost_balance(profile.reward_points, boost)

    bonus, new_streak = compute_streak(profile.last_message_date, profile.daily_streak, today)
    points_earned = MESSAGE_POINTS + bonus
    points_spent = BOOST_COST if boost else 0
    net_delta = points_earned - points_spent

    # No floor: a boost on a plain day can take the balance below its start
    new_total = profile.reward_points + net_delta

    return RewardOutcome(
        points_earned=points_earned,
        points_spent=points_spent,
        net_delta=net_delta,
        new_streak=new_streak,
        new_total_points=new_total,
        profile_updates={
            "reward_points": new_total,
            "daily_streak": new_streak,
            "last_message_date": today.isoformat(),
            "total_messages": profile.total_messages + 1,
        },
        transaction=describe_transaction(net_delta, points_earned, new_streak, boost),
    )


def summarize_ledger(rows: list[dict]) -> dict:
    """Net points and per-kind totals over reward_transactions rows."""
    by_type: dict[str, int] = {}
    for row in rows:
        kind = row.get("transaction_type") or "unknown"
        by_type[kind] = by_type.get(kind, 0) + (row.get("points_change") or 0)
    return {"net_points": sum(by_type.values()), "entries": len(rows), "by_type": by_type}
