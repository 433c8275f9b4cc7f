"""
Points arithmetic shared by the loyalty service.
"""
import math
from datetime import datetime
from typing import Iterable, List, Optional, Protocol

NAIRA_PER_POINT = 100

FIRST_ORDER = "first_order"
PURCHASE = "purchase"

# Rewards a customer can claim once, with the points each is worth
REWARD_POINTS = {
    FIRST_ORDER: 15,
    "instagram_follow": 10,
    "twitter_follow": 10,
    "review": 20,
    "birthday": 100,
}
ONE_TIME_REWARD_TYPES = tuple(REWARD_POINTS)


class ExpiringReward(Protocol):
    status: str
    expires_at: Optional[datetime]


def purchase_points(amount_spent: float) -> int:
    """Points earned for an order: one point per ₦100, rounded down."""
    if not amount_spent or amount_spent <= 0:
        return 0
    return math.floor(amount_spent / NAIRA_PER_POINT)


def apply_points_change(balance: int, change: int) -> int:
    """New balance after an award or deduction. Never below zero."""
    return max(0, (balance or 0) + change)


def select_expired_rewards(rewards: Iterable[ExpiringReward], now: datetime) -> List[ExpiringReward]:
    """Earned rewards whose expiry has passed."""
    return [
        reward for reward in rewards
        if reward.status == "earned"
        and reward.expires_at is not None
        and reward.expires_at < now
    ]
