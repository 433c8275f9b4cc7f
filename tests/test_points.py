from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from wingside.loyalty.points import (
    purchase_points, apply_points_change, select_expired_rewards,
    ONE_TIME_REWARD_TYPES, REWARD_POINTS
)

NOW = datetime(2025, 6, 1)


@pytest.mark.parametrize("amount,points", [
    (0, 0), (-500, 0), (None, 0), (99.99, 0), (100, 1), (4550, 45), (12_345.67, 123),
])
def test_purchase_points(amount, points):
    assert purchase_points(amount) == points


def test_apply_points_change_never_goes_negative():
    assert apply_points_change(100, 50) == 150
    assert apply_points_change(100, -40) == 60
    assert apply_points_change(100, -400) == 0
    assert apply_points_change(None, 10) == 10


def test_select_expired_rewards():
    expired = SimpleNamespace(status="earned", expires_at=NOW - timedelta(days=1))
    not_yet = SimpleNamespace(status="earned", expires_at=NOW + timedelta(days=1))
    no_expiry = SimpleNamespace(status="earned", expires_at=None)
    processed = SimpleNamespace(status="expired", expires_at=NOW - timedelta(days=30))

    assert select_expired_rewards([expired, not_yet, no_expiry, processed], NOW) == [expired]


def test_one_time_reward_types():
    assert "first_order" in ONE_TIME_REWARD_TYPES
    assert "instagram_follow" in ONE_TIME_REWARD_TYPES
    assert "purchase" not in ONE_TIME_REWARD_TYPES


def test_reward_points_are_fixed_per_type():
    assert REWARD_POINTS == {
        "first_order": 15,
        "instagram_follow": 10,
        "twitter_follow": 10,
        "review": 20,
        "birthday": 100,
    }
