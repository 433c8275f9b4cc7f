"""
Tests for tier classification, inactivity decay and tier progress.
"""
import uuid
from datetime import datetime, timedelta

import pytest

from wingside.loyalty.tier_engine import (
    TierEngine, TierName, CustomerLoyaltyState, classify_tier, evaluate_decay
)

NOW = datetime(2025, 6, 1, 12, 0, 0)


def days_ago(days, **kwargs):
    return NOW - timedelta(days=days, **kwargs)


@pytest.fixture
def engine():
    return TierEngine()


class TestClassifyTier:
    @pytest.mark.parametrize("points,tier", [
        (0, TierName.WING_MEMBER),
        (5000, TierName.WING_MEMBER),
        (5001, TierName.WING_LEADER),
        (20000, TierName.WING_LEADER),
        (20001, TierName.WINGZARD),
        (1_000_000, TierName.WINGZARD),
    ])
    def test_boundaries(self, points, tier):
        assert classify_tier(points) == tier

    def test_missing_or_negative_balance_is_member(self, engine):
        assert engine.classify_tier(None) == TierName.WING_MEMBER
        assert engine.classify_tier(-10) == TierName.WING_MEMBER

    def test_tier_names(self):
        assert TierName.WINGZARD.value == "Wingzard"
        assert TierName.WING_LEADER.value == "Wing Leader"
        assert TierName.WING_MEMBER.value == "Wing Member"


class TestEvaluateDecay:
    def test_wingzard_is_capped_not_reset(self):
        result = evaluate_decay(35000, days_ago(200), NOW)
        assert result.should_downgrade is True
        assert result.old_tier == TierName.WINGZARD
        assert result.new_tier == TierName.WING_LEADER
        assert result.new_points == 20000
        assert result.points_lost == 15000
        assert result.days_inactive == 200

    def test_wing_leader_drops_to_member_cap(self, engine):
        result = engine.evaluate_decay(12000, days_ago(181), NOW)
        assert result.new_tier == TierName.WING_MEMBER
        assert result.new_points == 5001
        assert result.points_lost == 6999

    def test_balance_below_cap_is_kept(self, engine):
        result = engine.evaluate_decay(20001, days_ago(365), NOW)
        assert result.new_tier == TierName.WING_LEADER
        assert result.new_points == 20000
        assert result.points_lost == 1

        result = engine.evaluate_decay(5001, days_ago(365), NOW)
        assert result.new_tier == TierName.WING_MEMBER
        assert result.new_points == 5001
        assert result.points_lost == 0

    def test_floor_tier_is_left_alone(self, engine):
        assert engine.evaluate_decay(900, days_ago(400), NOW) is None

    def test_zero_points_is_noop(self, engine):
        assert engine.evaluate_decay(0, days_ago(400), NOW) is None
        assert engine.evaluate_decay(None, days_ago(400), NOW) is None

    def test_active_customer_is_noop(self, engine):
        assert engine.evaluate_decay(35000, days_ago(179), NOW) is None

    def test_exactly_180_days_is_still_active(self, engine):
        assert engine.evaluate_decay(35000, days_ago(180), NOW) is None
        assert engine.evaluate_decay(35000, days_ago(180, seconds=1), NOW) is not None

    def test_no_recorded_activity_is_noop(self, engine):
        assert engine.evaluate_decay(35000, None, NOW) is None

    def test_same_inputs_give_same_result(self, engine):
        first = engine.evaluate_decay(35000, days_ago(200), NOW)
        second = engine.evaluate_decay(35000, days_ago(200), NOW)
        assert first == second

    def test_custom_inactivity_window(self):
        engine = TierEngine(inactivity_days=30)
        assert engine.evaluate_decay(8000, days_ago(31), NOW).new_tier == TierName.WING_MEMBER
        assert engine.evaluate_decay(8000, days_ago(29), NOW) is None


class TestPlanDecay:
    def state(self, points, inactive_days, tier=None, customer_id=None):
        return CustomerLoyaltyState(
            customer_id=customer_id or uuid.uuid4(),
            total_points=points,
            last_activity_date=days_ago(inactive_days),
            tier=tier if tier is not None else classify_tier(points),
            email=f"{points}@example.com",
        )

    def test_only_eligible_customers_are_planned(self, engine):
        wingzard = self.state(35000, 200)
        leader = self.state(12000, 190)
        planned = engine.plan_decay([
            wingzard,
            leader,
            self.state(900, 400),
            self.state(8000, 10),
            self.state(0, 500),
        ], NOW)

        assert [d.customer_id for d in planned] == [wingzard.customer_id, leader.customer_id]
        assert planned[0].new_points == 20000
        assert planned[0].last_activity == wingzard.last_activity_date
        assert planned[1].new_tier == TierName.WING_MEMBER

    def test_customer_listed_twice_is_planned_once(self, engine):
        state = self.state(35000, 200)
        planned = engine.plan_decay([state, state], NOW)
        assert len(planned) == 1

    def test_applied_demotion_is_not_repeated(self, engine):
        # Already demoted to Member with the balance at the cap
        state = self.state(5001, 300, tier=TierName.WING_MEMBER)
        assert engine.plan_decay([state], NOW) == []

    def test_demotions_cascade_across_runs(self, engine):
        customer_id = uuid.uuid4()
        first = engine.plan_decay([self.state(35000, 200, customer_id=customer_id)], NOW)[0]
        assert first.new_tier == TierName.WING_LEADER

        after_first_run = self.state(first.new_points, 200, tier=first.new_tier, customer_id=customer_id)
        second = engine.plan_decay([after_first_run], NOW)[0]
        assert second.old_tier == TierName.WING_LEADER
        assert second.new_tier == TierName.WING_MEMBER
        assert second.new_points == 5001

        after_second_run = self.state(second.new_points, 200, tier=second.new_tier, customer_id=customer_id)
        assert engine.plan_decay([after_second_run], NOW) == []


class TestTierProgress:
    def test_member_progress(self, engine):
        progress = engine.tier_progress(1200)
        assert progress.tier == TierName.WING_MEMBER
        assert progress.next_tier == TierName.WING_LEADER
        assert progress.points_to_next_tier == 3801
        assert progress.message == "3,801 pts to Wing Leader"

    def test_leader_progress(self, engine):
        progress = engine.tier_progress(5001)
        assert progress.next_tier == TierName.WINGZARD
        assert progress.points_to_next_tier == 15000

    def test_top_tier(self, engine):
        progress = engine.tier_progress(25000)
        assert progress.tier == TierName.WINGZARD
        assert progress.next_tier is None
        assert progress.points_to_next_tier == 0
        assert progress.message == "Max tier!"
