"""
Loyalty tier rules.

Tiers are derived from a customer's points balance:

    Wing Member   0 - 5000
    Wing Leader   5001 - 20000
    Wingzard      above 20000

Promotion is implicit (the tier follows the balance on every award).
Demotion only happens through the inactivity batch: a customer with points
who has not been active for more than 180 days drops exactly one tier per
evaluation and has their balance capped for the tier they fall to. Wing
Member is the floor, so inactive members are left alone.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, List, Optional
import uuid


class TierName(str, Enum):
    WING_MEMBER = "Wing Member"
    WING_LEADER = "Wing Leader"
    WINGZARD = "Wingzard"


@dataclass(frozen=True)
class TierDefinition:
    name: TierName
    min_points: int
    # Balance kept when an inactive customer is demoted out of this tier
    decay_points: Optional[int] = None


# Ordered lowest to highest
TIERS = (
    TierDefinition(TierName.WING_MEMBER, 0),
    TierDefinition(TierName.WING_LEADER, 5001, decay_points=5001),
    TierDefinition(TierName.WINGZARD, 20001, decay_points=20000),
)

DEFAULT_INACTIVITY_DAYS = 6 * 30


@dataclass(frozen=True)
class DecayEvaluation:
    """Outcome of checking one balance for inactivity decay."""
    should_downgrade: bool
    old_tier: TierName
    new_tier: TierName
    old_points: int
    new_points: int
    points_lost: int
    days_inactive: int


@dataclass(frozen=True)
class CustomerLoyaltyState:
    """Snapshot of a customer's loyalty standing."""
    customer_id: uuid.UUID
    total_points: int
    last_activity_date: Optional[datetime]
    tier: Optional[TierName] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class TierDowngrade:
    """A planned demotion, ready to persist or show in a preview."""
    customer_id: uuid.UUID
    email: Optional[str]
    old_tier: TierName
    new_tier: TierName
    old_points: int
    new_points: int
    points_lost: int
    days_inactive: int
    last_activity: datetime


@dataclass(frozen=True)
class TierProgress:
    tier: TierName
    next_tier: Optional[TierName]
    points_to_next_tier: int
    message: str


class TierEngine:
    """Tier classification and inactivity decay. Holds no mutable state."""

    def __init__(self, inactivity_days: int = DEFAULT_INACTIVITY_DAYS, tiers=TIERS):
        self.inactivity_window = timedelta(days=inactivity_days)
        self.tiers = tuple(sorted(tiers, key=lambda t: t.min_points))

    def _definition(self, points: int) -> TierDefinition:
        current = self.tiers[0]
        for tier in self.tiers:
            if points >= tier.min_points:
                current = tier
        return current

    def _index(self, name: TierName) -> int:
        for i, tier in enumerate(self.tiers):
            if tier.name == name:
                return i
        raise KeyError(name)

    def classify_tier(self, points: int) -> TierName:
        """Tier for a points balance."""
        return self._definition(points or 0).name

    def days_inactive(self, last_activity_date: datetime, now: datetime) -> int:
        return math.floor((now - last_activity_date).total_seconds() / 86400)

    def is_inactive(self, last_activity_date: Optional[datetime], now: datetime) -> bool:
        if last_activity_date is None:
            return False
        return now - last_activity_date > self.inactivity_window

    def evaluate_decay(
        self,
        points: int,
        last_activity_date: Optional[datetime],
        now: datetime
    ) -> Optional[DecayEvaluation]:
        """
        Decide whether an inactive balance drops a tier.

        Returns None when nothing should happen: no points, still active,
        no recorded activity, or already in the floor tier.
        """
        points = points or 0
        if points <= 0 or not self.is_inactive(last_activity_date, now):
            return None

        current = self._definition(points)
        index = self._index(current.name)
        if index == 0:
            return None

        lower = self.tiers[index - 1]
        cap = current.decay_points if current.decay_points is not None else lower.min_points
        new_points = min(points, cap)

        return DecayEvaluation(
            should_downgrade=True,
            old_tier=current.name,
            new_tier=lower.name,
            old_points=points,
            new_points=new_points,
            points_lost=points - new_points,
            days_inactive=self.days_inactive(last_activity_date, now),
        )

    def plan_decay(
        self,
        states: Iterable[CustomerLoyaltyState],
        now: datetime
    ) -> List[TierDowngrade]:
        """
        Evaluate a batch of customers once each.

        Shared by the preview and the mutating batch so both report the same
        downgrades. A customer already sitting in the target tier with nothing
        left to lose has had this demotion applied and is skipped.
        """
        seen = set()
        planned = []
        for state in states:
            if state.customer_id in seen:
                continue
            seen.add(state.customer_id)

            evaluation = self.evaluate_decay(state.total_points, state.last_activity_date, now)
            if evaluation is None:
                continue
            if state.tier == evaluation.new_tier and evaluation.points_lost == 0:
                continue

            planned.append(TierDowngrade(
                customer_id=state.customer_id,
                email=state.email,
                old_tier=evaluation.old_tier,
                new_tier=evaluation.new_tier,
                old_points=evaluation.old_points,
                new_points=evaluation.new_points,
                points_lost=evaluation.points_lost,
                days_inactive=evaluation.days_inactive,
                last_activity=state.last_activity_date,
            ))
        return planned

    def tier_progress(self, points: int) -> TierProgress:
        """Where a balance sits and how far the next tier is."""
        points = max(0, points or 0)
        current = self._definition(points)
        index = self._index(current.name)
        if index == len(self.tiers) - 1:
            return TierProgress(current.name, None, 0, "Max tier!")

        upcoming = self.tiers[index + 1]
        needed = upcoming.min_points - points
        return TierProgress(
            current.name,
            upcoming.name,
            needed,
            f"{needed:,} pts to {upcoming.name.value}",
        )


tier_engine = TierEngine()


def classify_tier(points: int) -> TierName:
    return tier_engine.classify_tier(points)


def evaluate_decay(
    points: int,
    last_activity_date: Optional[datetime],
    now: datetime
) -> Optional[DecayEvaluation]:
    return tier_engine.evaluate_decay(points, last_activity_date, now)


def tier_rank(name) -> int:
    """Position of a tier, lowest first."""
    return tier_engine._index(TierName(name))
