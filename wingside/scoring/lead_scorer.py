"""
Lead scoring - rates a sales lead from 0 to 100 for follow-up priority.

Each factor contributes an independently capped number of points:

    source            0-20
    budget            0-20
    timeline          0-20
    interest level    0-20
    estimated value   0-10
    engagement        0-10
    recency bonus     0-5

The sum is clamped to 0-100. A converted lead always scores 0 since it has
left the funnel. Incomplete or malformed lead data never raises: unknown
categories fall back to the lowest score for that factor and bad numbers
count as zero.
"""
import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, field_validator


class LeadSource(str, Enum):
    REFERRAL = "referral"
    PARTNER = "partner"
    EVENT = "event"
    SOCIAL = "social"
    WEBSITE = "website"
    OTHER = "other"


class Budget(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NOT_SPECIFIED = "not_specified"


class Timeline(str, Enum):
    IMMEDIATE = "immediate"
    ONE_TO_THREE_MONTHS = "1-3_months"
    THREE_TO_SIX_MONTHS = "3-6_months"
    SIX_TO_TWELVE_MONTHS = "6-12_months"
    NOT_SURE = "not_sure"


class InterestLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


SOURCE_POINTS = {
    LeadSource.REFERRAL: 20,
    LeadSource.PARTNER: 15,
    LeadSource.EVENT: 12,
    LeadSource.SOCIAL: 10,
    LeadSource.WEBSITE: 8,
    LeadSource.OTHER: 5,
}

BUDGET_POINTS = {
    Budget.HIGH: 20,
    Budget.MEDIUM: 12,
    Budget.LOW: 5,
    Budget.NOT_SPECIFIED: 0,
}

TIMELINE_POINTS = {
    Timeline.IMMEDIATE: 20,
    Timeline.ONE_TO_THREE_MONTHS: 15,
    Timeline.THREE_TO_SIX_MONTHS: 10,
    Timeline.SIX_TO_TWELVE_MONTHS: 5,
    Timeline.NOT_SURE: 2,
}

INTEREST_POINTS = {
    InterestLevel.HIGH: 20,
    InterestLevel.MEDIUM: 10,
    InterestLevel.LOW: 3,
}

# (minimum value, points), checked top-down
ESTIMATED_VALUE_TIERS = [
    (100_000, 10),
    (50_000, 7),
    (20_000, 5),
    (5_000, 3),
]

POINTS_PER_ACTIVITY = 2
MAX_ENGAGEMENT_POINTS = 10

RECENT_CONTACT_DAYS = 7
RECENT_CONTACT_BONUS = 5
WARM_CONTACT_DAYS = 30
WARM_CONTACT_BONUS = 3

MIN_SCORE = 0
MAX_SCORE = 100

HOT_LEAD = "Hot Lead"
WARM_LEAD = "Warm Lead"
COLD_LEAD = "Cold Lead"
UNQUALIFIED = "Unqualified"


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _parse_enum(enum_cls, value):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError:
        return None


class LeadFactors(BaseModel):
    """Inputs to the lead scorer. Construction never fails on bad lead data."""
    source: Optional[LeadSource] = None
    budget: Optional[Budget] = None
    timeline: Optional[Timeline] = None
    interest_level: Optional[InterestLevel] = None
    estimated_value: Optional[float] = None
    activities_count: int = 0
    last_contacted_at: Optional[datetime] = None
    converted: bool = False

    class Config:
        frozen = True

    @field_validator("source", mode="before")
    @classmethod
    def _source(cls, v):
        return _parse_enum(LeadSource, v)

    @field_validator("budget", mode="before")
    @classmethod
    def _budget(cls, v):
        return _parse_enum(Budget, v)

    @field_validator("timeline", mode="before")
    @classmethod
    def _timeline(cls, v):
        return _parse_enum(Timeline, v)

    @field_validator("interest_level", mode="before")
    @classmethod
    def _interest_level(cls, v):
        return _parse_enum(InterestLevel, v)

    @field_validator("estimated_value", mode="before")
    @classmethod
    def _estimated_value(cls, v):
        if v is None or isinstance(v, bool):
            return None
        try:
            value = float(v)
        except OverflowError:
            # Integers too large for a float
            value = math.inf if v > 0 else 0.0
        except (TypeError, ValueError):
            return None
        if math.isnan(value):
            return None
        return max(0.0, value)

    @field_validator("activities_count", mode="before")
    @classmethod
    def _activities_count(cls, v):
        if v is None or isinstance(v, bool):
            return 0
        try:
            count = int(float(v))
        except (TypeError, ValueError, OverflowError):
            return 0
        return max(0, count)

    @field_validator("last_contacted_at", mode="before")
    @classmethod
    def _last_contacted_at(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, datetime):
            return _to_naive_utc(v)
        if isinstance(v, str):
            try:
                # Python < 3.11 does not accept a trailing "Z"
                parsed = datetime.fromisoformat(v.strip().replace("Z", "+00:00"))
            except ValueError:
                return None
            return _to_naive_utc(parsed)
        return None

    @field_validator("converted", mode="before")
    @classmethod
    def _converted(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in ("true", "1", "yes")
        return bool(v)


class FactorContribution(BaseModel):
    """One line of a score breakdown."""
    label: str
    value: str
    points: int


class LeadScorer:
    """
    Scores leads. Pure apart from the clock used for the recency bonus,
    which can be injected for tests and batch runs.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self.clock = clock

    def source_points(self, factors: LeadFactors) -> int:
        return SOURCE_POINTS[factors.source or LeadSource.OTHER]

    def budget_points(self, factors: LeadFactors) -> int:
        return BUDGET_POINTS[factors.budget or Budget.NOT_SPECIFIED]

    def timeline_points(self, factors: LeadFactors) -> int:
        return TIMELINE_POINTS[factors.timeline or Timeline.NOT_SURE]

    def interest_points(self, factors: LeadFactors) -> int:
        return INTEREST_POINTS[factors.interest_level or InterestLevel.LOW]

    def estimated_value_points(self, factors: LeadFactors) -> int:
        value = factors.estimated_value
        if not value:
            return 0
        for threshold, points in ESTIMATED_VALUE_TIERS:
            if value >= threshold:
                return points
        return 1

    def engagement_points(self, factors: LeadFactors) -> int:
        return min(MAX_ENGAGEMENT_POINTS, factors.activities_count * POINTS_PER_ACTIVITY)

    def recency_points(self, factors: LeadFactors, now: Optional[datetime] = None) -> int:
        if factors.last_contacted_at is None:
            return 0
        now = _to_naive_utc(now or self.clock())
        days_since_contact = math.floor(
            (now - factors.last_contacted_at).total_seconds() / 86400
        )
        if days_since_contact <= RECENT_CONTACT_DAYS:
            return RECENT_CONTACT_BONUS
        if days_since_contact <= WARM_CONTACT_DAYS:
            return WARM_CONTACT_BONUS
        return 0

    def score(self, factors: LeadFactors, now: Optional[datetime] = None) -> int:
        """Calculate the 0-100 score for a lead."""
        if factors.converted:
            return MIN_SCORE

        total = (
            self.source_points(factors)
            + self.budget_points(factors)
            + self.timeline_points(factors)
            + self.interest_points(factors)
            + self.estimated_value_points(factors)
            + self.engagement_points(factors)
            + self.recency_points(factors, now)
        )
        return max(MIN_SCORE, min(MAX_SCORE, total))

    @staticmethod
    def quality(score: int) -> str:
        """Human-readable quality label for a score."""
        if score >= 80:
            return HOT_LEAD
        if score >= 60:
            return WARM_LEAD
        if score >= 40:
            return COLD_LEAD
        return UNQUALIFIED

    def breakdown(
        self, factors: LeadFactors, now: Optional[datetime] = None
    ) -> Dict[str, FactorContribution]:
        """Per-factor contributions, for display and debugging."""
        not_specified = "Not specified"
        value = factors.estimated_value
        last_contact = factors.last_contacted_at

        return {
            "source": FactorContribution(
                label="Source",
                value=factors.source.value if factors.source else not_specified,
                points=self.source_points(factors),
            ),
            "budget": FactorContribution(
                label="Budget",
                value=factors.budget.value if factors.budget else not_specified,
                points=self.budget_points(factors),
            ),
            "timeline": FactorContribution(
                label="Timeline",
                value=factors.timeline.value if factors.timeline else not_specified,
                points=self.timeline_points(factors),
            ),
            "interest_level": FactorContribution(
                label="Interest Level",
                value=factors.interest_level.value if factors.interest_level else not_specified,
                points=self.interest_points(factors),
            ),
            "estimated_value": FactorContribution(
                label="Estimated Value",
                value=f"₦{value:,.0f}" if value else not_specified,
                points=self.estimated_value_points(factors),
            ),
            "engagement": FactorContribution(
                label="Engagement",
                value=f"{factors.activities_count} activities",
                points=self.engagement_points(factors),
            ),
            "recency": FactorContribution(
                label="Last Contact",
                value=last_contact.isoformat() if last_contact else "Never contacted",
                points=self.recency_points(factors, now),
            ),
        }

    def suggest_follow_up_actions(
        self,
        score: int,
        timeline: Optional[Any] = None,
        estimated_value: Optional[float] = None
    ) -> List[str]:
        """Suggest next steps for a lead based on its score and qualification."""
        label = self.quality(score)
        if label == HOT_LEAD:
            actions = [
                "Priority follow-up: Call within 24 hours",
                "Schedule demo or meeting",
                "Send pricing proposal",
            ]
        elif label == WARM_LEAD:
            actions = [
                "Send personalized email",
                "Connect on social media",
                "Schedule follow-up call",
            ]
        elif label == COLD_LEAD:
            actions = [
                "Add to nurture campaign",
                "Send educational content",
                "Monitor engagement",
            ]
        else:
            actions = [
                "Research lead background",
                "Determine if good fit",
                "Consider disqualification",
            ]

        if _parse_enum(Timeline, timeline) == Timeline.IMMEDIATE:
            actions.append("Urgent: Fast-track to proposal")

        if estimated_value is not None and estimated_value >= 100_000:
            actions.append("Executive outreach recommended")
            actions.append("Custom proposal preparation")

        return actions


def factors_from_lead(lead: Any, activities_count: int = 0) -> LeadFactors:
    """Build scoring factors from a stored lead record."""
    return LeadFactors(
        source=getattr(lead, "source", None),
        budget=getattr(lead, "budget", None),
        timeline=getattr(lead, "timeline", None),
        interest_level=getattr(lead, "interest_level", None),
        estimated_value=getattr(lead, "estimated_value", None),
        activities_count=activities_count,
        last_contacted_at=getattr(lead, "last_contacted_at", None),
        converted=getattr(lead, "status", None) == "converted",
    )


lead_scorer = LeadScorer()
