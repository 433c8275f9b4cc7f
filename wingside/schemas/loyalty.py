"""
Loyalty schemas - points, rewards and tier jobs.
"""
import uuid
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class PointsAwardRequest(BaseModel):
    """Admin award of points to a customer."""
    user_id: uuid.UUID
    points: int = Field(gt=0)
    reason: str
    metadata: Dict[str, Any] = {}

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason is required")
        return v.strip()


class PointsAdjustRequest(BaseModel):
    """Admin adjustment: positive to award, negative to deduct."""
    user_id: uuid.UUID
    points_change: int
    reason: str
    metadata: Dict[str, Any] = {}

    @field_validator("points_change")
    @classmethod
    def non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("points_change must be a non-zero integer (positive to award, negative to deduct)")
        return v

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason is required")
        return v.strip()


class RewardClaimRequest(BaseModel):
    """Claim a one-time reward."""
    reward_type: str
    description: Optional[str] = None
    metadata: Dict[str, Any] = {}


class PointsChangeResponse(BaseModel):
    """Outcome of an award, adjustment or claim."""
    success: bool = True
    user_id: uuid.UUID
    email: str
    points_change: int
    new_total_points: int
    tier: str
    transaction_id: uuid.UUID
    action_type: str  # award, deduct
    reason: Optional[str] = None


class RewardClaimStatus(BaseModel):
    claimed: bool
    claim_date: Optional[datetime] = None


class PointsTransactionResponse(BaseModel):
    id: uuid.UUID
    points: int
    transaction_type: str
    reason: Optional[str]
    balance_after: int
    created_at: datetime

    class Config:
        from_attributes = True


class TierProgressResponse(BaseModel):
    tier: str
    next_tier: Optional[str]
    points_to_next_tier: int
    message: str


class PointsDetailsResponse(BaseModel):
    """A customer's balance, tier and ledger summary."""
    user_id: uuid.UUID
    email: str
    full_name: Optional[str]
    total_points: int
    tier: str
    progress: TierProgressResponse
    last_activity_date: Optional[datetime]
    summary: Dict[str, int]
    recent_transactions: List[PointsTransactionResponse]


class TierDowngradeRecord(BaseModel):
    """One customer's inactivity demotion."""
    customer_id: uuid.UUID
    email: Optional[str]
    old_tier: str
    new_tier: str
    old_points: int
    new_points: int
    points_lost: int
    days_inactive: int
    last_activity: datetime


class TierDowngradePreview(BaseModel):
    total_affected: int
    users: List[TierDowngradeRecord]


class TierDowngradeResult(BaseModel):
    success: bool = True
    downgrades_processed: int
    failed: int = 0
    downgrades: List[TierDowngradeRecord]


class PointsExpirationRecord(BaseModel):
    reward_id: uuid.UUID
    user_id: uuid.UUID
    email: Optional[str]
    reward_type: str
    points_expired: int
    expired_at: datetime
    days_overdue: int


class PointsExpirationPreview(BaseModel):
    total_affected: int
    total_points_to_expire: int
    rewards: List[PointsExpirationRecord]


class PointsExpirationResult(BaseModel):
    success: bool = True
    expirations_processed: int
    failed: int = 0
    expirations: List[PointsExpirationRecord]
