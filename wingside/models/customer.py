"""
Customer loyalty models - profiles, the points ledger and earned rewards.
"""
import uuid
from datetime import datetime
from typing import Optional, Dict, Any

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB

# JSONB on Postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class CustomerProfile(SQLModel, table=True):
    """
    Customer account with loyalty standing.
    `tier` normally follows `total_points`; it only disagrees after an
    inactivity demotion capped the balance.
    """
    __tablename__ = "profiles"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    email: str = Field(index=True, unique=True)
    full_name: Optional[str] = None
    role: str = Field(default="customer", index=True)  # customer, admin

    # Loyalty
    total_points: int = Field(default=0, index=True)
    tier: str = Field(default="Wing Member", index=True)
    last_activity_date: Optional[datetime] = Field(default_factory=datetime.utcnow, index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class PointsTransaction(SQLModel, table=True):
    """
    Points ledger entry. Every change to a balance writes one of these.
    """
    __tablename__ = "points_transactions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)

    points: int  # positive for earn, negative for deductions
    transaction_type: str = Field(index=True)  # earn, adjust, decay, expire
    reason: Optional[str] = None
    balance_after: int

    created_by: Optional[uuid.UUID] = None  # admin who made a manual change
    meta_data: Dict[str, Any] = Field(default={}, sa_column=Column(JSONType))

    created_at: datetime = Field(default_factory=datetime.utcnow)


class Reward(SQLModel, table=True):
    """
    Points earned from a single event (purchase, referral, social follow...).
    Rewards with an expiry lose their points once it passes.
    """
    __tablename__ = "rewards"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)

    reward_type: str = Field(index=True)  # purchase, first_order, instagram_follow, referral, ...
    points: int
    amount_spent: Optional[float] = None
    description: Optional[str] = None
    status: str = Field(default="earned", index=True)  # earned, expired

    expires_at: Optional[datetime] = Field(default=None, index=True)
    meta_data: Dict[str, Any] = Field(default={}, sa_column=Column(JSONType))

    created_at: datetime = Field(default_factory=datetime.utcnow)


class RewardClaim(SQLModel, table=True):
    """
    Marks a one-time reward as claimed by a customer.
    """
    __tablename__ = "reward_claims"
    __table_args__ = (UniqueConstraint("user_id", "reward_type"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="profiles.id", index=True)
    reward_type: str
    reward_id: Optional[uuid.UUID] = Field(default=None, foreign_key="rewards.id")

    created_at: datetime = Field(default_factory=datetime.utcnow)


# Ledger entry types
class TransactionTypes:
    EARN = "earn"
    ADJUST = "adjust"
    DECAY = "decay"
    EXPIRE = "expire"
