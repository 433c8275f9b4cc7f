"""
Customer profile repository - loyalty balances and the points ledger.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.loyalty.tier_engine import tier_rank
from wingside.models.customer import CustomerProfile, PointsTransaction, TransactionTypes
from wingside.repositories.base import BaseRepository


class CustomerRepository(BaseRepository[CustomerProfile]):
    """Repository for CustomerProfile operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(CustomerProfile, session)

    async def get_by_email(self, email: str) -> Optional[CustomerProfile]:
        return await self.get_by_field("email", email)

    async def list_inactive(self, cutoff: datetime) -> List[CustomerProfile]:
        """Customers with points whose last activity is older than `cutoff`."""
        query = select(CustomerProfile).where(
            CustomerProfile.last_activity_date < cutoff,
            CustomerProfile.total_points > 0
        ).order_by(CustomerProfile.total_points.desc())
        result = await self.session.exec(query)
        return result.all()

    async def apply_points(
        self,
        profile: CustomerProfile,
        points: int,
        new_balance: int,
        new_tier: str,
        transaction_type: str,
        reason: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None,
        meta_data: Optional[dict] = None,
        activity_at: Optional[datetime] = None
    ) -> PointsTransaction:
        """
        Write a balance change and its ledger entry in one commit.
        `activity_at` also refreshes the customer's last activity.
        """
        now = datetime.utcnow()
        profile.total_points = new_balance
        profile.tier = new_tier
        profile.updated_at = now
        if activity_at is not None:
            profile.last_activity_date = activity_at

        transaction = PointsTransaction(
            user_id=profile.id,
            points=points,
            transaction_type=transaction_type,
            reason=reason,
            balance_after=new_balance,
            created_by=created_by,
            meta_data=meta_data or {}
        )
        self.session.add(profile)
        self.session.add(transaction)
        await self.session.commit()
        await self.session.refresh(profile)
        await self.session.refresh(transaction)
        return transaction

    async def apply_decay(
        self,
        customer_id: uuid.UUID,
        new_points: int,
        new_tier: str,
        days_inactive: int
    ) -> Optional[PointsTransaction]:
        """
        Persist an inactivity demotion. Reads the profile fresh and only
        ever lowers it: the balance is capped at what the customer holds
        now, and nothing is written when there is nothing left to take.
        """
        profile = await self.get(customer_id)
        if not profile:
            return None

        new_points = min(profile.total_points, new_points)
        points_lost = profile.total_points - new_points
        if points_lost == 0 and tier_rank(profile.tier) <= tier_rank(new_tier):
            return None

        return await self.apply_points(
            profile,
            points=-points_lost,
            new_balance=new_points,
            new_tier=new_tier,
            transaction_type=TransactionTypes.DECAY,
            reason=f"Tier downgrade after {days_inactive} days of inactivity",
            meta_data={"days_inactive": days_inactive}
        )

    async def touch_activity(self, customer_id: uuid.UUID, at: datetime) -> Optional[CustomerProfile]:
        """Record a qualifying action (order, login)."""
        profile = await self.get(customer_id)
        if not profile:
            return None
        profile.last_activity_date = at
        profile.updated_at = datetime.utcnow()
        self.session.add(profile)
        await self.session.commit()
        await self.session.refresh(profile)
        return profile
