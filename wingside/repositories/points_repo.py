"""
Points ledger and reward repositories.
"""
import uuid
from typing import Optional, List
from datetime import datetime

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from wingside.models.customer import PointsTransaction, Reward, RewardClaim, TransactionTypes
from wingside.repositories.base import BaseRepository


class PointsTransactionRepository(BaseRepository[PointsTransaction]):
    """Repository for PointsTransaction operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(PointsTransaction, session)

    async def get_recent(self, user_id: uuid.UUID, limit: int = 10) -> List[PointsTransaction]:
        query = select(PointsTransaction).where(
            PointsTransaction.user_id == user_id
        ).order_by(PointsTransaction.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def _sum(self, *conditions) -> int:
        query = select(func.coalesce(func.sum(PointsTransaction.points), 0)).where(*conditions)
        result = await self.session.exec(query)
        return int(result.one())

    async def get_summary(self, user_id: uuid.UUID) -> dict:
        """Lifetime earned, redeemed, expired and decayed points."""
        earned = await self._sum(
            PointsTransaction.user_id == user_id,
            PointsTransaction.points > 0
        )
        redeemed = await self._sum(
            PointsTransaction.user_id == user_id,
            PointsTransaction.transaction_type == TransactionTypes.ADJUST,
            PointsTransaction.points < 0
        )
        expired = await self._sum(
            PointsTransaction.user_id == user_id,
            PointsTransaction.transaction_type == TransactionTypes.EXPIRE
        )
        decayed = await self._sum(
            PointsTransaction.user_id == user_id,
            PointsTransaction.transaction_type == TransactionTypes.DECAY
        )
        return {
            "total_earned": earned,
            "total_redeemed": abs(redeemed),
            "total_expired": abs(expired),
            "total_decayed": abs(decayed),
        }


class RewardRepository(BaseRepository[Reward]):
    """Repository for Reward and RewardClaim operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(Reward, session)

    async def list_expired(self, now: datetime) -> List[Reward]:
        """Earned rewards past their expiry, oldest first."""
        query = select(Reward).where(
            Reward.status == "earned",
            Reward.expires_at.is_not(None),
            Reward.expires_at < now
        ).order_by(Reward.expires_at)
        result = await self.session.exec(query)
        return result.all()

    async def get_claim(self, user_id: uuid.UUID, reward_type: str) -> Optional[RewardClaim]:
        query = select(RewardClaim).where(
            RewardClaim.user_id == user_id,
            RewardClaim.reward_type == reward_type
        )
        result = await self.session.exec(query)
        return result.first()

    async def stage(self, reward: Reward, claim: bool = False) -> Optional[RewardClaim]:
        """
        Add a reward (and optionally its one-time claim) to the session
        without committing, so it lands with the balance change.
        """
        self.session.add(reward)
        if claim:
            # The claim row references the reward row
            await self.session.flush()
            reward_claim = RewardClaim(
                user_id=reward.user_id,
                reward_type=reward.reward_type,
                reward_id=reward.id
            )
            self.session.add(reward_claim)
            return reward_claim
        return None
