"""
Loyalty service - points awards, adjustments, reward claims and the
scheduled tier-downgrade and points-expiration jobs.

Every balance change reads the profile, computes the new balance and tier
with the pure rules in `wingside.loyalty`, then writes the profile and its
ledger entry in a single commit.
"""
import uuid
import logging
from dataclasses import replace
from typing import Optional, List, Dict, Any
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.config import settings
from wingside.core.exceptions import (
    raise_not_found, raise_already_exists, raise_validation_error
)
from wingside.loyalty.tier_engine import (
    TierEngine, TierName, CustomerLoyaltyState, TierDowngrade
)
from wingside.loyalty.points import (
    purchase_points, apply_points_change, select_expired_rewards,
    REWARD_POINTS, FIRST_ORDER, PURCHASE
)
from wingside.models.customer import CustomerProfile, Reward, TransactionTypes
from wingside.repositories.customer_repo import CustomerRepository
from wingside.repositories.points_repo import PointsTransactionRepository, RewardRepository
from wingside.schemas.loyalty import (
    PointsChangeResponse, PointsDetailsResponse, PointsTransactionResponse,
    TierProgressResponse, RewardClaimStatus,
    TierDowngradeRecord, TierDowngradePreview, TierDowngradeResult,
    PointsExpirationRecord, PointsExpirationPreview, PointsExpirationResult
)

logger = logging.getLogger(__name__)


def _snapshot(profile: CustomerProfile) -> CustomerLoyaltyState:
    try:
        tier = TierName(profile.tier)
    except ValueError:
        tier = None
    return CustomerLoyaltyState(
        customer_id=profile.id,
        total_points=profile.total_points,
        last_activity_date=profile.last_activity_date,
        tier=tier,
        email=profile.email,
    )


def _downgrade_record(downgrade: TierDowngrade) -> TierDowngradeRecord:
    return TierDowngradeRecord(
        customer_id=downgrade.customer_id,
        email=downgrade.email,
        old_tier=downgrade.old_tier.value,
        new_tier=downgrade.new_tier.value,
        old_points=downgrade.old_points,
        new_points=downgrade.new_points,
        points_lost=downgrade.points_lost,
        days_inactive=downgrade.days_inactive,
        last_activity=downgrade.last_activity,
    )


class LoyaltyService:
    """Service for loyalty operations."""

    def __init__(self, session: AsyncSession, engine: Optional[TierEngine] = None):
        self.session = session
        self.engine = engine or TierEngine(inactivity_days=settings.TIER_INACTIVITY_DAYS)
        self.customer_repo = CustomerRepository(session)
        self.transaction_repo = PointsTransactionRepository(session)
        self.reward_repo = RewardRepository(session)

    async def _get_profile(self, user_id: uuid.UUID) -> CustomerProfile:
        profile = await self.customer_repo.get(user_id)
        if not profile:
            raise_not_found("Customer", str(user_id))
        return profile

    def _change_response(self, profile: CustomerProfile, transaction, reason: Optional[str]) -> PointsChangeResponse:
        return PointsChangeResponse(
            user_id=profile.id,
            email=profile.email,
            points_change=transaction.points,
            new_total_points=profile.total_points,
            tier=profile.tier,
            transaction_id=transaction.id,
            action_type="award" if transaction.points >= 0 else "deduct",
            reason=reason,
        )

    # ------------------------------------------------------------------
    # Awards and adjustments
    # ------------------------------------------------------------------

    async def award_points(
        self,
        user_id: uuid.UUID,
        points: int,
        reward_type: str,
        description: Optional[str] = None,
        amount_spent: Optional[float] = None,
        metadata: Optional[Dict[str, Any]] = None,
        admin_id: Optional[uuid.UUID] = None,
        expires_at: Optional[datetime] = None,
        claim: bool = False,
        now: Optional[datetime] = None
    ) -> PointsChangeResponse:
        """
        Credit points for an event. Promotes the tier when the new balance
        crosses a threshold and counts as customer activity.
        """
        if points <= 0:
            raise_validation_error("points must be a positive integer", "points")

        now = now or datetime.utcnow()
        profile = await self._get_profile(user_id)

        reward = Reward(
            user_id=profile.id,
            reward_type=reward_type,
            points=points,
            amount_spent=amount_spent,
            description=description,
            expires_at=expires_at,
            meta_data=metadata or {},
        )
        await self.reward_repo.stage(reward, claim=claim)

        new_balance = apply_points_change(profile.total_points, points)
        transaction = await self.customer_repo.apply_points(
            profile,
            points=points,
            new_balance=new_balance,
            new_tier=self.engine.classify_tier(new_balance).value,
            transaction_type=TransactionTypes.EARN,
            reason=description or reward_type,
            created_by=admin_id,
            meta_data={"reward_type": reward_type, **(metadata or {})},
            activity_at=now,
        )

        logger.info(
            f"Awarded {points} {reward_type} points to {profile.email} "
            f"(balance {new_balance}, tier {profile.tier})"
        )
        return self._change_response(profile, transaction, description)

    async def award_purchase_points(
        self,
        user_id: uuid.UUID,
        amount_spent: float,
        order_number: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Optional[PointsChangeResponse]:
        """Points for a paid order. Orders under ₦100 earn nothing."""
        points = purchase_points(amount_spent)
        if points <= 0:
            return None
        return await self.award_points(
            user_id,
            points,
            PURCHASE,
            description=f"Points earned from order #{order_number}" if order_number else "Points earned from order",
            amount_spent=amount_spent,
            metadata={"order_number": order_number} if order_number else {},
            now=now,
        )

    async def award_first_order_bonus(
        self,
        user_id: uuid.UUID,
        order_number: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Optional[PointsChangeResponse]:
        """One-off bonus for a customer's first order; None if already given."""
        if await self.reward_repo.get_claim(user_id, FIRST_ORDER):
            return None
        return await self.award_points(
            user_id,
            settings.FIRST_ORDER_BONUS_POINTS,
            FIRST_ORDER,
            description="First order bonus",
            metadata={"order_number": order_number} if order_number else {},
            claim=True,
            now=now,
        )

    async def admin_award_points(
        self,
        user_id: uuid.UUID,
        points: int,
        reason: str,
        admin_id: uuid.UUID,
        metadata: Optional[Dict[str, Any]] = None
    ) -> PointsChangeResponse:
        """Manual award by an admin."""
        response = await self.award_points(
            user_id,
            points,
            "admin_award",
            description=reason,
            metadata=metadata,
            admin_id=admin_id,
        )
        logger.info(f"Admin {admin_id} awarded {points} points to {response.email}. Reason: {reason}")
        return response

    async def adjust_points(
        self,
        user_id: uuid.UUID,
        points_change: int,
        reason: str,
        admin_id: Optional[uuid.UUID] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> PointsChangeResponse:
        """
        Manual correction. Deductions stop at a zero balance; the ledger
        records the change actually applied.
        """
        if points_change == 0:
            raise_validation_error(
                "must be a non-zero integer (positive to award, negative to deduct)",
                "points_change"
            )
        if not reason or not reason.strip():
            raise_validation_error("reason is required", "reason")

        profile = await self._get_profile(user_id)
        old_balance = profile.total_points
        new_balance = apply_points_change(old_balance, points_change)

        transaction = await self.customer_repo.apply_points(
            profile,
            points=new_balance - old_balance,
            new_balance=new_balance,
            new_tier=self.engine.classify_tier(new_balance).value,
            transaction_type=TransactionTypes.ADJUST,
            reason=reason,
            created_by=admin_id,
            meta_data={"requested_change": points_change, **(metadata or {})},
        )

        action = "awarded" if points_change > 0 else "deducted"
        logger.info(
            f"Admin {admin_id} {action} {abs(transaction.points)} points "
            f"{'to' if points_change > 0 else 'from'} {profile.email}. Reason: {reason}"
        )
        return self._change_response(profile, transaction, reason)

    async def claim_reward(
        self,
        user_id: uuid.UUID,
        reward_type: str,
        description: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> PointsChangeResponse:
        """
        Claim a one-time reward such as a social follow or review. The
        points come from the reward table, never from the caller.
        """
        points = REWARD_POINTS.get(reward_type)
        if points is None:
            raise_validation_error("Invalid reward type", "reward_type")

        if await self.reward_repo.get_claim(user_id, reward_type):
            raise_already_exists("Reward claim", "reward_type", reward_type)

        return await self.award_points(
            user_id,
            points,
            reward_type,
            description=description,
            metadata=metadata,
            claim=True,
        )

    async def get_claim_status(self, user_id: uuid.UUID, reward_type: str) -> RewardClaimStatus:
        claim = await self.reward_repo.get_claim(user_id, reward_type)
        return RewardClaimStatus(
            claimed=claim is not None,
            claim_date=claim.created_at if claim else None,
        )

    async def record_activity(self, user_id: uuid.UUID, now: Optional[datetime] = None) -> CustomerProfile:
        """Mark a qualifying action (order, login) so the tier does not decay."""
        profile = await self.customer_repo.touch_activity(user_id, now or datetime.utcnow())
        if not profile:
            raise_not_found("Customer", str(user_id))
        return profile

    async def get_points_details(self, user_id: uuid.UUID, limit: int = 10) -> PointsDetailsResponse:
        """Balance, tier progress and ledger summary for a customer."""
        profile = await self._get_profile(user_id)
        progress = self.engine.tier_progress(profile.total_points)
        summary = await self.transaction_repo.get_summary(profile.id)
        recent = await self.transaction_repo.get_recent(profile.id, limit)

        return PointsDetailsResponse(
            user_id=profile.id,
            email=profile.email,
            full_name=profile.full_name,
            total_points=profile.total_points,
            tier=profile.tier,
            progress=TierProgressResponse(
                tier=progress.tier.value,
                next_tier=progress.next_tier.value if progress.next_tier else None,
                points_to_next_tier=progress.points_to_next_tier,
                message=progress.message,
            ),
            last_activity_date=profile.last_activity_date,
            summary=summary,
            recent_transactions=[PointsTransactionResponse.model_validate(t) for t in recent],
        )

    # ------------------------------------------------------------------
    # Tier downgrades
    # ------------------------------------------------------------------

    async def _plan_downgrades(self, now: datetime) -> List[TierDowngrade]:
        cutoff = now - self.engine.inactivity_window
        candidates = await self.customer_repo.list_inactive(cutoff)
        return self.engine.plan_decay([_snapshot(p) for p in candidates], now)

    async def preview_tier_downgrades(self, now: Optional[datetime] = None) -> TierDowngradePreview:
        """Who the next downgrade run would affect. Writes nothing."""
        planned = await self._plan_downgrades(now or datetime.utcnow())
        return TierDowngradePreview(
            total_affected=len(planned),
            users=[_downgrade_record(d) for d in planned],
        )

    async def process_tier_downgrades(self, now: Optional[datetime] = None) -> TierDowngradeResult:
        """
        Demote inactive customers one tier each. A storage failure for one
        customer is logged and the run carries on with the rest.
        """
        planned = await self._plan_downgrades(now or datetime.utcnow())

        applied = []
        failed = 0
        for downgrade in planned:
            try:
                transaction = await self.customer_repo.apply_decay(
                    downgrade.customer_id,
                    new_points=downgrade.new_points,
                    new_tier=downgrade.new_tier.value,
                    days_inactive=downgrade.days_inactive,
                )
            except SQLAlchemyError as e:
                await self.session.rollback()
                failed += 1
                logger.error(f"Tier downgrade failed for customer {downgrade.customer_id}: {e}")
                continue

            if transaction is None:
                logger.warning(f"Skipped downgrade for customer {downgrade.customer_id}: no longer applies")
                continue

            # The balance may have dropped below the plan since it was read
            downgrade = replace(
                downgrade,
                new_points=transaction.balance_after,
                points_lost=-transaction.points,
            )
            applied.append(downgrade)
            logger.info(
                f"{downgrade.email}: {downgrade.old_tier.value} -> {downgrade.new_tier.value} "
                f"({downgrade.old_points} -> {downgrade.new_points} pts, "
                f"inactive {downgrade.days_inactive} days)"
            )

        logger.info(f"Processed {len(applied)} tier downgrades ({failed} failed)")
        return TierDowngradeResult(
            downgrades_processed=len(applied),
            failed=failed,
            downgrades=[_downgrade_record(d) for d in applied],
        )

    # ------------------------------------------------------------------
    # Points expiration
    # ------------------------------------------------------------------

    async def _expired_rewards(self, now: datetime) -> List[PointsExpirationRecord]:
        rewards = select_expired_rewards(await self.reward_repo.list_expired(now), now)
        emails = {}
        records = []
        for reward in rewards:
            if reward.user_id not in emails:
                profile = await self.customer_repo.get(reward.user_id)
                emails[reward.user_id] = profile.email if profile else None
            records.append(PointsExpirationRecord(
                reward_id=reward.id,
                user_id=reward.user_id,
                email=emails[reward.user_id],
                reward_type=reward.reward_type,
                points_expired=reward.points,
                expired_at=reward.expires_at,
                days_overdue=self.engine.days_inactive(reward.expires_at, now),
            ))
        return records

    async def preview_points_expiration(self, now: Optional[datetime] = None) -> PointsExpirationPreview:
        """Rewards that have expired but not been processed. Writes nothing."""
        records = await self._expired_rewards(now or datetime.utcnow())
        return PointsExpirationPreview(
            total_affected=len(records),
            total_points_to_expire=sum(r.points_expired for r in records),
            rewards=records,
        )

    async def process_points_expiration(self, now: Optional[datetime] = None) -> PointsExpirationResult:
        """Mark expired rewards and take their points back, one reward at a time."""
        now = now or datetime.utcnow()
        records = await self._expired_rewards(now)

        processed = []
        failed = 0
        for record in records:
            try:
                reward = await self.reward_repo.get(record.reward_id)
                profile = await self.customer_repo.get(record.user_id)
                if reward is None or profile is None or reward.status != "earned":
                    continue

                reward.status = "expired"
                self.session.add(reward)

                old_balance = profile.total_points
                new_balance = apply_points_change(old_balance, -reward.points)
                await self.customer_repo.apply_points(
                    profile,
                    points=new_balance - old_balance,
                    new_balance=new_balance,
                    new_tier=self.engine.classify_tier(new_balance).value,
                    transaction_type=TransactionTypes.EXPIRE,
                    reason=f"{reward.reward_type} points expired",
                    meta_data={"reward_id": str(reward.id)},
                )
            except SQLAlchemyError as e:
                await self.session.rollback()
                failed += 1
                logger.error(f"Points expiration failed for reward {record.reward_id}: {e}")
                continue

            processed.append(record)
            logger.info(
                f"{record.email}: {record.points_expired} {record.reward_type} points expired "
                f"({record.expired_at.date()})"
            )

        logger.info(f"Processed {len(processed)} points expirations ({failed} failed)")
        return PointsExpirationResult(
            expirations_processed=len(processed),
            failed=failed,
            expirations=processed,
        )
