"""
Scheduled job routes. Each job has a GET preview that writes nothing and a
POST that applies the changes. Both require the cron secret.
"""
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.database import get_session
from wingside.services.loyalty_service import LoyaltyService
from wingside.schemas.loyalty import (
    TierDowngradePreview, TierDowngradeResult,
    PointsExpirationPreview, PointsExpirationResult
)
from wingside.api.deps import require_cron_secret

router = APIRouter(
    prefix="/api/cron",
    tags=["cron"],
    dependencies=[Depends(require_cron_secret)]
)


@router.get("/tier-downgrades", response_model=TierDowngradePreview)
async def preview_tier_downgrades(session: AsyncSession = Depends(get_session)):
    """Customers the next downgrade run would demote."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.preview_tier_downgrades()


@router.post("/tier-downgrades", response_model=TierDowngradeResult)
async def process_tier_downgrades(session: AsyncSession = Depends(get_session)):
    """Demote customers inactive for more than six months by one tier."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.process_tier_downgrades()


@router.get("/expire-points", response_model=PointsExpirationPreview)
async def preview_points_expiration(session: AsyncSession = Depends(get_session)):
    """Rewards past their expiry that have not been processed."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.preview_points_expiration()


@router.post("/expire-points", response_model=PointsExpirationResult)
async def process_points_expiration(session: AsyncSession = Depends(get_session)):
    """Expire rewards and deduct their points."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.process_points_expiration()
