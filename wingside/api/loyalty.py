"""
Loyalty API routes - customer points, reward claims and admin points tools.
"""
import uuid
from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.database import get_session
from wingside.services.loyalty_service import LoyaltyService
from wingside.schemas.loyalty import (
    PointsAwardRequest, PointsAdjustRequest, RewardClaimRequest,
    PointsChangeResponse, PointsDetailsResponse, RewardClaimStatus
)
from wingside.api.deps import get_current_user, require_admin, require_site_open
from wingside.models.customer import CustomerProfile

router = APIRouter(prefix="/api", tags=["loyalty"])


@router.get("/loyalty/me", response_model=PointsDetailsResponse)
async def get_my_points(
    current_user: CustomerProfile = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Current customer's points, tier and progress to the next tier."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.get_points_details(current_user.id)


@router.post(
    "/rewards/claim",
    response_model=PointsChangeResponse,
    dependencies=[Depends(require_site_open)]
)
async def claim_reward(
    request: RewardClaimRequest,
    current_user: CustomerProfile = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Claim a one-time reward."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.claim_reward(
        current_user.id,
        request.reward_type,
        request.description,
        request.metadata
    )


@router.get("/rewards/claim", response_model=RewardClaimStatus)
async def get_claim_status(
    reward_type: str = Query(..., alias="type"),
    current_user: CustomerProfile = Depends(get_current_user),
    session: AsyncSession = Depends(get_session)
):
    """Whether the current customer already claimed a reward."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.get_claim_status(current_user.id, reward_type)


@router.post(
    "/admin/points/award",
    response_model=PointsChangeResponse,
    dependencies=[Depends(require_site_open)]
)
async def award_points(
    request: PointsAwardRequest,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Manually award points to a customer."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.admin_award_points(
        request.user_id,
        request.points,
        request.reason,
        current_user.id,
        request.metadata
    )


@router.post(
    "/admin/points/adjust",
    response_model=PointsChangeResponse,
    dependencies=[Depends(require_site_open)]
)
async def adjust_points(
    request: PointsAdjustRequest,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Manually award or deduct points."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.adjust_points(
        request.user_id,
        request.points_change,
        request.reason,
        current_user.id,
        request.metadata
    )


@router.get("/admin/points/{user_id}", response_model=PointsDetailsResponse)
async def get_user_points(
    user_id: uuid.UUID,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Points details for any customer."""
    loyalty_service = LoyaltyService(session)
    return await loyalty_service.get_points_details(user_id)
