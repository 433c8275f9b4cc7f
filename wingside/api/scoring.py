"""
Lead scoring API routes.
"""
import uuid
from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.database import get_session
from wingside.services.scoring_service import ScoringService
from wingside.schemas.scoring import (
    ScoreUpdateResponse, ScoreAnalysisResponse,
    RecalculateRequest, RecalculateResponse
)
from wingside.api.deps import require_admin
from wingside.models.customer import CustomerProfile

router = APIRouter(prefix="/api", tags=["scoring"])


@router.get("/leads/{lead_id}/score", response_model=ScoreAnalysisResponse)
async def get_lead_score(
    lead_id: uuid.UUID,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Score analysis for a lead: score, quality, breakdown and next steps."""
    scoring_service = ScoringService(session)
    return await scoring_service.analyze(lead_id)


@router.post("/leads/{lead_id}/score", response_model=ScoreUpdateResponse)
async def recalculate_lead_score(
    lead_id: uuid.UUID,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Recalculate and store a lead's score."""
    scoring_service = ScoringService(session)
    return await scoring_service.recalculate(lead_id)


@router.post("/scoring/recalculate", response_model=RecalculateResponse)
async def recalculate_scores(
    request: RecalculateRequest,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Recalculate lead scores."""
    scoring_service = ScoringService(session)
    return await scoring_service.recalculate_all(request.lead_ids)
