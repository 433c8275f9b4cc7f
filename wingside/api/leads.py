"""
Leads API routes.
"""
import uuid
from typing import Optional, List

from fastapi import APIRouter, Depends, Query
from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.database import get_session
from wingside.core.pagination import Page
from wingside.services.lead_service import LeadService
from wingside.schemas.lead import (
    LeadCreate, LeadUpdate, LeadResponse, LeadFilter,
    LeadActivityCreate, LeadActivityResponse, LeadStats
)
from wingside.api.deps import require_admin
from wingside.models.customer import CustomerProfile

router = APIRouter(prefix="/api/leads", tags=["leads"])


@router.post("/", response_model=LeadResponse, status_code=201)
async def create_lead(
    lead_data: LeadCreate,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Create a new lead with an initial score."""
    lead_service = LeadService(session)
    return await lead_service.create(lead_data, current_user.id)


@router.get("/", response_model=Page[LeadResponse])
async def list_leads(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[str] = None,
    source: Optional[str] = None,
    min_score: Optional[int] = None,
    max_score: Optional[int] = None,
    search: Optional[str] = None,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """List leads, highest score first."""
    filters = LeadFilter(
        status=status,
        source=source,
        min_score=min_score,
        max_score=max_score,
        search=search
    )

    lead_service = LeadService(session)
    return await lead_service.list(filters, page, limit)


@router.get("/stats", response_model=LeadStats)
async def get_lead_stats(
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Totals, hot leads, average score and counts per status."""
    lead_service = LeadService(session)
    return await lead_service.get_stats()


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: uuid.UUID,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Get a lead by ID."""
    lead_service = LeadService(session)
    return await lead_service.get(lead_id)


@router.patch("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: uuid.UUID,
    lead_data: LeadUpdate,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Update a lead."""
    lead_service = LeadService(session)
    return await lead_service.update(lead_id, lead_data, current_user.id)


@router.delete("/{lead_id}", status_code=204)
async def delete_lead(
    lead_id: uuid.UUID,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Delete a lead."""
    lead_service = LeadService(session)
    await lead_service.delete(lead_id)


@router.post("/{lead_id}/activities", response_model=LeadActivityResponse, status_code=201)
async def add_lead_activity(
    lead_id: uuid.UUID,
    activity_data: LeadActivityCreate,
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Log a call, email, meeting or note against a lead."""
    lead_service = LeadService(session)
    return await lead_service.add_activity(lead_id, activity_data, current_user.id)


@router.get("/{lead_id}/activities", response_model=List[LeadActivityResponse])
async def list_lead_activities(
    lead_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=200),
    current_user: CustomerProfile = Depends(require_admin),
    session: AsyncSession = Depends(get_session)
):
    """Recent activity for a lead."""
    lead_service = LeadService(session)
    return await lead_service.list_activities(lead_id, limit)
