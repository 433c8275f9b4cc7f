"""
Lead service - lead management with scoring.
"""
import uuid
import logging
from typing import Optional, List
from datetime import datetime

from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.core.exceptions import raise_not_found, raise_conflict
from wingside.repositories.lead_repo import LeadRepository, LeadActivityRepository
from wingside.models.lead import Lead, LeadActivity, CONTACT_ACTIVITY_TYPES
from wingside.schemas.lead import LeadCreate, LeadUpdate, LeadFilter, LeadActivityCreate
from wingside.scoring.lead_scorer import LeadScorer, lead_scorer, factors_from_lead

logger = logging.getLogger(__name__)

# Lead fields that feed the score
SCORE_FIELDS = (
    "source", "budget", "timeline", "interest_level",
    "estimated_value", "status", "last_contacted_at"
)


class LeadService:
    """Service for lead operations."""

    def __init__(self, session: AsyncSession, scorer: LeadScorer = lead_scorer):
        self.session = session
        self.scorer = scorer
        self.lead_repo = LeadRepository(session)
        self.activity_repo = LeadActivityRepository(session)

    async def create(
        self,
        lead_data: LeadCreate,
        user_id: Optional[uuid.UUID] = None
    ) -> Lead:
        """Create a new lead with an initial score."""
        if lead_data.email:
            existing = await self.lead_repo.get_by_email(lead_data.email)
            if existing:
                raise_conflict("Lead", "email", lead_data.email)

        data = lead_data.model_dump()
        data["created_by"] = user_id
        lead = await self.lead_repo.create(data)

        await self.activity_repo.log(
            lead_id=lead.id,
            activity_type="status_change",
            subject="Lead created",
            description=f"Lead {lead.name} was created via {lead.source}",
            created_by=user_id
        )

        await self._rescore(lead)
        logger.info(f"Created lead {lead.id} ({lead.source}) with score {lead.score}")
        return lead

    async def get(self, lead_id: uuid.UUID) -> Lead:
        """Get a lead by ID."""
        lead = await self.lead_repo.get(lead_id)
        if not lead:
            raise_not_found("Lead", str(lead_id))
        return lead

    async def list(
        self,
        filters: Optional[LeadFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """List leads with filtering and pagination."""
        return await self.lead_repo.search(filters, page, limit)

    async def update(
        self,
        lead_id: uuid.UUID,
        lead_data: LeadUpdate,
        user_id: Optional[uuid.UUID] = None
    ) -> Lead:
        """Update a lead, rescoring when a scoring input changed."""
        lead = await self.get(lead_id)
        old_status = lead.status

        update_data = lead_data.model_dump(exclude_unset=True)
        if update_data.get("email") and update_data["email"] != lead.email:
            existing = await self.lead_repo.get_by_email(update_data["email"])
            if existing and existing.id != lead_id:
                raise_conflict("Lead", "email", update_data["email"])

        updated_lead = await self.lead_repo.update(lead_id, update_data)

        if "status" in update_data and update_data["status"] != old_status:
            await self.activity_repo.log(
                lead_id=lead_id,
                activity_type="status_change",
                subject="Status changed",
                description=f"Status changed from {old_status} to {update_data['status']}",
                created_by=user_id
            )

        if any(f in update_data for f in SCORE_FIELDS) or "status" in update_data:
            await self._rescore(updated_lead)

        return updated_lead

    async def delete(self, lead_id: uuid.UUID) -> bool:
        """Delete a lead and its activity log."""
        lead = await self.get(lead_id)
        await self.activity_repo.delete_for_lead(lead.id)
        success = await self.lead_repo.delete(lead.id)
        if success:
            logger.info(f"Deleted lead {lead_id}")
        return success

    async def add_activity(
        self,
        lead_id: uuid.UUID,
        activity_data: LeadActivityCreate,
        user_id: Optional[uuid.UUID] = None
    ) -> LeadActivity:
        """Log a touchpoint and refresh the lead's score."""
        lead = await self.get(lead_id)

        activity = await self.activity_repo.log(
            lead_id=lead.id,
            activity_type=activity_data.activity_type,
            subject=activity_data.subject,
            description=activity_data.description,
            created_by=user_id
        )

        if activity.activity_type in CONTACT_ACTIVITY_TYPES:
            await self.lead_repo.update(lead.id, {"last_contacted_at": activity.created_at})

        await self._rescore(lead)
        return activity

    async def list_activities(self, lead_id: uuid.UUID, limit: int = 50) -> List[LeadActivity]:
        await self.get(lead_id)
        return await self.activity_repo.get_for_lead(lead_id, limit)

    async def get_stats(self) -> dict:
        """Lead statistics for the admin dashboard."""
        return await self.lead_repo.get_stats()

    async def _rescore(self, lead: Lead) -> int:
        activities_count = await self.lead_repo.count_activities(lead.id)
        score = self.scorer.score(factors_from_lead(lead, activities_count))
        if score != lead.score or lead.score_updated_at is None:
            await self.lead_repo.update_score(lead.id, score)
            lead.score = score
            lead.score_updated_at = datetime.utcnow()
        return score
