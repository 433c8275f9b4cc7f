"""
Lead repository with search, scoring and activity lookups.
"""
import uuid
from typing import Optional, List, Dict
from datetime import datetime

from sqlmodel import select, or_
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy import func

from wingside.models.lead import Lead, LeadActivity, LEAD_STATUSES
from wingside.repositories.base import BaseRepository
from wingside.schemas.lead import LeadFilter
from wingside.core.pagination import paginate


class LeadRepository(BaseRepository[Lead]):
    """Leads plus the lookups scoring needs."""

    def __init__(self, session: AsyncSession):
        super().__init__(Lead, session)

    @staticmethod
    def _conditions(filters: Optional[LeadFilter]) -> list:
        if not filters:
            return []
        conditions = []
        if filters.status:
            conditions.append(Lead.status == filters.status)
        if filters.source:
            conditions.append(Lead.source == filters.source)
        if filters.min_score is not None:
            conditions.append(Lead.score >= filters.min_score)
        if filters.max_score is not None:
            conditions.append(Lead.score <= filters.max_score)
        if filters.search:
            term = f"%{filters.search}%"
            conditions.append(or_(
                Lead.name.ilike(term),
                Lead.email.ilike(term),
                Lead.company.ilike(term)
            ))
        return conditions

    async def search(
        self,
        filters: Optional[LeadFilter] = None,
        page: int = 1,
        limit: int = 20
    ) -> dict:
        """One page of matching leads, highest score first."""
        conditions = self._conditions(filters)

        count = await self.session.exec(
            select(func.count()).select_from(Lead).where(*conditions)
        )
        total = count.one()

        query = (
            select(Lead)
            .where(*conditions)
            .order_by(Lead.score.desc(), Lead.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        result = await self.session.exec(query)
        return paginate(result.all(), total, page, limit)

    async def get_by_email(self, email: str) -> Optional[Lead]:
        """Lead with this email, for deduplication."""
        return await self.get_by_field("email", email)

    async def get_many(self, lead_ids: List[uuid.UUID]) -> List[Lead]:
        query = select(Lead).where(Lead.id.in_(lead_ids))
        result = await self.session.exec(query)
        return result.all()

    async def update_score(self, lead_id: uuid.UUID, score: int) -> bool:
        """Update lead score."""
        lead = await self.get(lead_id)
        if lead:
            now = datetime.utcnow()
            lead.score = score
            lead.score_updated_at = now
            lead.updated_at = now
            self.session.add(lead)
            await self.session.commit()
            return True
        return False

    async def count_activities(self, lead_id: uuid.UUID) -> int:
        """Number of logged touchpoints for a lead."""
        query = select(func.count()).select_from(LeadActivity).where(
            LeadActivity.lead_id == lead_id
        )
        result = await self.session.exec(query)
        return result.one()

    async def activity_counts(self, lead_ids: List[uuid.UUID]) -> Dict[uuid.UUID, int]:
        """Touchpoint counts for several leads in one query."""
        if not lead_ids:
            return {}
        query = select(LeadActivity.lead_id, func.count()).where(
            LeadActivity.lead_id.in_(lead_ids)
        ).group_by(LeadActivity.lead_id)
        result = await self.session.exec(query)
        return {lead_id: count for lead_id, count in result.all()}

    async def get_stats(self) -> dict:
        """Get lead statistics for the admin dashboard."""
        total = await self.count()

        status_counts = {}
        for status in LEAD_STATUSES:
            status_counts[status] = await self.count({"status": status})

        avg_query = select(func.avg(Lead.score))
        result = await self.session.exec(avg_query)
        avg_score = result.one() or 0

        # Hot leads (score >= 80)
        hot_query = select(func.count()).select_from(Lead).where(Lead.score >= 80)
        result = await self.session.exec(hot_query)
        hot = result.one()

        return {
            "total": total,
            "hot": hot,
            "avg_score": round(float(avg_score), 1),
            "by_status": status_counts
        }


class LeadActivityRepository(BaseRepository[LeadActivity]):
    """Repository for LeadActivity operations."""

    def __init__(self, session: AsyncSession):
        super().__init__(LeadActivity, session)

    async def log(
        self,
        lead_id: uuid.UUID,
        activity_type: str,
        subject: Optional[str] = None,
        description: Optional[str] = None,
        created_by: Optional[uuid.UUID] = None
    ) -> LeadActivity:
        """Create an activity entry."""
        activity = LeadActivity(
            lead_id=lead_id,
            activity_type=activity_type,
            subject=subject,
            description=description,
            created_by=created_by
        )
        self.session.add(activity)
        await self.session.commit()
        await self.session.refresh(activity)
        return activity

    async def get_for_lead(self, lead_id: uuid.UUID, limit: int = 50) -> List[LeadActivity]:
        """Most recent activity for a lead."""
        query = select(LeadActivity).where(
            LeadActivity.lead_id == lead_id
        ).order_by(LeadActivity.created_at.desc()).limit(limit)
        result = await self.session.exec(query)
        return result.all()

    async def delete_for_lead(self, lead_id: uuid.UUID) -> None:
        """Remove a lead's activity log. The caller commits."""
        query = select(LeadActivity).where(LeadActivity.lead_id == lead_id)
        result = await self.session.exec(query)
        for activity in result.all():
            await self.session.delete(activity)
        # Activities reference the lead row
        await self.session.flush()
