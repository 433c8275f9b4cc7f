"""
Scoring service - lead score recalculation and analysis.
"""
import uuid
import logging
from typing import Optional, List

from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.core.exceptions import raise_not_found
from wingside.repositories.lead_repo import LeadRepository
from wingside.models.lead import Lead
from wingside.schemas.lead import LeadResponse
from wingside.schemas.scoring import (
    ScoreUpdateResponse, ScoreAnalysisResponse, RecalculateResponse
)
from wingside.scoring.lead_scorer import LeadScorer, lead_scorer, factors_from_lead

logger = logging.getLogger(__name__)


class ScoringService:
    """Service for scoring operations."""

    def __init__(self, session: AsyncSession, scorer: LeadScorer = lead_scorer):
        self.session = session
        self.scorer = scorer
        self.lead_repo = LeadRepository(session)

    async def _get_lead(self, lead_id: uuid.UUID) -> Lead:
        lead = await self.lead_repo.get(lead_id)
        if not lead:
            raise_not_found("Lead", str(lead_id))
        return lead

    async def recalculate(self, lead_id: uuid.UUID) -> ScoreUpdateResponse:
        """Recalculate and store one lead's score."""
        lead = await self._get_lead(lead_id)
        previous_score = lead.score

        activities_count = await self.lead_repo.count_activities(lead.id)
        new_score = self.scorer.score(factors_from_lead(lead, activities_count))
        await self.lead_repo.update_score(lead.id, new_score)
        await self.session.refresh(lead)

        if new_score != previous_score:
            logger.info(f"Lead {lead.id} score {previous_score} -> {new_score}")

        return ScoreUpdateResponse(
            previous_score=previous_score,
            new_score=new_score,
            quality=self.scorer.quality(new_score),
            lead=LeadResponse.model_validate(lead)
        )

    async def analyze(self, lead_id: uuid.UUID) -> ScoreAnalysisResponse:
        """Score a lead on read, with the breakdown and suggested next steps."""
        lead = await self._get_lead(lead_id)

        activities_count = await self.lead_repo.count_activities(lead.id)
        factors = factors_from_lead(lead, activities_count)
        now = self.scorer.clock()
        score = self.scorer.score(factors, now)

        return ScoreAnalysisResponse(
            score=score,
            quality=self.scorer.quality(score),
            breakdown=self.scorer.breakdown(factors, now),
            suggested_actions=self.scorer.suggest_follow_up_actions(
                score, lead.timeline, lead.estimated_value
            ),
            lead=LeadResponse.model_validate(lead)
        )

    async def recalculate_all(
        self,
        lead_ids: Optional[List[uuid.UUID]] = None
    ) -> RecalculateResponse:
        """Recalculate scores for all or specific leads."""
        if lead_ids:
            leads = await self.lead_repo.get_many(lead_ids)
        else:
            leads = await self.lead_repo.list()

        if not leads:
            return RecalculateResponse(total_updated=0, avg_score_before=0, avg_score_after=0)

        total_before = sum(l.score for l in leads)
        counts = await self.lead_repo.activity_counts([l.id for l in leads])
        now = self.scorer.clock()

        total_after = 0
        for lead in leads:
            new_score = self.scorer.score(factors_from_lead(lead, counts.get(lead.id, 0)), now)
            await self.lead_repo.update_score(lead.id, new_score)
            total_after += new_score

        logger.info(f"Recalculated scores for {len(leads)} leads")

        return RecalculateResponse(
            total_updated=len(leads),
            avg_score_before=round(total_before / len(leads), 1),
            avg_score_after=round(total_after / len(leads), 1)
        )
