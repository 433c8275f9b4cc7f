"""
Scoring schemas.
"""
import uuid
from typing import Optional, Dict, List
from pydantic import BaseModel

from wingside.scoring.lead_scorer import FactorContribution
from wingside.schemas.lead import LeadResponse


class ScoreUpdateResponse(BaseModel):
    """Result of recalculating one lead's score."""
    success: bool = True
    previous_score: int
    new_score: int
    quality: str
    lead: LeadResponse


class ScoreAnalysisResponse(BaseModel):
    """Score with its per-factor breakdown."""
    score: int
    quality: str
    breakdown: Dict[str, FactorContribution]
    suggested_actions: List[str]
    lead: LeadResponse


class RecalculateRequest(BaseModel):
    """Request to recalculate lead scores."""
    lead_ids: Optional[list[uuid.UUID]] = None  # None means all leads


class RecalculateResponse(BaseModel):
    """Result of score recalculation."""
    total_updated: int
    avg_score_before: float
    avg_score_after: float
