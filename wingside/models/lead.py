"""
Lead model - sales leads captured from the site, partners and events.
Scoring inputs live on the lead; the score itself is recomputed on demand.
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import SQLModel, Field


class Lead(SQLModel, table=True):
    """
    Lead entity - a prospective customer, franchisee or catering client.
    """
    __tablename__ = "leads"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    # Basic info
    name: str = Field(index=True)
    email: Optional[str] = Field(default=None, index=True, unique=True)
    phone: Optional[str] = None
    company: Optional[str] = Field(default=None, index=True)

    # Scoring inputs
    source: str = Field(default="other", index=True)  # referral, partner, event, social, website, other
    budget: Optional[str] = None  # high, medium, low, not_specified
    timeline: Optional[str] = None  # immediate, 1-3_months, 3-6_months, 6-12_months, not_sure
    interest_level: Optional[str] = None  # high, medium, low
    estimated_value: Optional[float] = None

    # Qualification
    score: int = Field(default=0, index=True)
    score_updated_at: Optional[datetime] = None
    status: str = Field(default="new", index=True)  # new, contacted, qualified, proposal, negotiation, converted, lost

    # Notes
    notes: Optional[str] = None
    created_by: Optional[uuid.UUID] = None

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
    last_contacted_at: Optional[datetime] = None


class LeadActivity(SQLModel, table=True):
    """
    A logged touchpoint with a lead. The number of these feeds the
    engagement part of the lead score.
    """
    __tablename__ = "lead_activities"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    lead_id: uuid.UUID = Field(foreign_key="leads.id", index=True)

    activity_type: str = Field(index=True)  # note, call, email, meeting, status_change
    subject: Optional[str] = None
    description: Optional[str] = None

    created_by: Optional[uuid.UUID] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


# Statuses that count as a contact for the recency bonus
CONTACT_ACTIVITY_TYPES = ("call", "email", "meeting")

LEAD_STATUSES = ("new", "contacted", "qualified", "proposal", "negotiation", "converted", "lost")
