"""
Lead schemas.
"""
import uuid
from typing import Optional, Dict
from datetime import datetime, timezone
from pydantic import BaseModel, EmailStr, Field, field_validator


class LeadCreate(BaseModel):
    """Create a new lead."""
    name: str = Field(min_length=1)
    source: str = Field(min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None
    interest_level: Optional[str] = None
    estimated_value: Optional[float] = None
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Ada Obi",
                "source": "referral",
                "email": "ada@example.com",
                "company": "Obi Events",
                "budget": "high",
                "timeline": "immediate",
                "interest_level": "high",
                "estimated_value": 150000
            }
        }


class LeadUpdate(BaseModel):
    """Update an existing lead."""
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    source: Optional[str] = None
    budget: Optional[str] = None
    timeline: Optional[str] = None
    interest_level: Optional[str] = None
    estimated_value: Optional[float] = None
    status: Optional[str] = None
    notes: Optional[str] = None
    last_contacted_at: Optional[datetime] = None

    @field_validator("last_contacted_at")
    @classmethod
    def to_naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # Stored timestamps are naive UTC
        if v is not None and v.tzinfo is not None:
            return v.astimezone(timezone.utc).replace(tzinfo=None)
        return v


class LeadResponse(BaseModel):
    """Lead response."""
    id: uuid.UUID
    name: str
    email: Optional[str]
    phone: Optional[str]
    company: Optional[str]
    source: str
    budget: Optional[str]
    timeline: Optional[str]
    interest_level: Optional[str]
    estimated_value: Optional[float]
    score: int
    score_updated_at: Optional[datetime]
    status: str
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime
    last_contacted_at: Optional[datetime]

    class Config:
        from_attributes = True


class LeadFilter(BaseModel):
    """Filters for lead search."""
    status: Optional[str] = None
    source: Optional[str] = None
    min_score: Optional[int] = None
    max_score: Optional[int] = None
    search: Optional[str] = None


class LeadActivityCreate(BaseModel):
    """Log a touchpoint with a lead."""
    activity_type: str = Field(min_length=1)  # note, call, email, meeting, status_change
    subject: Optional[str] = None
    description: Optional[str] = None


class LeadActivityResponse(BaseModel):
    id: uuid.UUID
    lead_id: uuid.UUID
    activity_type: str
    subject: Optional[str]
    description: Optional[str]
    created_by: Optional[uuid.UUID]
    created_at: datetime

    class Config:
        from_attributes = True


class LeadStats(BaseModel):
    """Pipeline summary for the admin dashboard."""
    total: int
    hot: int
    avg_score: float
    by_status: Dict[str, int]
