"""
Schemas shared by the app-level endpoints.
"""
from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str = "healthy"  # healthy, degraded
    version: str
    database: str = "ok"  # ok, unavailable
