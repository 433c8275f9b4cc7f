"""
Shared fixtures: an in-memory SQLite database per test, an HTTP client
wired to it, and helpers for creating customers and auth headers.
"""
import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["LOG_LEVEL"] = "WARNING"

import uuid
from datetime import datetime
from typing import Optional

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import wingside.models  # noqa: F401
from wingside.config import settings, SiteSettings, get_site_settings
from wingside.core.security import create_access_token
from wingside.database import get_session
from wingside.loyalty.tier_engine import classify_tier
from wingside.main import app
from wingside.models.customer import CustomerProfile

CRON_SECRET = "test-cron-secret"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    factory = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def site():
    """Mutable site toggles; tests flip `maintenance_mode` to close the site."""
    return {"maintenance_mode": False}


@pytest.fixture
async def client(session, site, monkeypatch):
    monkeypatch.setattr(settings, "CRON_SECRET", CRON_SECRET)

    async def _get_session():
        yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_site_settings] = lambda: SiteSettings(**site)

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_customer(session):
    async def _make(
        total_points: int = 0,
        last_activity_date: Optional[datetime] = None,
        tier: Optional[str] = None,
        role: str = "customer",
        email: Optional[str] = None
    ) -> CustomerProfile:
        profile = CustomerProfile(
            email=email or f"{uuid.uuid4().hex[:10]}@example.com",
            full_name="Test Customer",
            role=role,
            total_points=total_points,
            tier=tier or classify_tier(total_points).value,
            last_activity_date=last_activity_date or datetime.utcnow(),
        )
        session.add(profile)
        await session.commit()
        await session.refresh(profile)
        return profile

    return _make


@pytest.fixture
async def admin(make_customer):
    return await make_customer(role="admin", email="admin@wingside.ng")


@pytest.fixture
async def customer(make_customer):
    return await make_customer(total_points=120, email="ada@example.com")


def auth_headers(profile: CustomerProfile) -> dict:
    token = create_access_token({"user_id": str(profile.id)})
    return {"Authorization": f"Bearer {token}"}


def cron_headers(secret: str = CRON_SECRET) -> dict:
    return {"Authorization": f"Bearer {secret}"}
