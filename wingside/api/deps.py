"""
API dependencies - shared across all routes.
"""
import uuid
import logging
from typing import Optional

from fastapi import Depends, Header
from fastapi.security import OAuth2PasswordBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from wingside.database import get_session
from wingside.config import settings, SiteSettings, get_site_settings
from wingside.core.security import verify_token, verify_cron_secret
from wingside.core.exceptions import (
    raise_unauthorized, raise_forbidden, raise_service_unavailable
)
from wingside.models.customer import CustomerProfile
from wingside.repositories.customer_repo import CustomerRepository

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    session: AsyncSession = Depends(get_session)
) -> CustomerProfile:
    """Get current authenticated user from JWT token."""
    payload = verify_token(token)
    if not payload:
        raise_unauthorized("Could not validate credentials")

    user_id = payload.get("user_id")
    if not user_id:
        raise_unauthorized("Could not validate credentials")

    try:
        user_uuid = uuid.UUID(user_id)
    except ValueError:
        raise_unauthorized("Could not validate credentials")

    user = await CustomerRepository(session).get(user_uuid)
    if not user:
        raise_unauthorized("User not found")

    return user


async def require_admin(
    current_user: CustomerProfile = Depends(get_current_user)
) -> CustomerProfile:
    """Current user, must have the admin role."""
    if current_user.role != "admin":
        raise_forbidden("Forbidden - Admin access required")
    return current_user


async def require_cron_secret(
    authorization: Optional[str] = Header(default=None)
) -> None:
    """Scheduled jobs authenticate with the shared cron secret."""
    if not verify_cron_secret(authorization, settings.CRON_SECRET):
        logger.error("Unauthorized cron job attempt")
        raise_unauthorized("Unauthorized")


async def require_site_open(
    site: SiteSettings = Depends(get_site_settings)
) -> SiteSettings:
    """Block writes while the site is in maintenance mode."""
    if site.maintenance_mode:
        raise_service_unavailable("Site is under maintenance")
    return site
