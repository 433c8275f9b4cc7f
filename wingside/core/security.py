"""
Security utilities for the Wingside API.
JWT handling for user sessions and shared-secret checks for scheduled jobs.
"""
from datetime import datetime, timedelta
from typing import Optional
import uuid
import secrets

import jwt

from wingside.config import settings


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create an access token.

    Args:
        data: Payload data (should include user_id)
        expires_delta: Custom expiration time

    Returns:
        Encoded JWT string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({
        "exp": expire,
        "iat": datetime.utcnow(),
        "type": "access",
        "jti": str(uuid.uuid4())
    })

    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> Optional[dict]:
    """
    Decode and validate a JWT token.

    Returns:
        Decoded payload dict or None if invalid
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def verify_token(token: str) -> Optional[dict]:
    """Return the payload of a valid access token, None otherwise."""
    payload = decode_token(token)
    if payload and payload.get("type") == "access":
        return payload
    return None


def verify_cron_secret(authorization: Optional[str], cron_secret: Optional[str]) -> bool:
    """
    Check an Authorization header against the configured cron secret.

    An unset secret leaves the cron endpoints open (local development).
    """
    if not cron_secret:
        return True
    if not authorization:
        return False
    return secrets.compare_digest(authorization, f"Bearer {cron_secret}")
