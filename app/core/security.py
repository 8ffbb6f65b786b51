"""
Bearer token handling.
Tokens are issued by the external identity provider; this service only
verifies the signature and reads the subject (user id).
"""
import logging
from typing import Optional

from fastapi import Header, HTTPException, status
from jose import JWTError, jwt

from app.core.config import settings

logger = logging.getLogger(__name__)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected bearer token: {str(e)}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """Extract user_id from JWT token"""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token required")

    token = authorization.replace("Bearer ", "")
    payload = decode_access_token(token)
    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    return user_id


def verify_cron_secret(authorization: Optional[str] = Header(None)) -> None:
    """Guard for the cron endpoints: ``Authorization: Bearer <CRON_SECRET>``."""
    if not settings.CRON_SECRET:
        logger.error("[Cron] CRON_SECRET not configured")
        raise HTTPException(status_code=500, detail="Cron job not configured")
    if authorization != f"Bearer {settings.CRON_SECRET}":
        logger.error("[Cron] Unauthorized request")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
