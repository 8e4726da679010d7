"""
FastAPI Dependencies

Provides dependency injection for database sessions and inspector
authentication.

Token issuance (login) lives outside this service; tokens are HS256 JWTs
whose ``sub`` is the inspector id and whose ``affiliation`` is "inspector".

SECURITY NOTES:
- JWT payloads are never logged
"""

from typing import Annotated, Callable
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from jose import JWTError, jwt
from datetime import datetime, timedelta
import logging

from app.database import get_db
from app.config import settings
from app.exceptions import UnauthorizedError
from app.models.inspector import Inspector
from app.tasks.outbox_dispatcher import dispatch_pending_notifications

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """Create a JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_inspector(
    db: Annotated[AsyncSession, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)] = None,
) -> Inspector:
    """
    Resolve the inspector from the Bearer token.

    Raises UnauthorizedError for a missing/invalid token, a non-inspector
    affiliation, or an unknown/disabled inspector.
    """
    if not credentials:
        raise UnauthorizedError("Authorization header not supplied")

    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        # SECURITY: Don't log token decode errors with details
        logger.warning("JWT validation failed")
        raise UnauthorizedError("Invalid auth token")

    inspector_id = payload.get("sub")
    if not inspector_id or payload.get("affiliation") is None:
        raise UnauthorizedError("Invalid auth token payload")
    if payload.get("affiliation") != "inspector":
        raise UnauthorizedError("Unauthorized affiliation (inspector only)")

    result = await db.execute(select(Inspector).where(Inspector.id == str(inspector_id)))
    inspector = result.scalar_one_or_none()

    if inspector is None or not inspector.is_active:
        raise UnauthorizedError("Invalid auth token")

    logger.debug("Inspector authenticated", extra={"inspector_id": inspector.id})
    return inspector


def get_notification_dispatcher():
    """Callable run as a background task to drain the notification outbox."""
    return dispatch_pending_notifications


# Type aliases for dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentInspector = Annotated[Inspector, Depends(get_current_inspector)]
NotificationDispatcher = Annotated[Callable, Depends(get_notification_dispatcher)]
