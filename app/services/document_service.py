"""
Inspection documents and their per-viewer access tokens.

Each DocumentAuthorization grants one user (inspector, client or realtor)
access to one document. Duration semantics:

- UNLIMITED_DURATION (-1): never expires
- ONE_TIME_DURATION (0): valid until first access, then revoked
- N > 0: valid for N days after the document was created
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import UnauthorizedError
from app.models.document import (
    CONTENT_TYPES,
    DOCUMENT_TYPES,
    ONE_TIME_DURATION,
    UNLIMITED_DURATION,
    Document,
    DocumentAuthorization,
)

logger = logging.getLogger(__name__)

USER_TYPES = ("inspector", "client", "realtor")


def generate_token() -> str:
    """URL-safe random token."""
    return secrets.token_urlsafe(settings.DOC_TOKEN_BYTES)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back naive
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def create_document(
    db: AsyncSession,
    inspection_id: str,
    doctype: str,
    name: str,
    content: str,
    content_type: str = "RAW",
) -> Document:
    """Add a document to the session; the caller commits."""
    if doctype not in DOCUMENT_TYPES:
        raise ValueError(f"Unknown document type: {doctype}")
    if content_type not in CONTENT_TYPES:
        raise ValueError(f"Unknown content type: {content_type}")

    document = Document(
        inspection_id=inspection_id,
        doctype=doctype,
        name=name,
        content_type=content_type,
        content=content,
        authorizations=[],
    )
    db.add(document)
    return document


def add_authorization(
    document: Document,
    user_id: str,
    user_type: str,
    duration: int = UNLIMITED_DURATION,
) -> DocumentAuthorization:
    if user_type not in USER_TYPES:
        raise ValueError(f"Unknown user type: {user_type}")

    authorization = DocumentAuthorization(
        user_id=user_id,
        user_type=user_type,
        token=generate_token(),
        duration=duration,
        revoked=False,
    )
    document.authorizations.append(authorization)
    return authorization


def is_expired(document: Document, authorization: DocumentAuthorization, now: Optional[datetime] = None) -> bool:
    if authorization.revoked:
        return True
    if authorization.duration == UNLIMITED_DURATION:
        return False
    if authorization.duration == ONE_TIME_DURATION:
        return authorization.first_accessed is not None
    now = now or datetime.now(timezone.utc)
    expires_at = _as_utc(document.created_at) + timedelta(days=authorization.duration)
    return now >= expires_at


def check_authorization_token(
    document: Document,
    token: Optional[str],
    now: Optional[datetime] = None,
) -> DocumentAuthorization:
    """The authorization matching token, or UnauthorizedError when absent or expired."""
    if token:
        for authorization in document.authorizations:
            if secrets.compare_digest(authorization.token, token):
                if is_expired(document, authorization, now):
                    break
                return authorization
    raise UnauthorizedError("Unauthorized to access this document")


async def log_authorization_access(
    db: AsyncSession,
    document: Document,
    authorization: DocumentAuthorization,
    ip: Optional[str],
    now: Optional[datetime] = None,
) -> DocumentAuthorization:
    """Record first/last access; a one-time authorization is revoked on use."""
    now = now or datetime.now(timezone.utc)
    authorization.last_accessed = now
    authorization.last_ip = ip
    if authorization.first_accessed is None:
        authorization.first_accessed = now
        authorization.first_ip = ip
    if authorization.duration == ONE_TIME_DURATION:
        authorization.revoked = True

    await db.commit()
    logger.info(
        f"Document {document.id} accessed by {authorization.user_type} {authorization.user_id}"
    )
    return authorization


async def get_authorized_document(
    db: AsyncSession,
    document_id: str,
    token: Optional[str],
    ip: Optional[str],
) -> Document:
    """
    Fetch a document for a token holder and log the access.

    An unknown document id reports the same error as a bad token so ids
    cannot be probed without a token.
    """
    result = await db.execute(select(Document).where(Document.id == document_id))
    document = result.scalar_one_or_none()
    if document is None:
        raise UnauthorizedError("Unauthorized to access this document")

    authorization = check_authorization_token(document, token)
    await log_authorization_access(db, document, authorization, ip)
    return document
