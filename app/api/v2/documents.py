"""
Token-protected document access.

Whoever holds a valid authorization token may read the document; every
access is recorded against that authorization.
"""

from typing import Optional

from fastapi import APIRouter, Query, Request
import logging

from app.api.deps import DbSession
from app.schemas.errors import ERROR_RESPONSES
from app.services import document_service

logger = logging.getLogger(__name__)
router = APIRouter(responses={401: ERROR_RESPONSES[401]})


@router.get("/{document_id}")
async def read_document(
    document_id: str,
    request: Request,
    db: DbSession,
    token: Optional[str] = Query(None),
):
    client_ip = request.client.host if request.client else None
    document = await document_service.get_authorized_document(db, document_id, token, client_ip)
    return {
        "id": document.id,
        "inspection_id": document.inspection_id,
        "doctype": document.doctype,
        "name": document.name,
        "content_type": document.content_type,
        "content": document.content,
    }
