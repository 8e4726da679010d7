"""Generated inspection documents (invoice, agreement, report) and their access tokens."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base

DOCUMENT_TYPES = ("INVOICE", "AGREEMENT", "REPORT", "OTHER")
CONTENT_TYPES = ("FILE_RENDERED", "FILE_STATIC", "RENDERED", "RAW")

# Authorization durations: -1 never expires, 0 single use, N days after creation
UNLIMITED_DURATION = -1
ONE_TIME_DURATION = 0


class Document(Base):
    """A document attached to an inspection."""

    __tablename__ = "documents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    inspection_id = Column(String(36), ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False, index=True)
    doctype = Column(String(20), nullable=False)
    name = Column(String(255), nullable=False)
    content_type = Column(String(20), nullable=False, default="RAW")
    content = Column(Text)

    # Set client-side so token expiry can be checked without a reload
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now())

    authorizations = relationship(
        "DocumentAuthorization",
        back_populates="document",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Document {self.doctype} {self.id}>"


class DocumentAuthorization(Base):
    """Per-viewer access token with access audit fields."""

    __tablename__ = "document_authorizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False)
    user_type = Column(String(20), nullable=False)  # inspector, client, realtor
    token = Column(String(64), nullable=False, unique=True, index=True)
    duration = Column(Integer, nullable=False, default=UNLIMITED_DURATION)
    revoked = Column(Boolean, nullable=False, default=False)

    first_accessed = Column(DateTime(timezone=True))
    last_accessed = Column(DateTime(timezone=True))
    first_ip = Column(String(45))
    last_ip = Column(String(45))

    document = relationship("Document", back_populates="authorizations")
