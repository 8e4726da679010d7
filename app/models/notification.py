"""Outbox of notifications queued inside a booking transaction and delivered afterwards."""
import uuid

from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey
from sqlalchemy.sql import func

from app.database import Base


class NotificationOutbox(Base):
    """One outbound email awaiting delivery."""

    __tablename__ = "notification_outbox"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)

    # new_account, scheduled_client, scheduled_realtor, invoice_ready, payment_confirmation
    kind = Column(String(50), nullable=False, index=True)
    recipient_email = Column(String(255), nullable=False)
    recipient_name = Column(String(255))
    subject = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)

    # Fernet ciphertext (e.g. a generated password); wiped once delivery settles
    secret = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default="pending", index=True)  # pending, sent, failed
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text)
    message_id = Column(String(255))

    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    sent_at = Column(DateTime(timezone=True))

    def __repr__(self):
        return f"<NotificationOutbox {self.kind} -> {self.recipient_email} ({self.status})>"
