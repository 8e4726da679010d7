"""Client model: a home buyer/seller booking an inspection."""
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base


class Client(Base):
    """Contact record created lazily while scheduling."""

    __tablename__ = "clients"
    __table_args__ = (
        UniqueConstraint("account_id", "email", name="uq_client_account_email"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20))

    # Mailing address (all or nothing)
    address1 = Column(String(255))
    address2 = Column(String(255))
    city = Column(String(100))
    state = Column(String(2))
    zip = Column(String(5))

    hashed_password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Either client slot; read-only, writes go through Inspection.client1/client2
    inspections = relationship(
        "Inspection",
        primaryjoin="or_(Client.id == foreign(Inspection.client1_id), Client.id == foreign(Inspection.client2_id))",
        order_by="(Inspection.date, Inspection.time)",
        viewonly=True,
    )

    def __repr__(self):
        return f"<Client {self.email}>"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"
