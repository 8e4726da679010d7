"""Realtor model and realtor-to-client association."""
import uuid

from sqlalchemy import Column, String, DateTime, ForeignKey, Table, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base

realtor_clients = Table(
    "realtor_clients",
    Base.metadata,
    Column("realtor_id", String(36), ForeignKey("realtors.id", ondelete="CASCADE"), primary_key=True),
    Column("client_id", String(36), ForeignKey("clients.id", ondelete="CASCADE"), primary_key=True),
)


class Realtor(Base):
    """Realtor contact; accumulates the clients they brought in."""

    __tablename__ = "realtors"
    __table_args__ = (
        UniqueConstraint("account_id", "email", name="uq_realtor_account_email"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(20))
    affiliation = Column(String(255))
    primary_phone = Column(String(20))
    primary_phone_type = Column(String(10))
    secondary_phone = Column(String(20))
    secondary_phone_type = Column(String(10))

    address1 = Column(String(255))
    address2 = Column(String(255))
    city = Column(String(100))
    state = Column(String(2))
    zip = Column(String(5))

    hashed_password = Column(String(255), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    clients = relationship("Client", secondary=realtor_clients, lazy="selectin")
    inspections = relationship("Inspection", order_by="(Inspection.date, Inspection.time)", viewonly=True)

    def __repr__(self):
        return f"<Realtor {self.email}>"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"
