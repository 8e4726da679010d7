"""Inspection model: a booked home inspection and its invoice/payment state."""
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, Boolean, DateTime, Numeric, ForeignKey, JSON, UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base

MAIN_SERVICES = ("full", "pre")
FOUNDATION_TYPES = ("basement", "slab", "crawlspace")


class Inspection(Base):
    """Inspection booked for one inspector at one (date, minute) slot."""

    __tablename__ = "inspections"
    __table_args__ = (
        # An inspector can only be booked once per slot; enforced at insert time
        UniqueConstraint("inspector_id", "date", "time", name="uq_inspection_inspector_slot"),
        UniqueConstraint("account_id", "number", name="uq_inspection_account_number"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    inspector_id = Column(String(36), ForeignKey("inspectors.id"), nullable=False, index=True)
    client1_id = Column(String(36), ForeignKey("clients.id"), nullable=True, index=True)
    client2_id = Column(String(36), ForeignKey("clients.id"), nullable=True, index=True)
    realtor_id = Column(String(36), ForeignKey("realtors.id"), nullable=True, index=True)

    # Human-facing number issued from Account.inspection_counter
    number = Column(Integer, nullable=False)

    # Property
    address1 = Column(String(255), nullable=False)
    address2 = Column(String(255))
    city = Column(String(100), nullable=False)
    state = Column(String(2), nullable=False)
    zip = Column(String(5), nullable=False)
    sqft = Column(Integer, nullable=False)
    year_built = Column(Integer, nullable=False)
    foundation = Column(String(20), nullable=False)

    # Services
    main_service = Column(String(20), nullable=False)  # full, pre
    additional_services = Column(JSON, nullable=False, default=list)

    # Appointment
    date = Column(String(8), nullable=False, index=True)  # YYYYMMDD
    time = Column(Integer, nullable=False)  # minutes since midnight

    # Set once the invoice is generated; never cleared
    details_locked = Column(Boolean, nullable=False, default=False)

    # Payment
    invoice_sent = Column(Boolean, nullable=False, default=False)
    invoiced = Column(Numeric(10, 2), nullable=False, default=0)
    balance = Column(Numeric(10, 2), nullable=False, default=0)
    pricing = Column(JSON, nullable=True)  # itemized snapshot taken at invoice time
    payments = Column(JSON, nullable=False, default=list)  # [{amount, method, paid_at}]

    scheduled_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    inspector = relationship("Inspector", lazy="selectin")
    client1 = relationship("Client", foreign_keys=[client1_id], lazy="selectin")
    client2 = relationship("Client", foreign_keys=[client2_id], lazy="selectin")
    realtor = relationship("Realtor", lazy="selectin")

    def __repr__(self):
        return f"<Inspection #{self.number} on {self.date} at {self.time}>"

    @property
    def services(self) -> list[str]:
        return [self.main_service, *(self.additional_services or [])]
