"""Inspector model with weekly availability pattern and time-off exceptions."""
import uuid

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from app.database import Base

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class Inspector(Base):
    """Inspector belonging to exactly one account."""

    __tablename__ = "inspectors"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    account_id = Column(String(36), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20))
    hashed_password = Column(String(255))
    is_owner = Column(Boolean, default=False)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    timeslots = relationship(
        "InspectorTimeslot",
        back_populates="inspector",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    timeoff = relationship(
        "InspectorTimeoff",
        back_populates="inspector",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    inspections = relationship("Inspection", order_by="(Inspection.date, Inspection.time)", viewonly=True)

    def __repr__(self):
        return f"<Inspector {self.first_name} {self.last_name}>"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


class InspectorTimeslot(Base):
    """A recurring weekly start time (minutes since midnight)."""

    __tablename__ = "inspector_timeslots"
    __table_args__ = (
        UniqueConstraint("inspector_id", "weekday", "minute", name="uq_inspector_timeslot"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    inspector_id = Column(String(36), ForeignKey("inspectors.id", ondelete="CASCADE"), nullable=False, index=True)
    weekday = Column(String(9), nullable=False)
    minute = Column(Integer, nullable=False)

    inspector = relationship("Inspector", back_populates="timeslots")


class InspectorTimeoff(Base):
    """A single date/time exception to the weekly pattern."""

    __tablename__ = "inspector_timeoff"
    __table_args__ = (
        UniqueConstraint("inspector_id", "date", "minute", name="uq_inspector_timeoff"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    inspector_id = Column(String(36), ForeignKey("inspectors.id", ondelete="CASCADE"), nullable=False, index=True)
    date = Column(String(8), nullable=False)  # YYYYMMDD
    minute = Column(Integer, nullable=False)

    inspector = relationship("Inspector", back_populates="timeoff")
