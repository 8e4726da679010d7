"""Account model: one inspection company (tenant)."""
import uuid

from sqlalchemy import Column, String, Integer, DateTime, JSON
from sqlalchemy.sql import func

from app.database import Base


def default_pricing() -> dict:
    """Empty pricing configuration for a freshly created account."""
    return {
        "services": [],
        "sqft_pricing": {"enabled": False, "tiers": []},
        "age_pricing": {"enabled": False, "tiers": []},
        "foundation_pricing": {"basement": 0, "slab": 0, "crawlspace": 0},
        "tax_rate": 0,
    }


class Account(Base):
    """Inspection company owning inspectors, contacts and inspections."""

    __tablename__ = "accounts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(20))

    # Issues human-facing inspection numbers; only ever incremented atomically
    inspection_counter = Column(Integer, nullable=False, default=0)

    # Pricing configuration, parsed per request into app.services.pricing_service.PricingConfig
    # {
    #   "services": [{"short_name": "radon", "long_name": "Radon Testing", "price": 125}],
    #   "sqft_pricing": {"enabled": true, "tiers": [{"floor": 0, "price": 300}, ...]},
    #   "age_pricing": {"enabled": true, "tiers": [{"floor": 50, "price": 25}, ...]},
    #   "foundation_pricing": {"basement": 0, "slab": 0, "crawlspace": 25},
    #   "tax_rate": 0.07
    # }
    pricing = Column(JSON, nullable=False, default=default_pricing)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<Account {self.name}>"
