# Services module
from app.services.email_service import EmailService, MockEmailService, get_email_service
from app.services.pricing_service import PricingConfig, calculate_pricing, calculate_tiered_price

__all__ = [
    "EmailService",
    "MockEmailService",
    "get_email_service",
    # Pricing
    "PricingConfig",
    "calculate_pricing",
    "calculate_tiered_price",
]
