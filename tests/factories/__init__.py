"""
Test factories for generating realistic test data.

Uses factory_boy for declarative test data generation.
"""

from .account import PricingConfigFactory, FlatPricingConfigFactory
from .booking import (
    PropertyPayloadFactory,
    ClientPayloadFactory,
    ClientWithAddressPayloadFactory,
    RealtorPayloadFactory,
    BookingPayloadFactory,
)

__all__ = [
    # Accounts
    "PricingConfigFactory",
    "FlatPricingConfigFactory",
    # Bookings
    "PropertyPayloadFactory",
    "ClientPayloadFactory",
    "ClientWithAddressPayloadFactory",
    "RealtorPayloadFactory",
    "BookingPayloadFactory",
]
