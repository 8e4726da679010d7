"""
Pydantic schemas for the booking API.

Request models accept both camelCase (public booking form) and snake_case
field names. They only check shape; value rules (patterns, ranges,
availability) are enforced in app.services so the same messages come back
from every entry point.
"""

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator
from pydantic.alias_generators import to_camel


class _Payload(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _zip_to_str(value: Any) -> Any:
    # Zip codes sometimes arrive as JSON numbers
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:05d}"
    return value


class PropertyDetails(_Payload):
    """Inspected property."""

    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    sqft: Optional[StrictInt] = None
    year_built: Optional[StrictInt] = None
    foundation: Optional[str] = None

    @field_validator("zip", mode="before")
    @classmethod
    def normalize_zip(cls, value: Any) -> Any:
        return _zip_to_str(value)


class AppointmentDetails(_Payload):
    date: Optional[str] = None
    time: Optional[StrictInt] = None
    inspector_id: Optional[str] = None


class ContactDetails(_Payload):
    """Client contact as entered on the booking form."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None

    @field_validator("zip", mode="before")
    @classmethod
    def normalize_zip(cls, value: Any) -> Any:
        return _zip_to_str(value)

    @property
    def has_address(self) -> bool:
        return any(
            value not in (None, "")
            for value in (self.address, self.address2, self.city, self.state, self.zip)
        )


class RealtorDetails(ContactDetails):
    affiliation: Optional[str] = None
    primary_phone: Optional[str] = None
    primary_phone_type: Optional[str] = None
    secondary_phone: Optional[str] = None
    secondary_phone_type: Optional[str] = None


class BookingRequest(_Payload):
    """Full public booking request."""

    services: list[str] = Field(default_factory=list)
    property_details: PropertyDetails = Field(default_factory=PropertyDetails, alias="property")
    appointment: AppointmentDetails = Field(default_factory=AppointmentDetails)
    client1: Optional[ContactDetails] = None
    client2: Optional[ContactDetails] = None
    realtor: Optional[RealtorDetails] = None


class BookingResponse(BaseModel):
    id: str
    number: int
    date: str
    time: int
    inspector_id: str


class ServicesUpdate(_Payload):
    services: list[str] = Field(default_factory=list)


class TimeslotRequest(_Payload):
    day: Optional[str] = None
    time: Optional[StrictInt] = None


class TimeoffRequest(_Payload):
    date: Optional[str] = None
    time: Optional[StrictInt] = None


class PaymentRequest(_Payload):
    amount: Decimal
    method: str = Field(default="other", max_length=50)
