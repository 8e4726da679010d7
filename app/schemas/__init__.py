from app.schemas.scheduling import (
    PropertyDetails,
    AppointmentDetails,
    ContactDetails,
    RealtorDetails,
    BookingRequest,
    BookingResponse,
    ServicesUpdate,
    TimeslotRequest,
    TimeoffRequest,
    PaymentRequest,
)

__all__ = [
    "PropertyDetails",
    "AppointmentDetails",
    "ContactDetails",
    "RealtorDetails",
    "BookingRequest",
    "BookingResponse",
    "ServicesUpdate",
    "TimeslotRequest",
    "TimeoffRequest",
    "PaymentRequest",
]
