"""
Scheduling orchestrator.

Turns a public booking request into persisted records:

1. validate services, property, appointment and every contact (no writes)
2. in one transaction: create missing contacts, take the next inspection
   number, insert the inspection, queue notifications
3. commit; a concurrent booking of the same slot trips the unique
   (inspector, date, time) constraint and is reported as "Inspector unavailable"

Edits to property, appointment and services are refused once invoice
generation has locked the inspection's details.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from app.config import settings
from app.exceptions import (
    InvalidOperationError,
    InvalidParameterError,
    NotFoundError,
    RuntimeFailureError,
)
from app.models.account import Account
from app.models.client import Client
from app.models.inspection import Inspection
from app.models.inspector import Inspector
from app.models.realtor import Realtor
from app.schemas.scheduling import (
    AppointmentDetails,
    BookingRequest,
    ContactDetails,
    PropertyDetails,
)
from app.security.passwords import generate_password, get_password_hash
from app.services import notification_service
from app.services.availability_service import can_schedule, is_booked
from app.services.formatting import format_property_address
from app.services.pricing_service import PricingConfig, validate_services
from app.services.validators import (
    normalize_email,
    parse_datestamp,
    validate_address_line,
    validate_city,
    validate_email,
    validate_foundation,
    validate_minute,
    validate_name,
    validate_phone,
    validate_phone_type,
    validate_sqft,
    validate_state,
    validate_year_built,
    validate_zip,
)

logger = logging.getLogger(__name__)

__all__ = [
    "schedule",
    "update_property_details",
    "update_appointment",
    "update_services",
    "format_property_address",
    "get_inspection_info",
    "get_inspections",
    "get_account",
    "get_inspection_for_inspector",
]

Contact = Union[Client, Realtor]


@dataclass
class ContactPlan:
    """A booking party resolved before any write: reused as-is or created from fields."""

    role: str  # client1, client2, realtor
    existing: Optional[Contact] = None
    fields: Optional[dict] = None


# Lookups


async def get_account(db: AsyncSession, account_id: str) -> Account:
    account = await db.get(Account, account_id)
    if account is None:
        raise NotFoundError("Nonexistent account")
    return account


async def get_inspection_for_inspector(db: AsyncSession, inspector: Inspector, inspection_id: str) -> Inspection:
    """Inspection by id, restricted to the inspector's account."""
    result = await db.execute(
        select(Inspection).where(
            Inspection.id == inspection_id,
            Inspection.account_id == inspector.account_id,
        )
    )
    inspection = result.scalar_one_or_none()
    if inspection is None:
        raise NotFoundError("Nonexistent inspection")
    return inspection


async def _get_roster_inspector(db: AsyncSession, account: Account, inspector_id) -> Inspector:
    if not isinstance(inspector_id, str) or not inspector_id:
        raise InvalidParameterError("Invalid inspector")
    result = await db.execute(
        select(Inspector).where(
            Inspector.id == inspector_id,
            Inspector.account_id == account.id,
        )
    )
    inspector = result.scalar_one_or_none()
    if inspector is None or not inspector.is_active:
        raise InvalidParameterError("Invalid inspector")
    return inspector


# Validation


def _require_main_service(config: PricingConfig, services) -> tuple[str, list[str]]:
    main_service, additional = validate_services(config, services)
    if main_service is None:
        raise InvalidParameterError("A full or pre inspection must be selected")
    return main_service, additional


def validate_property(details: PropertyDetails, today: Optional[date] = None) -> dict:
    """Validated property columns for an Inspection."""
    return {
        "address1": validate_address_line(details.address1, "address"),
        "address2": validate_address_line(details.address2, "address line 2", required=False),
        "city": validate_city(details.city),
        "state": validate_state(details.state),
        "zip": validate_zip(details.zip),
        "sqft": validate_sqft(details.sqft),
        "year_built": validate_year_built(details.year_built, today),
        "foundation": validate_foundation(details.foundation),
    }


def validate_contact(details: ContactDetails, label: str, realtor: bool = False) -> dict:
    """
    Validated columns for a new Client or Realtor.

    The mailing address is optional, but once any address field is supplied
    the whole block (address, city, state, zip) is required.
    """
    fields = {
        "first_name": validate_name(details.first_name, f"{label} first name"),
        "last_name": validate_name(details.last_name, f"{label} last name"),
        "email": validate_email(details.email, f"{label} email"),
    }

    if realtor:
        affiliation = details.affiliation
        if (
            not isinstance(affiliation, str)
            or not affiliation.strip()
            or len(affiliation) > settings.ADDRESS_MAX_LENGTH
        ):
            raise InvalidParameterError(f"Invalid {label} affiliation")
        fields["affiliation"] = affiliation.strip()
        fields["primary_phone"] = validate_phone(details.primary_phone, f"{label} primary phone")
        fields["primary_phone_type"] = validate_phone_type(
            details.primary_phone_type, f"{label} primary phone type"
        )
        if details.secondary_phone:
            fields["secondary_phone"] = validate_phone(details.secondary_phone, f"{label} secondary phone")
            fields["secondary_phone_type"] = validate_phone_type(
                details.secondary_phone_type, f"{label} secondary phone type"
            )
        fields["phone"] = (
            validate_phone(details.phone, f"{label} phone number")
            if details.phone
            else fields["primary_phone"]
        )
    else:
        fields["phone"] = validate_phone(details.phone, f"{label} phone number")

    if details.has_address:
        fields["address1"] = validate_address_line(details.address, f"{label} address")
        fields["address2"] = validate_address_line(details.address2, f"{label} address line 2", required=False)
        fields["city"] = validate_city(details.city)
        fields["state"] = validate_state(details.state)
        fields["zip"] = validate_zip(details.zip)

    return fields


async def _plan_contact(
    db: AsyncSession,
    account: Account,
    details: Optional[ContactDetails],
    role: str,
) -> Optional[ContactPlan]:
    """Reuse the account's contact with this email unmodified, else validate a new one."""
    if details is None or normalize_email(details.email) is None:
        return None

    is_realtor = role == "realtor"
    model = Realtor if is_realtor else Client
    email = normalize_email(details.email)

    result = await db.execute(
        select(model).where(model.account_id == account.id, model.email == email)
    )
    existing = result.scalar_one_or_none()
    if existing is not None:
        return ContactPlan(role=role, existing=existing)

    return ContactPlan(role=role, fields=validate_contact(details, role, realtor=is_realtor))


# Commit phase helpers


async def next_inspection_number(db: AsyncSession, account: Account) -> int:
    """Atomically take the next number from the account counter."""
    result = await db.execute(
        update(Account)
        .where(Account.id == account.id)
        .values(inspection_counter=Account.inspection_counter + 1)
        .returning(Account.inspection_counter)
        .execution_options(synchronize_session=False)
    )
    number = result.scalar_one()
    set_committed_value(account, "inspection_counter", number)
    return number


def _create_contact(db: AsyncSession, account: Account, plan: ContactPlan) -> Contact:
    password = generate_password()
    fields = dict(plan.fields, account_id=account.id, hashed_password=get_password_hash(password))
    # A pending realtor's collection must be loaded before the first flush
    contact = Realtor(clients=[], **fields) if plan.role == "realtor" else Client(**fields)
    db.add(contact)
    notification_service.queue_new_account(
        db, account, contact, "realtor" if plan.role == "realtor" else "client", password
    )
    return contact


def _materialize(db: AsyncSession, account: Account, plan: Optional[ContactPlan]) -> Optional[Contact]:
    if plan is None:
        return None
    if plan.existing is not None:
        return plan.existing
    return _create_contact(db, account, plan)


# Operations


async def schedule(
    db: AsyncSession,
    account: Account,
    request: BookingRequest,
    today: Optional[date] = None,
) -> Inspection:
    """Validate a booking request, then persist it as one unit."""
    config = PricingConfig.from_dict(account.pricing)
    main_service, additional = _require_main_service(config, request.services)
    property_fields = validate_property(request.property_details, today)

    appointment = request.appointment
    parse_datestamp(appointment.date)
    validate_minute(appointment.time)
    inspector = await _get_roster_inspector(db, account, appointment.inspector_id)
    if not await can_schedule(db, account, inspector.id, appointment.date, appointment.time):
        raise InvalidParameterError("Inspector unavailable")

    client1_email = normalize_email(request.client1.email) if request.client1 else None
    client2_email = normalize_email(request.client2.email) if request.client2 else None
    realtor_email = normalize_email(request.realtor.email) if request.realtor else None
    if not client1_email and not realtor_email:
        raise InvalidParameterError("A client or realtor email is required")
    if client1_email and client1_email == client2_email:
        raise InvalidParameterError("Client emails must be different")

    client1_plan = await _plan_contact(db, account, request.client1, "client1")
    client2_plan = await _plan_contact(db, account, request.client2, "client2")
    realtor_plan = await _plan_contact(db, account, request.realtor, "realtor")

    # Everything validated; writes start here
    inspector_id = inspector.id
    datestamp, minute = appointment.date, appointment.time
    try:
        client1 = _materialize(db, account, client1_plan)
        client2 = _materialize(db, account, client2_plan)
        realtor = _materialize(db, account, realtor_plan)
        if realtor is not None:
            for client in (client1, client2):
                if client is not None and client not in realtor.clients:
                    realtor.clients.append(client)

        number = await next_inspection_number(db, account)
        inspection = Inspection(
            account_id=account.id,
            number=number,
            inspector=inspector,
            client1=client1,
            client2=client2,
            realtor=realtor,
            main_service=main_service,
            additional_services=list(additional),
            date=datestamp,
            time=minute,
            details_locked=False,
            invoice_sent=False,
            invoiced=0,
            balance=0,
            payments=[],
            **property_fields,
        )
        db.add(inspection)

        for client in (client1, client2):
            if client is not None:
                notification_service.queue_scheduled_client(db, account, inspection, client, inspector)
        if realtor is not None:
            notification_service.queue_scheduled_realtor(
                db, account, inspection, realtor, inspector,
                client_name=client1.full_name if client1 is not None else None,
            )

        await db.commit()
    except IntegrityError:
        await db.rollback()
        if await is_booked(db, inspector_id, datestamp, minute):
            logger.warning(f"Booking race lost for inspector {inspector_id} at {datestamp} {minute}")
            raise InvalidParameterError("Inspector unavailable")
        logger.error("Integrity error while saving booking", exc_info=True)
        raise RuntimeFailureError("Failed to save inspection")

    logger.info(f"Inspection #{number} scheduled for inspector {inspector_id} at {datestamp} {minute}")
    return inspection


def _ensure_unlocked(inspection: Inspection) -> None:
    if inspection.details_locked:
        raise InvalidOperationError("Inspection details are locked")


async def update_property_details(
    db: AsyncSession,
    inspection: Inspection,
    details: PropertyDetails,
    today: Optional[date] = None,
) -> Inspection:
    """Apply supplied property fields; omitted fields keep their current value."""
    _ensure_unlocked(inspection)

    merged = PropertyDetails(**{
        name: getattr(details, name) if getattr(details, name) is not None else getattr(inspection, name)
        for name in PropertyDetails.model_fields
    })
    for name, value in validate_property(merged, today).items():
        setattr(inspection, name, value)

    await db.commit()
    logger.info(f"Property details updated for inspection {inspection.id}")
    return inspection


async def update_appointment(
    db: AsyncSession,
    account: Account,
    inspection: Inspection,
    appointment: AppointmentDetails,
) -> Inspection:
    """Move the inspection; its own current slot does not count as a conflict."""
    _ensure_unlocked(inspection)

    datestamp = appointment.date if appointment.date is not None else inspection.date
    minute = appointment.time if appointment.time is not None else inspection.time
    inspector_id = appointment.inspector_id or inspection.inspector_id

    parse_datestamp(datestamp)
    validate_minute(minute)
    inspector = await _get_roster_inspector(db, account, inspector_id)
    if not await can_schedule(db, account, inspector.id, datestamp, minute, ignore_inspection_id=inspection.id):
        raise InvalidParameterError("Inspector unavailable")

    inspection_id = inspection.id
    inspection.inspector = inspector
    inspection.date = datestamp
    inspection.time = minute
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.warning(f"Reschedule race lost for inspection {inspection_id}")
        raise InvalidParameterError("Inspector unavailable")

    logger.info(f"Inspection {inspection_id} moved to {datestamp} {minute}")
    return inspection


async def update_services(
    db: AsyncSession,
    account: Account,
    inspection: Inspection,
    services,
) -> Inspection:
    _ensure_unlocked(inspection)

    config = PricingConfig.from_dict(account.pricing)
    main_service, additional = _require_main_service(config, services)

    inspection.main_service = main_service
    inspection.additional_services = list(additional)
    await db.commit()

    logger.info(f"Services updated for inspection {inspection.id}")
    return inspection


def get_inspection_info(inspection: Inspection) -> dict:
    """Summary of an inspection for inspector dashboards."""
    return {
        "id": inspection.id,
        "number": inspection.number,
        "address": format_property_address(inspection),
        "inspector_id": inspection.inspector_id,
        "inspector_name": inspection.inspector.full_name if inspection.inspector else None,
        "client1_name": inspection.client1.full_name if inspection.client1 else None,
        "client2_name": inspection.client2.full_name if inspection.client2 else None,
        "realtor_name": inspection.realtor.full_name if inspection.realtor else None,
        "date": inspection.date,
        "time": inspection.time,
        "services": inspection.services,
        "sqft": inspection.sqft,
        "year_built": inspection.year_built,
        "foundation": inspection.foundation,
        "details_locked": bool(inspection.details_locked),
        "payment": {
            "invoice_sent": bool(inspection.invoice_sent),
            "invoiced": float(inspection.invoiced or 0),
            "balance": float(inspection.balance or 0),
            "payments": list(inspection.payments or []),
        },
    }


async def get_inspections(db: AsyncSession, inspector: Inspector, start, end) -> list[Inspection]:
    """The inspector's inspections dated within [start, end], ordered by (date, time)."""
    start_day = parse_datestamp(start, "start date")
    end_day = parse_datestamp(end, "end date")
    if end_day < start_day:
        raise InvalidParameterError("End date is before start date")

    result = await db.execute(
        select(Inspection)
        .where(
            Inspection.inspector_id == inspector.id,
            Inspection.date >= start,
            Inspection.date <= end,
        )
        .order_by(Inspection.date, Inspection.time)
    )
    return list(result.scalars().all())
