"""
Public scheduling API used by the online booking form.

No authentication; the account is identified by the path. Booking
responses are returned before any email goes out: notifications are
drained from the outbox in a background task.
"""

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Query, status
import logging

from app.api.deps import DbSession, NotificationDispatcher
from app.schemas.errors import ERROR_RESPONSES
from app.schemas.scheduling import BookingRequest, BookingResponse
from app.services import availability_service, pricing_service, scheduling_service

logger = logging.getLogger(__name__)
router = APIRouter(responses={400: ERROR_RESPONSES[400], 409: ERROR_RESPONSES[409]})


def _split_services(raw: list[str]) -> list[str]:
    """Accepts repeated params and "full|radon" / "full,radon" lists."""
    services = []
    for value in raw:
        services.extend(part.strip() for part in value.replace(",", "|").split("|") if part.strip())
    return services


@router.get("/{account_id}/services")
async def list_services(account_id: str, db: DbSession):
    """Services offered by the account."""
    account = await scheduling_service.get_account(db, account_id)
    config = pricing_service.PricingConfig.from_dict(account.pricing)
    return {"services": pricing_service.get_services(config)}


@router.get("/{account_id}/pricing")
async def get_pricing(
    account_id: str,
    db: DbSession,
    services: list[str] = Query(..., description="Service short names, e.g. full|radon"),
    sqft: int = Query(...),
    foundation: str = Query(...),
    year_built: Optional[int] = Query(None),
    age: Optional[int] = Query(None),
):
    """Itemized quote for the requested services and property."""
    account = await scheduling_service.get_account(db, account_id)
    config = pricing_service.PricingConfig.from_dict(account.pricing)
    result = pricing_service.calculate_pricing(
        config,
        _split_services(services),
        sqft,
        year_built=year_built,
        age=age,
        foundation=foundation,
    )
    return result.to_dict()


@router.get("/{account_id}/availability")
async def get_availability(
    account_id: str,
    db: DbSession,
    start: str = Query(..., alias="from", description="YYYYMMDD"),
    end: str = Query(..., alias="until", description="YYYYMMDD"),
):
    """Open slots per date for every active inspector on the account."""
    account = await scheduling_service.get_account(db, account_id)
    return await availability_service.get_availabilities(db, account, start, end)


@router.post(
    "/{account_id}/inspections",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def book_inspection(
    account_id: str,
    request: BookingRequest,
    db: DbSession,
    background_tasks: BackgroundTasks,
    dispatch: NotificationDispatcher,
) -> BookingResponse:
    """Book an inspection; contacts are created on the fly."""
    account = await scheduling_service.get_account(db, account_id)
    inspection = await scheduling_service.schedule(db, account, request)
    background_tasks.add_task(dispatch)

    return BookingResponse(
        id=inspection.id,
        number=inspection.number,
        date=inspection.date,
        time=inspection.time,
        inspector_id=inspection.inspector_id,
    )
