"""
Inspection management API for inspectors.

Edits go through the scheduling service and are refused once the invoice
has locked the inspection. Inspections are visible to every inspector of
the owning account.
"""

from fastapi import APIRouter, BackgroundTasks, status
import logging

from app.api.deps import CurrentInspector, DbSession, NotificationDispatcher
from app.schemas.errors import ERROR_RESPONSES
from app.schemas.scheduling import AppointmentDetails, PaymentRequest, PropertyDetails, ServicesUpdate
from app.services import invoice_service, scheduling_service

logger = logging.getLogger(__name__)
router = APIRouter(responses={code: ERROR_RESPONSES[code] for code in (400, 401, 409)})


@router.get("/{inspection_id}")
async def get_inspection(inspection_id: str, db: DbSession, inspector: CurrentInspector):
    inspection = await scheduling_service.get_inspection_for_inspector(db, inspector, inspection_id)
    return scheduling_service.get_inspection_info(inspection)


@router.put("/{inspection_id}/property")
async def update_property(
    inspection_id: str,
    details: PropertyDetails,
    db: DbSession,
    inspector: CurrentInspector,
):
    inspection = await scheduling_service.get_inspection_for_inspector(db, inspector, inspection_id)
    inspection = await scheduling_service.update_property_details(db, inspection, details)
    return scheduling_service.get_inspection_info(inspection)


@router.put("/{inspection_id}/appointment")
async def update_appointment(
    inspection_id: str,
    appointment: AppointmentDetails,
    db: DbSession,
    inspector: CurrentInspector,
):
    inspection = await scheduling_service.get_inspection_for_inspector(db, inspector, inspection_id)
    account = await scheduling_service.get_account(db, inspection.account_id)
    inspection = await scheduling_service.update_appointment(db, account, inspection, appointment)
    return scheduling_service.get_inspection_info(inspection)


@router.put("/{inspection_id}/services")
async def update_services(
    inspection_id: str,
    update: ServicesUpdate,
    db: DbSession,
    inspector: CurrentInspector,
):
    inspection = await scheduling_service.get_inspection_for_inspector(db, inspector, inspection_id)
    account = await scheduling_service.get_account(db, inspection.account_id)
    inspection = await scheduling_service.update_services(db, account, inspection, update.services)
    return scheduling_service.get_inspection_info(inspection)


@router.post("/{inspection_id}/invoice", status_code=status.HTTP_201_CREATED)
async def send_invoice(
    inspection_id: str,
    db: DbSession,
    inspector: CurrentInspector,
    background_tasks: BackgroundTasks,
    dispatch: NotificationDispatcher,
):
    """Generate the invoice, lock the inspection and email the clients."""
    inspection = await scheduling_service.get_inspection_for_inspector(db, inspector, inspection_id)
    document = await invoice_service.generate_send_invoice(db, inspection)
    background_tasks.add_task(dispatch)

    inspector_token = next(
        (a.token for a in document.authorizations if a.user_type == "inspector"),
        None,
    )
    return {
        "document_id": document.id,
        "token": inspector_token,
        "pricing": inspection.pricing,
    }


@router.post("/{inspection_id}/payments")
async def add_payment(
    inspection_id: str,
    payment: PaymentRequest,
    db: DbSession,
    inspector: CurrentInspector,
    background_tasks: BackgroundTasks,
    dispatch: NotificationDispatcher,
):
    inspection = await scheduling_service.get_inspection_for_inspector(db, inspector, inspection_id)
    inspection = await invoice_service.record_payment(db, inspection, payment.amount, payment.method)
    background_tasks.add_task(dispatch)
    return scheduling_service.get_inspection_info(inspection)
