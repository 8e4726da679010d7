"""
Invoice generation and payment recording.

Generating the invoice prices the inspection, stores the pricing snapshot in
an INVOICE document readable by the inspector and each client through their
own token, and permanently locks the inspection's details.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation as DecimalInvalidOperation
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidOperationError, InvalidParameterError
from app.models.account import Account
from app.models.document import Document, UNLIMITED_DURATION
from app.models.inspection import Inspection
from app.services import document_service, notification_service
from app.services.pricing_service import CENT, PricingConfig, calculate_pricing

logger = logging.getLogger(__name__)

MAX_PAYMENT_METHOD_LENGTH = 50


async def generate_send_invoice(
    db: AsyncSession,
    inspection: Inspection,
    account: Optional[Account] = None,
) -> Document:
    """Price, lock and publish the invoice; a second call is refused."""
    if inspection.invoice_sent:
        raise InvalidOperationError("Invoice already sent")
    if account is None:
        account = await db.get(Account, inspection.account_id)

    config = PricingConfig.from_dict(account.pricing)
    pricing = calculate_pricing(
        config,
        inspection.services,
        inspection.sqft,
        year_built=inspection.year_built,
        foundation=inspection.foundation,
    )
    snapshot = pricing.to_dict()

    document = document_service.create_document(
        db,
        inspection.id,
        doctype="INVOICE",
        name=f"Invoice #{inspection.number}",
        content=json.dumps(snapshot),
        content_type="RAW",
    )
    document_service.add_authorization(document, inspection.inspector_id, "inspector", UNLIMITED_DURATION)

    client_tokens = []
    for client in (inspection.client1, inspection.client2):
        if client is not None:
            authorization = document_service.add_authorization(document, client.id, "client", UNLIMITED_DURATION)
            client_tokens.append((client, authorization.token))

    inspection.details_locked = True
    inspection.invoice_sent = True
    inspection.pricing = snapshot
    inspection.invoiced = pricing.total
    inspection.balance = pricing.total

    # Document id is needed for the links in the emails
    await db.flush()
    for client, token in client_tokens:
        notification_service.queue_invoice_ready(db, inspection, client, document.id, token, pricing.total)

    await db.commit()
    logger.info(f"Invoice generated for inspection {inspection.id}: total {pricing.total}")
    return document


def _parse_amount(amount) -> Decimal:
    if isinstance(amount, bool):
        raise InvalidParameterError("Invalid payment amount")
    try:
        value = Decimal(str(amount))
    except DecimalInvalidOperation:
        raise InvalidParameterError("Invalid payment amount")
    if not value.is_finite() or value <= 0 or value != value.quantize(CENT):
        raise InvalidParameterError("Invalid payment amount")
    return value


async def record_payment(
    db: AsyncSession,
    inspection: Inspection,
    amount,
    method: Optional[str] = "other",
) -> Inspection:
    """Apply a payment against the outstanding balance."""
    if not inspection.invoice_sent:
        raise InvalidOperationError("Invoice has not been sent")

    value = _parse_amount(amount)
    balance = Decimal(str(inspection.balance or 0))
    if value > balance:
        raise InvalidParameterError("Payment exceeds outstanding balance")
    if not isinstance(method, str) or not method.strip() or len(method) > MAX_PAYMENT_METHOD_LENGTH:
        raise InvalidParameterError("Invalid payment method")

    new_balance = balance - value
    # Reassign so the JSON column is flagged dirty
    inspection.payments = [
        *(inspection.payments or []),
        {
            "amount": float(value),
            "method": method.strip(),
            "paid_at": datetime.now(timezone.utc).isoformat(),
        },
    ]
    inspection.balance = new_balance

    if inspection.client1 is not None:
        notification_service.queue_payment_confirmation(db, inspection, inspection.client1, value, new_balance)

    await db.commit()
    logger.info(f"Payment of {value} recorded for inspection {inspection.id}")
    return inspection
