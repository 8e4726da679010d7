"""
Notification outbox writer.

Messages are composed here as plain text and inserted into
notification_outbox within the caller's transaction, so a rolled-back
booking never leaves an email behind. Delivery happens later in
app.tasks.outbox_dispatcher.

A generated password is never stored in the body: the body carries
PASSWORD_PLACEHOLDER and the password itself goes Fernet-encrypted into
``secret``, substituted only at send time.
"""

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.account import Account
from app.models.inspection import Inspection
from app.models.notification import NotificationOutbox
from app.services.encryption import decrypt_secret, encrypt_secret
from app.services.formatting import format_date, format_minute, format_property_address

logger = logging.getLogger(__name__)

PASSWORD_PLACEHOLDER = "{password}"

KIND_NEW_ACCOUNT = "new_account"
KIND_SCHEDULED_CLIENT = "scheduled_client"
KIND_SCHEDULED_REALTOR = "scheduled_realtor"
KIND_INVOICE_READY = "invoice_ready"
KIND_PAYMENT_CONFIRMATION = "payment_confirmation"

NOTIFICATION_KINDS = (
    KIND_NEW_ACCOUNT,
    KIND_SCHEDULED_CLIENT,
    KIND_SCHEDULED_REALTOR,
    KIND_INVOICE_READY,
    KIND_PAYMENT_CONFIRMATION,
)


def login_link(user_type: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/login?type={user_type}"


def document_link(document_id: str, token: str) -> str:
    return f"{settings.FRONTEND_URL.rstrip('/')}/documents/{document_id}?token={token}"


def queue_notification(
    db: AsyncSession,
    account_id: str,
    kind: str,
    recipient_email: str,
    recipient_name: Optional[str],
    subject: str,
    body: str,
    secret: Optional[str] = None,
) -> NotificationOutbox:
    """Add an outbox row to the session; the caller commits."""
    if kind not in NOTIFICATION_KINDS:
        raise ValueError(f"Unknown notification kind: {kind}")

    entry = NotificationOutbox(
        account_id=account_id,
        kind=kind,
        recipient_email=recipient_email,
        recipient_name=recipient_name,
        subject=subject,
        body=body,
        secret=encrypt_secret(secret) if secret else None,
        status="pending",
        attempts=0,
    )
    db.add(entry)
    logger.debug(f"Queued {kind} notification for account {account_id}")
    return entry


def render_body(entry: NotificationOutbox) -> str:
    """Final message text with any encrypted secret substituted back in."""
    if not entry.secret:
        return entry.body
    plaintext = decrypt_secret(entry.secret)
    if plaintext is None:
        raise ValueError("Notification secret could not be decrypted")
    return entry.body.replace(PASSWORD_PLACEHOLDER, plaintext)


def _appointment_line(inspection: Inspection) -> str:
    return f"{format_date(inspection.date)} at {format_minute(inspection.time)}"


def queue_new_account(
    db: AsyncSession,
    account: Account,
    contact,
    user_type: str,
    password: str,
) -> NotificationOutbox:
    """Login details for a client or realtor created during booking."""
    body = (
        f"Hello {contact.first_name},\n\n"
        f"An account has been created for you with {account.name}.\n\n"
        f"Email: {contact.email}\n"
        f"Temporary password: {PASSWORD_PLACEHOLDER}\n\n"
        f"Sign in at {login_link(user_type)} to view your inspections and documents."
    )
    return queue_notification(
        db,
        account.id,
        KIND_NEW_ACCOUNT,
        contact.email,
        contact.full_name,
        f"Your {account.name} account",
        body,
        secret=password,
    )


def queue_scheduled_client(
    db: AsyncSession,
    account: Account,
    inspection: Inspection,
    client,
    inspector,
) -> NotificationOutbox:
    body = (
        f"Hello {client.first_name},\n\n"
        f"Your inspection #{inspection.number} at {format_property_address(inspection)} "
        f"is scheduled for {_appointment_line(inspection)} with {inspector.full_name}.\n\n"
        f"Sign in at {login_link('client')} for details."
    )
    return queue_notification(
        db,
        account.id,
        KIND_SCHEDULED_CLIENT,
        client.email,
        client.full_name,
        f"Inspection scheduled for {format_date(inspection.date)}",
        body,
    )


def queue_scheduled_realtor(
    db: AsyncSession,
    account: Account,
    inspection: Inspection,
    realtor,
    inspector,
    client_name: Optional[str] = None,
) -> NotificationOutbox:
    for_client = f" for {client_name}" if client_name else ""
    body = (
        f"Hello {realtor.first_name},\n\n"
        f"Inspection #{inspection.number}{for_client} at {format_property_address(inspection)} "
        f"is scheduled for {_appointment_line(inspection)} with {inspector.full_name}.\n\n"
        f"Sign in at {login_link('realtor')} for details."
    )
    return queue_notification(
        db,
        account.id,
        KIND_SCHEDULED_REALTOR,
        realtor.email,
        realtor.full_name,
        f"Inspection scheduled for {format_date(inspection.date)}",
        body,
    )


def queue_invoice_ready(
    db: AsyncSession,
    inspection: Inspection,
    client,
    document_id: str,
    token: str,
    total: Decimal,
) -> NotificationOutbox:
    body = (
        f"Hello {client.first_name},\n\n"
        f"The invoice for inspection #{inspection.number} at "
        f"{format_property_address(inspection)} is ready.\n\n"
        f"Amount due: ${total:.2f}\n"
        f"View it at {document_link(document_id, token)}"
    )
    return queue_notification(
        db,
        inspection.account_id,
        KIND_INVOICE_READY,
        client.email,
        client.full_name,
        f"Invoice for inspection #{inspection.number}",
        body,
    )


def queue_payment_confirmation(
    db: AsyncSession,
    inspection: Inspection,
    client,
    amount: Decimal,
    balance: Decimal,
) -> NotificationOutbox:
    body = (
        f"Hello {client.first_name},\n\n"
        f"We received your payment of ${amount:.2f} for inspection #{inspection.number}.\n"
        f"Remaining balance: ${balance:.2f}"
    )
    return queue_notification(
        db,
        inspection.account_id,
        KIND_PAYMENT_CONFIRMATION,
        client.email,
        client.full_name,
        f"Payment received for inspection #{inspection.number}",
        body,
    )
