"""Notification Outbox Dispatcher - delivers queued emails after their transaction commits.

Booking, invoicing and payment requests only insert rows into
notification_outbox. This module drains pending rows through the
EmailService. It runs as a FastAPI background task after each such request
and every OUTBOX_POLL_SECONDS through APScheduler, so mail that failed or
was queued by a crashed worker is eventually retried.

A row is retried until OUTBOX_MAX_ATTEMPTS, then marked failed. The
encrypted secret is wiped once the row is sent or has failed for good.
Delivery failures never touch the booking that queued the row.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.database import async_session_maker
from app.models.notification import NotificationOutbox
from app.services.email_service import EmailService, get_email_service
from app.services.notification_service import render_body

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the scheduler instance."""
    global scheduler
    if scheduler is None:
        scheduler = AsyncIOScheduler()
    return scheduler


async def deliver_entry(entry: NotificationOutbox, email_service: EmailService) -> bool:
    """Attempt one delivery and record the outcome on the row (caller commits)."""
    entry.attempts = (entry.attempts or 0) + 1

    try:
        body = render_body(entry)
    except ValueError as e:
        result = {"success": False, "error": str(e)}
    else:
        result = await email_service.send_email(
            to=entry.recipient_email,
            subject=entry.subject,
            body=body,
            to_name=entry.recipient_name,
        )

    if result.get("success"):
        entry.status = "sent"
        entry.sent_at = datetime.now(timezone.utc)
        entry.message_id = result.get("message_id")
        entry.last_error = None
        entry.secret = None
        return True

    entry.last_error = str(result.get("error") or "Unknown delivery error")[:1000]
    if entry.attempts >= settings.OUTBOX_MAX_ATTEMPTS:
        entry.status = "failed"
        entry.secret = None
    logger.error(
        f"Notification {entry.id} ({entry.kind}) delivery failed "
        f"(attempt {entry.attempts}/{settings.OUTBOX_MAX_ATTEMPTS}): {entry.last_error}"
    )
    return False


async def deliver_pending(
    db: AsyncSession,
    email_service: Optional[EmailService] = None,
    batch_size: Optional[int] = None,
) -> dict:
    """Deliver one batch of pending rows, oldest first, committing after each row."""
    email_service = email_service or get_email_service()
    query = (
        select(NotificationOutbox)
        .where(NotificationOutbox.status == "pending")
        .order_by(NotificationOutbox.created_at, NotificationOutbox.id)
        .limit(batch_size or settings.OUTBOX_BATCH_SIZE)
    )
    result = await db.execute(query)
    entries = result.scalars().all()

    sent = failed = 0
    for entry in entries:
        if await deliver_entry(entry, email_service):
            sent += 1
        else:
            failed += 1
        await db.commit()

    if entries:
        logger.info(f"Outbox batch complete. Sent: {sent}, Failed: {failed}")
    return {"processed": len(entries), "sent": sent, "failed": failed}


async def dispatch_pending_notifications(
    session_factory: Optional[async_sessionmaker] = None,
    email_service: Optional[EmailService] = None,
) -> dict:
    """
    Main job: drain the outbox with a fresh session.

    Errors are logged, never raised, since this runs detached from any
    request.
    """
    factory = session_factory or async_session_maker
    try:
        async with factory() as db:
            return await deliver_pending(db, email_service)
    except Exception as e:
        logger.error(f"Fatal error in outbox dispatch: {e}", exc_info=True)
        return {"processed": 0, "sent": 0, "failed": 0, "error": str(e)}


def start_outbox_scheduler():
    """Start the periodic outbox job."""
    global scheduler

    scheduler = get_scheduler()

    scheduler.add_job(
        dispatch_pending_notifications,
        IntervalTrigger(seconds=settings.OUTBOX_POLL_SECONDS),
        id="notification_outbox",
        name="Deliver queued notifications",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    if not scheduler.running:
        scheduler.start()
        logger.info("Outbox scheduler started")
        for job in scheduler.get_jobs():
            logger.info(f"  - {job.name}: {job.trigger}")


def stop_outbox_scheduler():
    """Stop the outbox scheduler."""
    global scheduler

    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Outbox scheduler stopped")
