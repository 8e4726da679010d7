"""
Availability engine.

An inspector is bookable at (date, minute) when the minute is in their weekly
pattern for that weekday, no time-off entry matches, and no inspection of
theirs already occupies the slot. can_schedule is a pure predicate; the
unique (inspector, date, time) constraint on inspections is what actually
prevents a double booking.
"""

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import DuplicateEntryError, InvalidParameterError, NotFoundError
from app.models.account import Account
from app.models.inspection import Inspection
from app.models.inspector import Inspector, InspectorTimeoff, InspectorTimeslot, WEEKDAYS
from app.services.validators import (
    format_datestamp,
    parse_datestamp,
    validate_minute,
    validate_weekday,
    weekday_of,
)

logger = logging.getLogger(__name__)


# Weekly timeslots


def get_timeslots(inspector: Inspector) -> dict[str, list[int]]:
    """All seven weekdays mapped to their sorted start minutes."""
    slots: dict[str, list[int]] = {day: [] for day in WEEKDAYS}
    for slot in inspector.timeslots:
        slots[slot.weekday].append(slot.minute)
    for minutes in slots.values():
        minutes.sort()
    return slots


def _find_timeslot(inspector: Inspector, weekday: str, minute: int) -> Optional[InspectorTimeslot]:
    for slot in inspector.timeslots:
        if slot.weekday == weekday and slot.minute == minute:
            return slot
    return None


async def add_timeslot(db: AsyncSession, inspector: Inspector, weekday, minute) -> dict[str, list[int]]:
    validate_weekday(weekday)
    validate_minute(minute)

    if _find_timeslot(inspector, weekday, minute) is not None:
        raise DuplicateEntryError("Duplicate timeslot")

    inspector.timeslots.append(InspectorTimeslot(weekday=weekday, minute=minute))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateEntryError("Duplicate timeslot")

    logger.info(f"Timeslot added for inspector {inspector.id}: {weekday} {minute}")
    return get_timeslots(inspector)


async def remove_timeslot(db: AsyncSession, inspector: Inspector, weekday, minute) -> dict[str, list[int]]:
    validate_weekday(weekday)
    validate_minute(minute)

    slot = _find_timeslot(inspector, weekday, minute)
    if slot is None:
        raise NotFoundError("Nonexistent timeslot")

    inspector.timeslots.remove(slot)
    await db.commit()

    logger.info(f"Timeslot removed for inspector {inspector.id}: {weekday} {minute}")
    return get_timeslots(inspector)


# Time-off exceptions


def get_timeoff(inspector: Inspector) -> list[dict]:
    """Every time-off entry, past ones included, sorted by (date, time)."""
    entries = [{"date": t.date, "time": t.minute} for t in inspector.timeoff]
    entries.sort(key=lambda e: (e["date"], e["time"]))
    return entries


def _find_timeoff(inspector: Inspector, datestamp: str, minute: int) -> Optional[InspectorTimeoff]:
    for entry in inspector.timeoff:
        if entry.date == datestamp and entry.minute == minute:
            return entry
    return None


async def add_timeoff(db: AsyncSession, inspector: Inspector, datestamp, minute) -> list[dict]:
    parse_datestamp(datestamp)
    validate_minute(minute)

    if _find_timeoff(inspector, datestamp, minute) is not None:
        raise DuplicateEntryError("Duplicate time-off slot")

    inspector.timeoff.append(InspectorTimeoff(date=datestamp, minute=minute))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateEntryError("Duplicate time-off slot")

    logger.info(f"Time-off added for inspector {inspector.id}: {datestamp} {minute}")
    return get_timeoff(inspector)


async def remove_timeoff(db: AsyncSession, inspector: Inspector, datestamp, minute) -> list[dict]:
    parse_datestamp(datestamp)
    validate_minute(minute)

    entry = _find_timeoff(inspector, datestamp, minute)
    if entry is None:
        raise NotFoundError("Nonexistent time-off slot")

    inspector.timeoff.remove(entry)
    await db.commit()

    logger.info(f"Time-off removed for inspector {inspector.id}: {datestamp} {minute}")
    return get_timeoff(inspector)


# Bookability


def is_in_pattern(inspector: Inspector, datestamp: str, minute: int) -> bool:
    """Weekly slot exists and no time-off covers it."""
    weekday = weekday_of(parse_datestamp(datestamp))
    if _find_timeslot(inspector, weekday, minute) is None:
        return False
    return _find_timeoff(inspector, datestamp, minute) is None


async def is_booked(
    db: AsyncSession,
    inspector_id: str,
    datestamp: str,
    minute: int,
    ignore_inspection_id: Optional[str] = None,
) -> bool:
    query = select(func.count()).select_from(Inspection).where(
        Inspection.inspector_id == inspector_id,
        Inspection.date == datestamp,
        Inspection.time == minute,
    )
    if ignore_inspection_id:
        query = query.where(Inspection.id != ignore_inspection_id)
    result = await db.execute(query)
    return (result.scalar() or 0) > 0


async def can_schedule(
    db: AsyncSession,
    account: Account,
    inspector_id: str,
    datestamp,
    minute,
    ignore_inspection_id: Optional[str] = None,
) -> bool:
    """
    Whether the account's inspector is free at (datestamp, minute).

    ignore_inspection_id lets an inspection being rescheduled disregard its
    own current slot. Nothing is reserved.
    """
    parse_datestamp(datestamp)
    validate_minute(minute)

    result = await db.execute(
        select(Inspector).where(
            Inspector.id == inspector_id,
            Inspector.account_id == account.id,
        )
    )
    inspector = result.scalar_one_or_none()
    if inspector is None or not inspector.is_active:
        return False

    if not is_in_pattern(inspector, datestamp, minute):
        return False

    return not await is_booked(db, inspector.id, datestamp, minute, ignore_inspection_id)


async def get_availabilities(db: AsyncSession, account: Account, start, end) -> dict[str, list[dict]]:
    """
    Open slots per date over an inclusive range.

    Every date in the range gets a key; each entry is
    {time, inspector_id, inspector_name}, sorted by (time, inspector_name).
    """
    start_day = parse_datestamp(start, "start date")
    end_day = parse_datestamp(end, "end date")
    if end_day < start_day:
        raise InvalidParameterError("End date is before start date")
    span = (end_day - start_day).days + 1
    if span > settings.AVAILABILITY_MAX_DAYS:
        raise InvalidParameterError(
            f"Date range may not exceed {settings.AVAILABILITY_MAX_DAYS} days"
        )

    result = await db.execute(
        select(Inspector).where(
            Inspector.account_id == account.id,
            Inspector.is_active == True,  # noqa: E712
        )
    )
    inspectors = result.scalars().all()

    booked_result = await db.execute(
        select(Inspection.inspector_id, Inspection.date, Inspection.time).where(
            Inspection.account_id == account.id,
            Inspection.date >= format_datestamp(start_day),
            Inspection.date <= format_datestamp(end_day),
        )
    )
    booked = {(row.inspector_id, row.date, row.time) for row in booked_result}

    availabilities: dict[str, list[dict]] = {}
    for offset in range(span):
        day = start_day + timedelta(days=offset)
        datestamp = format_datestamp(day)
        weekday = weekday_of(day)

        open_slots = []
        for inspector in inspectors:
            timeoff = {t.minute for t in inspector.timeoff if t.date == datestamp}
            for slot in inspector.timeslots:
                if slot.weekday != weekday or slot.minute in timeoff:
                    continue
                if (inspector.id, datestamp, slot.minute) in booked:
                    continue
                open_slots.append({
                    "time": slot.minute,
                    "inspector_id": inspector.id,
                    "inspector_name": inspector.full_name,
                })

        open_slots.sort(key=lambda s: (s["time"], s["inspector_name"]))
        availabilities[datestamp] = open_slots

    return availabilities
