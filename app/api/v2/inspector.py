"""
Inspector self-service API: weekly timeslots, time-off and own inspections.

All endpoints require an inspector Bearer token.
"""

from fastapi import APIRouter, Query, status
import logging

from app.api.deps import CurrentInspector, DbSession
from app.schemas.errors import ERROR_RESPONSES
from app.schemas.scheduling import TimeoffRequest, TimeslotRequest
from app.services import availability_service, scheduling_service

logger = logging.getLogger(__name__)
router = APIRouter(responses={code: ERROR_RESPONSES[code] for code in (400, 401, 409)})


# Timeslots


@router.get("/timeslots")
async def list_timeslots(inspector: CurrentInspector):
    return {"timeslots": availability_service.get_timeslots(inspector)}


@router.post("/timeslots", status_code=status.HTTP_201_CREATED)
async def create_timeslot(request: TimeslotRequest, db: DbSession, inspector: CurrentInspector):
    timeslots = await availability_service.add_timeslot(db, inspector, request.day, request.time)
    return {"timeslots": timeslots}


@router.delete("/timeslots/{day}/{time}")
async def delete_timeslot(day: str, time: int, db: DbSession, inspector: CurrentInspector):
    timeslots = await availability_service.remove_timeslot(db, inspector, day, time)
    return {"timeslots": timeslots}


# Time-off


@router.get("/timeoff")
async def list_timeoff(inspector: CurrentInspector):
    return {"timeoff": availability_service.get_timeoff(inspector)}


@router.post("/timeoff", status_code=status.HTTP_201_CREATED)
async def create_timeoff(request: TimeoffRequest, db: DbSession, inspector: CurrentInspector):
    timeoff = await availability_service.add_timeoff(db, inspector, request.date, request.time)
    return {"timeoff": timeoff}


@router.delete("/timeoff/{date}/{time}")
async def delete_timeoff(date: str, time: int, db: DbSession, inspector: CurrentInspector):
    timeoff = await availability_service.remove_timeoff(db, inspector, date, time)
    return {"timeoff": timeoff}


# Inspections


@router.get("/inspections")
async def list_inspections(
    db: DbSession,
    inspector: CurrentInspector,
    start: str = Query(..., description="YYYYMMDD"),
    end: str = Query(..., description="YYYYMMDD"),
):
    """The inspector's inspections in an inclusive date range."""
    inspections = await scheduling_service.get_inspections(db, inspector, start, end)
    return {
        "inspections": [scheduling_service.get_inspection_info(i) for i in inspections],
        "total": len(inspections),
    }
