"""Pickup schedules: booking, token lookup, distribution and reports."""
from typing import Optional

from fastapi import APIRouter, Query

from food_portal.api.deps import CurrentSession
from food_portal.errors import AlreadyDistributed
from food_portal.models.schedule import ScheduleCreate, ScheduleOut
from food_portal.services import reports
from food_portal.services import schedules as schedule_service
from food_portal.services import workflow

router = APIRouter()


@router.get("/", response_model=list[ScheduleOut])
async def list_schedules(session: CurrentSession, distributed: Optional[bool] = None):
    found = await schedule_service.list_schedules(session, distributed=distributed)
    return await schedule_service.to_out(found)


@router.get("/pending", response_model=list[ScheduleOut])
async def list_pending(session: CurrentSession):
    return await schedule_service.to_out(await schedule_service.pending_schedules(session))


@router.get("/report", response_model=list[ScheduleOut])
async def distributed_report(
    session: CurrentSession,
    period: str = Query("all", description="all, today, week or custom"),
    start: Optional[str] = None,
    end: Optional[str] = None,
    center: Optional[str] = None,
):
    found = await reports.distributed_report(session, period=period, start=start, end=end, center=center)
    return await schedule_service.to_out(found)


@router.get("/token/{token}", response_model=ScheduleOut)
async def find_by_token(token: str, session: CurrentSession):
    s = await schedule_service.find_by_token(session, token)
    return (await schedule_service.to_out([s]))[0]


@router.post("/", response_model=ScheduleOut, status_code=201)
async def create_schedule(data: ScheduleCreate, session: CurrentSession):
    s = await schedule_service.create_schedule(session, data)
    return (await schedule_service.to_out([s]))[0]


@router.get("/{schedule_id}", response_model=ScheduleOut)
async def get_schedule(schedule_id: str, session: CurrentSession):
    s = await schedule_service.get_schedule(session, schedule_id)
    return (await schedule_service.to_out([s]))[0]


@router.post("/{schedule_id}/distribute")
async def mark_distributed(schedule_id: str, session: CurrentSession):
    """Mark a package as picked up. Repeating the call changes nothing."""
    try:
        s = await workflow.mark_distributed(session, schedule_id)
    except AlreadyDistributed as e:
        out = (await schedule_service.to_out([e.schedule]))[0] if e.schedule else None
        return {"already_distributed": True, "schedule": out.model_dump(mode="json") if out else None}
    out = (await schedule_service.to_out([s]))[0]
    return {"already_distributed": False, "schedule": out.model_dump(mode="json")}
