"""Distribution centers - admins manage, staff read."""
from fastapi import APIRouter

from food_portal.api.deps import CurrentSession
from food_portal.models.center import CenterCreate, CenterUpdate
from food_portal.services import centers as center_service
from food_portal.services.centers import center_to_dict

router = APIRouter()


@router.get("/")
async def list_centers(session: CurrentSession, active_only: bool = False):
    centers = await center_service.list_centers(session, active_only=active_only)
    return [center_to_dict(c) for c in centers]


@router.get("/stats")
async def center_stats(session: CurrentSession):
    return await center_service.center_stats(session)


@router.post("/", status_code=201)
async def create_center(data: CenterCreate, session: CurrentSession):
    return center_to_dict(await center_service.create_center(session, data))


@router.get("/{center_id}")
async def get_center(center_id: str, session: CurrentSession):
    return center_to_dict(await center_service.get_center(session, center_id))


@router.patch("/{center_id}")
async def update_center(center_id: str, data: CenterUpdate, session: CurrentSession):
    return center_to_dict(await center_service.update_center(session, center_id, data))


@router.delete("/{center_id}", status_code=204)
async def delete_center(center_id: str, session: CurrentSession):
    await center_service.delete_center(session, center_id)
