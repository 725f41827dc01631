"""Distribution centers: CRUD and per-center schedule counts."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from beanie import PydanticObjectId
from pydantic import BaseModel

from food_portal.errors import NotFound, ValidationError
from food_portal.models.center import CenterCreate, DistributionCenter
from food_portal.models.schedule import FoodSchedule
from food_portal.rbac import ensure
from food_portal.services import events as topics
from food_portal.services.session import Session

logger = logging.getLogger(__name__)


def safe_object_id(value: str | None) -> PydanticObjectId | None:
    if not value:
        return None
    try:
        return PydanticObjectId(value)
    except Exception:
        return None


def center_to_dict(c: DistributionCenter) -> dict[str, Any]:
    return {
        "id": str(c.id),
        "name": c.name,
        "address": c.address,
        "is_active": c.is_active,
        "created_at": c.created_at.isoformat(),
    }


def _center_name(value: Any) -> str:
    name = value.strip() if isinstance(value, str) else ""
    if not name:
        raise ValidationError("name", "Center name is required")
    return name


async def list_centers(session: Session, active_only: bool = False) -> list[DistributionCenter]:
    ensure(session.principal, "view", "centers")
    query = {"is_active": True} if active_only else {}
    return await DistributionCenter.find(query).sort("name").to_list()


async def get_center(session: Session, center_id: str) -> DistributionCenter:
    ensure(session.principal, "view", "centers")
    oid = safe_object_id(center_id)
    c = await DistributionCenter.get(oid) if oid else None
    if not c:
        raise NotFound("center", center_id)
    return c


async def center_names() -> set[str]:
    return set(await DistributionCenter.distinct("name"))


async def create_center(session: Session, data: CenterCreate) -> DistributionCenter:
    ensure(session.principal, "create", "centers")
    c = DistributionCenter(
        name=_center_name(data.name),
        address=(data.address or "").strip(),
    )
    await c.insert()
    logger.info(f"Center {c.name} created by {session.principal.email}")
    await session.events.publish(topics.CENTER_CREATED, {"center": center_to_dict(c), "actor_id": session.actor_id})
    return c


async def update_center(
    session: Session,
    center_id: str,
    patch: BaseModel | Mapping[str, Any],
) -> DistributionCenter:
    ensure(session.principal, "edit", "centers")
    c = await get_center(session, center_id)
    update = patch.model_dump(exclude_unset=True) if isinstance(patch, BaseModel) else dict(patch)
    if "name" in update:
        update["name"] = _center_name(update["name"])
    if "address" in update:
        update["address"] = (update["address"] or "").strip()
    if "is_active" in update:
        update["is_active"] = bool(update["is_active"])
    for key, value in update.items():
        if key in ("name", "address", "is_active"):
            setattr(c, key, value)
    c.updated_at = datetime.utcnow()
    await c.save()
    await session.events.publish(topics.CENTER_UPDATED, {"center": center_to_dict(c), "actor_id": session.actor_id})
    return c


async def delete_center(session: Session, center_id: str) -> None:
    """Hard delete; schedules keep the old center name as plain text."""
    ensure(session.principal, "delete", "centers")
    c = await get_center(session, center_id)
    referencing = await FoodSchedule.find(FoodSchedule.distribution_center == c.name).count()
    if referencing:
        logger.warning(f"Deleting center {c.name} still named by {referencing} schedule(s)")
    await c.delete()
    logger.info(f"Center {c.name} deleted by {session.principal.email}")
    await session.events.publish(
        topics.CENTER_DELETED,
        {"center": center_to_dict(c), "referencing_schedules": referencing, "actor_id": session.actor_id},
    )


async def center_stats(session: Session) -> list[dict[str, Any]]:
    """Total, distributed and pending schedule counts for every known center."""
    ensure(session.principal, "view", "centers")
    centers = await DistributionCenter.find_all().sort("name").to_list()
    stats: dict[str, dict[str, Any]] = {
        c.name: {"name": c.name, "total_schedules": 0, "distributed": 0, "pending": 0} for c in centers
    }
    schedules = await FoodSchedule.find_all().to_list()
    for s in schedules:
        entry = stats.get(s.distribution_center)
        if entry is None:
            continue
        entry["total_schedules"] += 1
        if s.distributed_status:
            entry["distributed"] += 1
        else:
            entry["pending"] += 1
    return list(stats.values())
