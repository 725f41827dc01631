"""Pickup schedules: creation with token generation, listing and token lookup."""
from __future__ import annotations

import logging
import random
from datetime import datetime
from typing import Any

from pymongo.errors import DuplicateKeyError

from food_portal.config import settings
from food_portal.errors import DuplicateKey, NotFound, ValidationError
from food_portal.models.beneficiary import Beneficiary, BeneficiaryStatus
from food_portal.models.schedule import FoodSchedule, ScheduleCreate, ScheduleOut
from food_portal.rbac import ensure
from food_portal.services import events as topics
from food_portal.services.beneficiaries import names_by_cnic, validate_cnic
from food_portal.services.centers import center_names, safe_object_id
from food_portal.services.session import Session

logger = logging.getLogger(__name__)


def generate_token(prefix: str | None = None) -> str:
    """Prefix plus a random four-digit number, e.g. SAY-4821."""
    return f"{prefix or settings.token_prefix}-{random.randint(1000, 9999)}"


def _is_valid_date(value: str) -> bool:
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def _is_valid_time(value: str) -> bool:
    try:
        datetime.strptime(value, "%H:%M")
    except ValueError:
        return False
    return True


async def _unique_token() -> str:
    token = generate_token()
    if await FoodSchedule.find_one(FoodSchedule.token == token):
        # One regeneration only; the unique index catches a second collision
        logger.warning(f"Pickup token {token} already in use, regenerating")
        token = generate_token()
    return token


async def to_out(schedules: list[FoodSchedule]) -> list[ScheduleOut]:
    names = await names_by_cnic([s.cnic for s in schedules])
    return [ScheduleOut.from_document(s, names.get(s.cnic)) for s in schedules]


async def list_schedules(session: Session, distributed: bool | None = None) -> list[FoodSchedule]:
    ensure(session.principal, "view", "schedules")
    query: dict[str, Any] = {}
    if distributed is True:
        query["distributed_status"] = True
    elif distributed is False:
        query["distributed_status"] = {"$ne": True}
    return await FoodSchedule.find(query).sort("pickup_date", "pickup_time").to_list()


async def pending_schedules(session: Session) -> list[FoodSchedule]:
    return await list_schedules(session, distributed=False)


async def get_schedule(session: Session, schedule_id: str) -> FoodSchedule:
    ensure(session.principal, "view", "schedules")
    oid = safe_object_id(schedule_id)
    s = await FoodSchedule.get(oid) if oid else None
    if not s:
        raise NotFound("schedule", schedule_id)
    return s


async def find_by_token(session: Session, token: str) -> FoodSchedule:
    ensure(session.principal, "view", "schedules")
    token = (token or "").strip().upper()
    if not token:
        raise ValidationError("token", "Please enter a token")
    s = await FoodSchedule.find_one(FoodSchedule.token == token)
    if not s:
        raise NotFound("schedule", token)
    return s


async def create_schedule(session: Session, data: ScheduleCreate) -> FoodSchedule:
    """Book a pickup for an approved beneficiary that has no schedule yet."""
    ensure(session.principal, "create", "schedules")
    cnic = validate_cnic(data.cnic)
    pickup_date = (data.pickup_date or "").strip()
    if not _is_valid_date(pickup_date):
        raise ValidationError("pickup_date", "Please select a pickup date (YYYY-MM-DD)")
    pickup_time = (data.pickup_time or "").strip()
    if not _is_valid_time(pickup_time):
        raise ValidationError("pickup_time", "Please select a pickup time (HH:MM)")
    center = (data.distribution_center or "").strip()
    if not center:
        raise ValidationError("distribution_center", "Please select a distribution center")
    known = await center_names()
    if known and center not in known:
        raise ValidationError("distribution_center", "Please select a valid distribution center")

    async with session.inflight.claim("schedule", cnic):
        # Re-read right before the write; no transaction spans these documents
        beneficiary = await Beneficiary.find_one(Beneficiary.cnic == cnic)
        if not beneficiary:
            raise NotFound("beneficiary", cnic)
        if beneficiary.status != BeneficiaryStatus.APPROVED:
            raise ValidationError("cnic", "Beneficiary must be approved before scheduling")
        if await FoodSchedule.find_one(FoodSchedule.cnic == cnic):
            raise DuplicateKey("schedule", cnic, "Beneficiary already has a pickup schedule")

        token = await _unique_token()
        s = FoodSchedule(
            token=token,
            cnic=cnic,
            pickup_date=pickup_date,
            pickup_time=pickup_time,
            distribution_center=center,
            distributed_status=False,
            created_by=session.actor_id,
        )
        try:
            await s.insert()
        except DuplicateKeyError as e:
            raise DuplicateKey("schedule", token, "Token collision, please try again") from e

    logger.info(f"Schedule {token} created for {cnic} at {center} on {pickup_date} {pickup_time}")
    await session.events.publish(
        topics.SCHEDULE_CREATED,
        {
            "schedule": ScheduleOut.from_document(s, beneficiary.name).model_dump(mode="json"),
            "actor_id": session.actor_id,
        },
    )
    return s
