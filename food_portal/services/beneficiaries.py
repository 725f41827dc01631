"""Beneficiary registration, lookup and field edits.

Status changes are not made here; see ``food_portal.services.workflow``.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime
from typing import Any, Mapping

from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from food_portal.errors import DuplicateKey, NotFound, ValidationError
from food_portal.models.beneficiary import (
    Beneficiary,
    BeneficiaryCreate,
    BeneficiaryOut,
    BeneficiaryStatus,
    IncomeLevel,
)
from food_portal.models.schedule import FoodSchedule
from food_portal.rbac import ensure
from food_portal.services import events as topics
from food_portal.services.session import Session

logger = logging.getLogger(__name__)

CNIC_RE = re.compile(r"^\d{13}$")
EDITABLE_FIELDS = ("name", "phone", "address", "family_members", "income_level")


def validate_cnic(value: Any) -> str:
    cnic = str(value or "").strip()
    if not CNIC_RE.match(cnic):
        raise ValidationError("cnic", "CNIC must be exactly 13 digits")
    return cnic


def _required_text(field: str, value: Any) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(field, f"{field.replace('_', ' ').capitalize()} is required")
    return text


def _family_members(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("family_members", "Family members must be a whole number")
    if value < 1:
        raise ValidationError("family_members", "Family members must be at least 1")
    return value


def _income_level(value: Any) -> IncomeLevel:
    try:
        return IncomeLevel(value)
    except ValueError:
        allowed = ", ".join(level.value for level in IncomeLevel)
        raise ValidationError("income_level", f"Income level must be one of: {allowed}")


def _snapshot(b: Beneficiary) -> dict[str, Any]:
    return BeneficiaryOut.from_document(b).model_dump(mode="json")


async def list_beneficiaries(session: Session, search: str | None = None) -> list[Beneficiary]:
    """All beneficiaries, optionally narrowed by name, CNIC or phone."""
    ensure(session.principal, "view", "beneficiaries")
    query: dict[str, Any] = {}
    if search and search.strip():
        pattern = re.escape(search.strip())
        query["$or"] = [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"cnic": {"$regex": pattern, "$options": "i"}},
            {"phone": {"$regex": pattern, "$options": "i"}},
        ]
    return await Beneficiary.find(query).sort(-Beneficiary.created_at).to_list()


async def get_beneficiary(session: Session, cnic: str) -> Beneficiary:
    ensure(session.principal, "view", "beneficiaries")
    b = await Beneficiary.find_one(Beneficiary.cnic == str(cnic).strip())
    if not b:
        raise NotFound("beneficiary", cnic)
    return b


async def create_beneficiary(session: Session, data: BeneficiaryCreate) -> Beneficiary:
    ensure(session.principal, "create", "beneficiaries")
    cnic = validate_cnic(data.cnic)
    b = Beneficiary(
        cnic=cnic,
        name=_required_text("name", data.name),
        phone=_required_text("phone", data.phone),
        address=_required_text("address", data.address),
        family_members=_family_members(data.family_members),
        income_level=_income_level(data.income_level),
        status=BeneficiaryStatus.PENDING,
        status_finalized=False,
        created_by=session.actor_id,
    )
    if await Beneficiary.find_one(Beneficiary.cnic == cnic):
        raise DuplicateKey("beneficiary", cnic, "CNIC already registered")
    try:
        await b.insert()
    except DuplicateKeyError as e:
        raise DuplicateKey("beneficiary", cnic, "CNIC already registered") from e
    logger.info(f"Beneficiary {cnic} registered by {session.principal.email}")
    await session.events.publish(
        topics.BENEFICIARY_CREATED,
        {"beneficiary": _snapshot(b), "actor_id": session.actor_id},
    )
    return b


async def update_beneficiary(
    session: Session,
    cnic: str,
    patch: BaseModel | Mapping[str, Any],
) -> Beneficiary:
    """Partial edit of the household details; CNIC and status stay as they are."""
    ensure(session.principal, "edit", "beneficiaries")
    changes = patch.model_dump(exclude_unset=True) if isinstance(patch, BaseModel) else dict(patch)
    if "cnic" in changes and str(changes["cnic"]).strip() != str(cnic).strip():
        raise ValidationError("cnic", "CNIC cannot be changed after registration")
    changes.pop("cnic", None)
    for field in ("status", "status_finalized", "status_updated_at"):
        if field in changes:
            raise ValidationError(field, "Status changes go through approve or reject")
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(sorted(unknown)[0], "Field cannot be edited")

    update: dict[str, Any] = {}
    for field in ("name", "phone", "address"):
        if field in changes:
            update[field] = _required_text(field, changes[field])
    if "family_members" in changes:
        update["family_members"] = _family_members(changes["family_members"])
    if "income_level" in changes:
        update["income_level"] = _income_level(changes["income_level"]).value

    b = await Beneficiary.find_one(Beneficiary.cnic == str(cnic).strip())
    if not b:
        raise NotFound("beneficiary", cnic)
    if not update:
        return b
    update["updated_at"] = datetime.utcnow()
    # Field-level $set so a concurrent approve/reject is never overwritten
    await b.set(update)
    logger.info(f"Beneficiary {b.cnic} updated by {session.principal.email}: {sorted(update)}")
    await session.events.publish(
        topics.BENEFICIARY_UPDATED,
        {"beneficiary": _snapshot(b), "actor_id": session.actor_id},
    )
    return b


async def eligible_for_scheduling(session: Session) -> list[Beneficiary]:
    """Approved beneficiaries that do not have a pickup schedule yet."""
    ensure(session.principal, "view", "beneficiaries")
    scheduled = set(await FoodSchedule.distinct("cnic"))
    approved = await Beneficiary.find(Beneficiary.status == BeneficiaryStatus.APPROVED).sort("name").to_list()
    return [b for b in approved if b.cnic not in scheduled]


async def names_by_cnic(cnics: list[str]) -> dict[str, str]:
    if not cnics:
        return {}
    found = await Beneficiary.find({"cnic": {"$in": list(set(cnics))}}).to_list()
    return {b.cnic: b.name for b in found}
