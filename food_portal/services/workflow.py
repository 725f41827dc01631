"""Status transitions: beneficiary approval and package distribution.

Beneficiary: pending -> approved | rejected, both terminal.
Schedule:    pending -> distributed, terminal.

Each transition re-reads the stored document right before writing and the
write itself is conditional on the document still being in its starting
state, so two admins racing on the same record cannot both win.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Literal

from beanie import UpdateResponse

from food_portal.errors import AlreadyDistributed, AlreadyFinalized, NotFound, ValidationError
from food_portal.models.beneficiary import Beneficiary, BeneficiaryOut, BeneficiaryStatus
from food_portal.models.schedule import FoodSchedule, ScheduleOut
from food_portal.rbac import ensure
from food_portal.services import events as topics
from food_portal.services.centers import safe_object_id
from food_portal.services.session import Session

logger = logging.getLogger(__name__)

Decision = Literal["approve", "reject"]

TRANSITIONS: dict[str, BeneficiaryStatus] = {
    "approve": BeneficiaryStatus.APPROVED,
    "reject": BeneficiaryStatus.REJECTED,
}


async def transition(session: Session, cnic: str, action: Decision) -> Beneficiary:
    ensure(session.principal, "approve", "beneficiaries")
    new_status = TRANSITIONS.get(action)
    if new_status is None:
        raise ValidationError("action", f"Unknown status action: {action}")
    cnic = str(cnic).strip()

    async with session.inflight.claim("status", cnic):
        current = await Beneficiary.find_one(Beneficiary.cnic == cnic)
        if not current:
            raise NotFound("beneficiary", cnic)
        if current.is_finalized:
            logger.warning(f"Rejected {action} on {cnic}: already {current.status.value}")
            raise AlreadyFinalized(cnic, current.status.value)

        now = datetime.utcnow()
        result = await Beneficiary.find_one(
            Beneficiary.cnic == cnic,
            Beneficiary.status == BeneficiaryStatus.PENDING,
            Beneficiary.status_finalized == False,  # noqa: E712
        ).update(
            {
                "$set": {
                    "status": new_status.value,
                    "status_finalized": True,
                    "status_updated_at": now,
                    "status_updated_by": session.actor_id,
                    "updated_at": now,
                }
            },
            response_type=UpdateResponse.UPDATE_RESULT,
        )
        latest = await Beneficiary.find_one(Beneficiary.cnic == cnic)
        if result.modified_count == 0:
            # Another admin finalized it between the read and the write
            status = latest.status.value if latest else "unknown"
            logger.warning(f"Lost {action} race on {cnic}: now {status}")
            raise AlreadyFinalized(cnic, status)

    logger.info(f"Beneficiary {cnic} {new_status.value} by {session.principal.email}")
    await session.events.publish(
        topics.BENEFICIARY_STATUS_CHANGED,
        {
            "beneficiary": BeneficiaryOut.from_document(latest).model_dump(mode="json"),
            "action": action,
            "actor_id": session.actor_id,
        },
    )
    return latest


async def approve(session: Session, cnic: str) -> Beneficiary:
    return await transition(session, cnic, "approve")


async def reject(session: Session, cnic: str) -> Beneficiary:
    return await transition(session, cnic, "reject")


async def mark_distributed(session: Session, schedule_id: str) -> FoodSchedule:
    """Record the pickup; re-marking raises ``AlreadyDistributed`` and changes nothing."""
    ensure(session.principal, "distribute", "schedules")
    oid = safe_object_id(schedule_id)
    if oid is None:
        raise NotFound("schedule", schedule_id)

    async with session.inflight.claim("distribute", schedule_id):
        schedule = await FoodSchedule.get(oid)
        if not schedule:
            raise NotFound("schedule", schedule_id)
        if schedule.distributed_status:
            raise AlreadyDistributed(schedule_id, schedule)

        result = await FoodSchedule.find_one(
            FoodSchedule.id == oid,
            FoodSchedule.distributed_status == False,  # noqa: E712
        ).update(
            {
                "$set": {
                    "distributed_status": True,
                    "distributed_at": datetime.utcnow(),
                    "distributed_by": session.actor_id,
                    "distributed_by_name": session.principal.name,
                }
            },
            response_type=UpdateResponse.UPDATE_RESULT,
        )
        latest = await FoodSchedule.get(oid)
        if result.modified_count == 0:
            raise AlreadyDistributed(schedule_id, latest)

    logger.info(f"Package {latest.token} distributed by {session.principal.email}")
    await session.events.publish(
        topics.SCHEDULE_DISTRIBUTED,
        {"schedule": ScheduleOut.from_document(latest).model_dump(mode="json"), "actor_id": session.actor_id},
    )
    return latest
