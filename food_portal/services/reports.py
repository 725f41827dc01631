"""Dashboard counters, CNIC lookup and the distributed-packages report."""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Literal

from food_portal.errors import NotFound, ValidationError
from food_portal.models.beneficiary import Beneficiary, BeneficiaryStatus
from food_portal.models.schedule import FoodSchedule
from food_portal.rbac import ensure
from food_portal.services.beneficiaries import validate_cnic
from food_portal.services.session import Session

Period = Literal["all", "today", "week", "custom"]


def _parse_day(field: str, value: str | None) -> date:
    try:
        return datetime.strptime((value or "").strip(), "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError(field, "Date must be YYYY-MM-DD")


async def dashboard_stats(session: Session, today: date | None = None) -> dict[str, Any]:
    ensure(session.principal, "view", "dashboard")
    today_str = (today or date.today()).isoformat()

    total_beneficiaries = await Beneficiary.count()
    pending_approvals = await Beneficiary.find(Beneficiary.status == BeneficiaryStatus.PENDING).count()
    total_distributed = await FoodSchedule.find(FoodSchedule.distributed_status == True).count()  # noqa: E712
    distributed_today = await FoodSchedule.find(
        FoodSchedule.distributed_status == True,  # noqa: E712
        FoodSchedule.pickup_date == today_str,
    ).count()
    # Centers in use, not rows in the centers collection
    active_centers = [c for c in await FoodSchedule.distinct("distribution_center") if c]

    return {
        "total_beneficiaries": total_beneficiaries,
        "pending_approvals": pending_approvals,
        "distributed_today": distributed_today,
        "total_distributed": total_distributed,
        "active_centers": len(active_centers),
        "date": today_str,
    }


async def search_by_cnic(session: Session, cnic: str) -> Beneficiary:
    ensure(session.principal, "view", "beneficiaries")
    cnic = validate_cnic(cnic)
    b = await Beneficiary.find_one(Beneficiary.cnic == cnic)
    if not b:
        raise NotFound("beneficiary", cnic)
    return b


async def distributed_report(
    session: Session,
    period: Period = "all",
    start: str | None = None,
    end: str | None = None,
    center: str | None = None,
    today: date | None = None,
) -> list[FoodSchedule]:
    """Distributed packages filtered by pickup date and center, newest first."""
    ensure(session.principal, "view", "schedules")
    today = today or date.today()
    query: dict[str, Any] = {"distributed_status": True}
    if center:
        query["distribution_center"] = center
    if period == "today":
        query["pickup_date"] = today.isoformat()
    elif period == "week":
        query["pickup_date"] = {
            "$gte": (today - timedelta(days=6)).isoformat(),
            "$lte": today.isoformat(),
        }
    elif period == "custom":
        start_day = _parse_day("start", start)
        end_day = _parse_day("end", end)
        if end_day < start_day:
            raise ValidationError("end", "End date must not be before start date")
        query["pickup_date"] = {"$gte": start_day.isoformat(), "$lte": end_day.isoformat()}
    elif period != "all":
        raise ValidationError("period", "Period must be one of: all, today, week, custom")
    return await FoodSchedule.find(query).sort(-FoodSchedule.pickup_date).to_list()
