"""Dashboard counters, CNIC search and the distributed-packages report."""

from datetime import date

import pytest

from food_portal.errors import NotFound, PermissionDenied, ValidationError
from food_portal.models.user import UserStatus
from food_portal.services import reports, workflow

TODAY = date(2026, 10, 18)


@pytest.fixture
async def distributed(staff, make_schedule):
    """Three picked-up packages: today, four days ago and last month."""
    result = []
    for day in ("2026-10-18", "2026-10-14", "2026-09-10"):
        s = await make_schedule(pickup_date=day)
        result.append(await workflow.mark_distributed(staff, str(s.id)))
    return result


class TestDashboard:
    async def test_stats(self, staff, make_beneficiary, distributed, make_schedule):
        await make_beneficiary()
        await make_schedule(pickup_date="2026-10-18")
        stats = await reports.dashboard_stats(staff, today=TODAY)
        assert stats["total_beneficiaries"] == 5
        assert stats["pending_approvals"] == 1
        assert stats["distributed_today"] == 1
        assert stats["total_distributed"] == 3
        assert stats["active_centers"] == 1
        assert stats["date"] == "2026-10-18"

    async def test_empty(self, staff):
        stats = await reports.dashboard_stats(staff, today=TODAY)
        assert stats["total_beneficiaries"] == 0
        assert stats["active_centers"] == 0

    async def test_inactive_user_is_denied(self, staff):
        staff.principal.status = UserStatus.INACTIVE
        with pytest.raises(PermissionDenied):
            await reports.dashboard_stats(staff, today=TODAY)

    async def test_search_by_cnic(self, staff, make_beneficiary):
        b = await make_beneficiary()
        assert (await reports.search_by_cnic(staff, b.cnic)).id == b.id
        with pytest.raises(NotFound):
            await reports.search_by_cnic(staff, "9999999999999")
        with pytest.raises(ValidationError):
            await reports.search_by_cnic(staff, "123")


class TestDistributedReport:
    async def test_all_newest_first(self, staff, distributed):
        found = await reports.distributed_report(staff, "all", today=TODAY)
        assert [s.pickup_date for s in found] == ["2026-10-18", "2026-10-14", "2026-09-10"]

    async def test_today(self, staff, distributed):
        found = await reports.distributed_report(staff, "today", today=TODAY)
        assert [s.pickup_date for s in found] == ["2026-10-18"]

    async def test_week(self, staff, distributed):
        found = await reports.distributed_report(staff, "week", today=TODAY)
        assert [s.pickup_date for s in found] == ["2026-10-18", "2026-10-14"]

    async def test_custom_range(self, staff, distributed):
        found = await reports.distributed_report(staff, "custom", start="2026-09-01", end="2026-09-30", today=TODAY)
        assert [s.pickup_date for s in found] == ["2026-09-10"]

    async def test_custom_range_validation(self, staff):
        with pytest.raises(ValidationError) as exc:
            await reports.distributed_report(staff, "custom", start="2026-10-10", end="2026-10-01")
        assert exc.value.field == "end"
        with pytest.raises(ValidationError) as exc:
            await reports.distributed_report(staff, "custom", start="yesterday", end="2026-10-01")
        assert exc.value.field == "start"

    async def test_unknown_period(self, staff):
        with pytest.raises(ValidationError):
            await reports.distributed_report(staff, "month")

    async def test_center_filter(self, staff, distributed):
        assert len(await reports.distributed_report(staff, center="Gulberg Center")) == 3
        assert await reports.distributed_report(staff, center="Elsewhere") == []

    async def test_pending_packages_are_excluded(self, staff, make_schedule):
        await make_schedule()
        assert await reports.distributed_report(staff, "all", today=TODAY) == []
