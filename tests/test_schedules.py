"""Pickup schedules: token format, eligibility and lookups."""

import re
from unittest.mock import patch

import pytest

from food_portal.errors import DuplicateKey, NotFound, PermissionDenied, ValidationError
from food_portal.models.schedule import FoodSchedule, ScheduleCreate
from food_portal.services import events as topics
from food_portal.services import schedules, workflow
from food_portal.services.schedules import generate_token

TOKEN_RE = re.compile(r"^[A-Z]{3}-\d{4}$")


def booking(cnic, center="Gulberg Center", **overrides):
    data = {"cnic": cnic, "pickup_date": "2026-10-20", "pickup_time": "09:00", "distribution_center": center}
    data.update(overrides)
    return ScheduleCreate(**data)


class TestToken:
    async def test_default_prefix(self):
        for _ in range(50):
            token = generate_token()
            assert TOKEN_RE.match(token)
            assert token.startswith("SAY-")

    async def test_custom_prefix(self):
        assert generate_token("ABC").startswith("ABC-")

    async def test_bounds(self):
        with patch("food_portal.services.schedules.random.randint", return_value=1000):
            assert generate_token() == "SAY-1000"
        with patch("food_portal.services.schedules.random.randint", return_value=9999):
            assert generate_token() == "SAY-9999"


class TestCreate:
    async def test_schedule_approved_beneficiary(self, admin, make_beneficiary, center, published):
        b = await make_beneficiary(approved=True)
        s = await schedules.create_schedule(admin, booking(b.cnic))
        assert TOKEN_RE.match(s.token)
        assert s.distributed_status is False
        assert s.distribution_center == center.name
        assert s.created_by == admin.actor_id
        topic, event = published[-1]
        assert topic == topics.SCHEDULE_CREATED
        assert event["schedule"]["beneficiary_name"] == b.name

    async def test_pending_beneficiary_is_refused(self, admin, make_beneficiary, center):
        b = await make_beneficiary()
        with pytest.raises(ValidationError) as exc:
            await schedules.create_schedule(admin, booking(b.cnic))
        assert exc.value.field == "cnic"
        assert await FoodSchedule.count() == 0

    async def test_rejected_beneficiary_is_refused(self, admin, make_beneficiary, center):
        b = await make_beneficiary()
        await workflow.reject(admin, b.cnic)
        with pytest.raises(ValidationError):
            await schedules.create_schedule(admin, booking(b.cnic))

    async def test_unknown_beneficiary(self, admin, center):
        with pytest.raises(NotFound):
            await schedules.create_schedule(admin, booking("1234567890123"))

    async def test_one_schedule_per_beneficiary(self, admin, make_beneficiary, center):
        b = await make_beneficiary(approved=True)
        await schedules.create_schedule(admin, booking(b.cnic))
        with pytest.raises(DuplicateKey):
            await schedules.create_schedule(admin, booking(b.cnic, pickup_date="2026-11-01"))
        assert await FoodSchedule.count() == 1

    async def test_center_must_exist(self, admin, make_beneficiary, center):
        b = await make_beneficiary(approved=True)
        with pytest.raises(ValidationError) as exc:
            await schedules.create_schedule(admin, booking(b.cnic, center="Nowhere"))
        assert exc.value.field == "distribution_center"

    @pytest.mark.parametrize(
        "field,value",
        [("pickup_date", "20-10-2026"), ("pickup_date", ""), ("pickup_time", "9am"), ("pickup_time", "25:00")],
    )
    async def test_date_and_time_format(self, admin, make_beneficiary, center, field, value):
        b = await make_beneficiary(approved=True)
        with pytest.raises(ValidationError) as exc:
            await schedules.create_schedule(admin, booking(b.cnic, **{field: value}))
        assert exc.value.field == field

    async def test_staff_cannot_schedule(self, staff, make_beneficiary, center):
        b = await make_beneficiary(approved=True)
        with pytest.raises(PermissionDenied):
            await schedules.create_schedule(staff, booking(b.cnic))

    async def test_token_collision_regenerates(self, admin, make_schedule, make_beneficiary):
        with patch("food_portal.services.schedules.random.randint", return_value=1111):
            first = await make_schedule()
        assert first.token == "SAY-1111"
        b = await make_beneficiary(approved=True)
        with patch("food_portal.services.schedules.random.randint", side_effect=[1111, 2222]):
            second = await schedules.create_schedule(admin, booking(b.cnic))
        assert second.token == "SAY-2222"


class TestLookup:
    async def test_find_by_token_ignores_case(self, staff, make_schedule):
        s = await make_schedule()
        found = await schedules.find_by_token(staff, f"  {s.token.lower()} ")
        assert found.id == s.id

    async def test_unknown_token(self, staff):
        with pytest.raises(NotFound):
            await schedules.find_by_token(staff, "SAY-0000")

    async def test_blank_token(self, staff):
        with pytest.raises(ValidationError):
            await schedules.find_by_token(staff, "   ")

    async def test_pending_and_distributed_lists(self, staff, make_schedule):
        done = await make_schedule()
        waiting = await make_schedule()
        await workflow.mark_distributed(staff, str(done.id))
        assert [s.id for s in await schedules.pending_schedules(staff)] == [waiting.id]
        assert [s.id for s in await schedules.list_schedules(staff, distributed=True)] == [done.id]
        assert len(await schedules.list_schedules(staff)) == 2

    async def test_output_carries_beneficiary_name(self, staff, make_schedule):
        s = await make_schedule()
        [out] = await schedules.to_out([s])
        assert out.beneficiary_name.startswith("Household")
        assert out.token == s.token
