"""Beneficiary repository: registration, validation, edits and lookups."""

import pytest

from food_portal.errors import DuplicateKey, NotFound, PermissionDenied, ValidationError
from food_portal.models.beneficiary import Beneficiary, BeneficiaryCreate, BeneficiaryStatus, BeneficiaryUpdate
from food_portal.models.user import UserRole
from food_portal.services import beneficiaries, events as topics


def payload(**overrides):
    data = {
        "cnic": "3520212345671",
        "name": "Ayesha Bibi",
        "phone": "03001234567",
        "address": "House 4, Street 9, Lahore",
        "family_members": 6,
        "income_level": "Very Low",
    }
    data.update(overrides)
    return BeneficiaryCreate(**data)


class TestCreate:
    async def test_new_beneficiary_is_pending(self, admin, published):
        b = await beneficiaries.create_beneficiary(admin, payload())
        assert b.status == BeneficiaryStatus.PENDING
        assert b.status_finalized is False
        assert b.created_by == admin.actor_id
        stored = await beneficiaries.get_beneficiary(admin, "3520212345671")
        assert stored.name == "Ayesha Bibi"
        assert published[-1][0] == topics.BENEFICIARY_CREATED

    async def test_duplicate_cnic(self, admin):
        await beneficiaries.create_beneficiary(admin, payload())
        with pytest.raises(DuplicateKey) as exc:
            await beneficiaries.create_beneficiary(admin, payload(name="Someone Else"))
        assert exc.value.key == "3520212345671"
        assert await Beneficiary.count() == 1

    @pytest.mark.parametrize("cnic", ["12345", "35202-1234567-1", "352021234567a", ""])
    async def test_cnic_must_be_13_digits(self, admin, cnic):
        with pytest.raises(ValidationError) as exc:
            await beneficiaries.create_beneficiary(admin, payload(cnic=cnic))
        assert exc.value.field == "cnic"

    async def test_family_members_at_least_one(self, admin):
        with pytest.raises(ValidationError) as exc:
            await beneficiaries.create_beneficiary(admin, payload(family_members=0))
        assert exc.value.field == "family_members"

    async def test_unknown_income_level(self, admin):
        with pytest.raises(ValidationError) as exc:
            await beneficiaries.create_beneficiary(admin, payload(income_level="High"))
        assert exc.value.field == "income_level"

    async def test_blank_name(self, admin):
        with pytest.raises(ValidationError) as exc:
            await beneficiaries.create_beneficiary(admin, payload(name="  "))
        assert exc.value.field == "name"

    async def test_staff_with_permission(self, staff):
        b = await beneficiaries.create_beneficiary(staff, payload())
        assert b.created_by == staff.actor_id

    async def test_staff_without_permission(self, make_session):
        restricted = await make_session(UserRole.STAFF, can_create_beneficiaries=False)
        with pytest.raises(PermissionDenied):
            await beneficiaries.create_beneficiary(restricted, payload())
        assert await Beneficiary.count() == 0

    async def test_permission_checked_before_validation(self, make_session):
        restricted = await make_session(UserRole.STAFF, can_create_beneficiaries=False)
        with pytest.raises(PermissionDenied):
            await beneficiaries.create_beneficiary(restricted, payload(cnic="bad"))


class TestUpdate:
    async def test_edit_fields(self, admin, make_beneficiary, published):
        b = await make_beneficiary()
        updated = await beneficiaries.update_beneficiary(
            admin, b.cnic, BeneficiaryUpdate(phone="03111111111", family_members=3)
        )
        assert updated.phone == "03111111111"
        assert updated.family_members == 3
        assert updated.status == BeneficiaryStatus.PENDING
        assert published[-1][0] == topics.BENEFICIARY_UPDATED

    async def test_cnic_cannot_change(self, admin, make_beneficiary):
        b = await make_beneficiary()
        with pytest.raises(ValidationError) as exc:
            await beneficiaries.update_beneficiary(admin, b.cnic, {"cnic": "9999999999999"})
        assert exc.value.field == "cnic"

    async def test_status_cannot_be_edited(self, admin, make_beneficiary):
        b = await make_beneficiary()
        with pytest.raises(ValidationError):
            await beneficiaries.update_beneficiary(admin, b.cnic, {"status": "approved"})
        stored = await Beneficiary.find_one(Beneficiary.cnic == b.cnic)
        assert stored.status == BeneficiaryStatus.PENDING

    async def test_edit_keeps_final_status(self, admin, make_beneficiary):
        b = await make_beneficiary(approved=True)
        updated = await beneficiaries.update_beneficiary(admin, b.cnic, {"address": "New address"})
        assert updated.status == BeneficiaryStatus.APPROVED
        assert updated.status_finalized is True

    async def test_staff_cannot_edit(self, staff, make_beneficiary):
        b = await make_beneficiary()
        with pytest.raises(PermissionDenied):
            await beneficiaries.update_beneficiary(staff, b.cnic, {"name": "Changed"})

    async def test_missing_beneficiary(self, admin):
        with pytest.raises(NotFound):
            await beneficiaries.update_beneficiary(admin, "1111111111111", {"name": "Nobody"})


class TestLookup:
    async def test_search_by_name_cnic_or_phone(self, admin, make_beneficiary):
        await make_beneficiary(name="Bashir Ahmed")
        await make_beneficiary(name="Zainab Noor", phone="03459998877")
        assert [b.name for b in await beneficiaries.list_beneficiaries(admin, "bashir")] == ["Bashir Ahmed"]
        assert [b.name for b in await beneficiaries.list_beneficiaries(admin, "0345999")] == ["Zainab Noor"]
        assert len(await beneficiaries.list_beneficiaries(admin)) == 2

    async def test_search_treats_input_literally(self, admin, make_beneficiary):
        await make_beneficiary()
        assert await beneficiaries.list_beneficiaries(admin, ".*") == []

    async def test_get_unknown(self, staff):
        with pytest.raises(NotFound):
            await beneficiaries.get_beneficiary(staff, "0000000000000")

    async def test_eligible_excludes_pending_and_scheduled(self, admin, make_beneficiary, make_schedule):
        await make_beneficiary()
        free = await make_beneficiary(approved=True)
        scheduled = await make_schedule()
        eligible = [b.cnic for b in await beneficiaries.eligible_for_scheduling(admin)]
        assert free.cnic in eligible
        assert scheduled.cnic not in eligible
        assert len(eligible) == 1
