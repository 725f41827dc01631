"""Beneficiary registration, edits and approval decisions."""
from fastapi import APIRouter, Query

from food_portal.api.deps import CurrentSession
from food_portal.models.beneficiary import BeneficiaryCreate, BeneficiaryOut, BeneficiaryUpdate
from food_portal.services import beneficiaries as beneficiary_service
from food_portal.services import workflow

router = APIRouter()


@router.get("/", response_model=list[BeneficiaryOut])
async def list_beneficiaries(
    session: CurrentSession,
    q: str | None = Query(None, description="Search by name, CNIC or phone"),
):
    found = await beneficiary_service.list_beneficiaries(session, search=q)
    return [BeneficiaryOut.from_document(b) for b in found]


@router.get("/eligible", response_model=list[BeneficiaryOut])
async def list_eligible(session: CurrentSession):
    """Approved beneficiaries without a pickup schedule."""
    found = await beneficiary_service.eligible_for_scheduling(session)
    return [BeneficiaryOut.from_document(b) for b in found]


@router.post("/", response_model=BeneficiaryOut, status_code=201)
async def create_beneficiary(data: BeneficiaryCreate, session: CurrentSession):
    b = await beneficiary_service.create_beneficiary(session, data)
    return BeneficiaryOut.from_document(b)


@router.get("/{cnic}", response_model=BeneficiaryOut)
async def get_beneficiary(cnic: str, session: CurrentSession):
    return BeneficiaryOut.from_document(await beneficiary_service.get_beneficiary(session, cnic))


@router.patch("/{cnic}", response_model=BeneficiaryOut)
async def update_beneficiary(cnic: str, data: BeneficiaryUpdate, session: CurrentSession):
    b = await beneficiary_service.update_beneficiary(session, cnic, data)
    return BeneficiaryOut.from_document(b)


@router.post("/{cnic}/approve", response_model=BeneficiaryOut)
async def approve_beneficiary(cnic: str, session: CurrentSession):
    return BeneficiaryOut.from_document(await workflow.approve(session, cnic))


@router.post("/{cnic}/reject", response_model=BeneficiaryOut)
async def reject_beneficiary(cnic: str, session: CurrentSession):
    return BeneficiaryOut.from_document(await workflow.reject(session, cnic))
