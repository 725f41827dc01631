from fastapi import APIRouter

from food_portal.api.deps import CurrentSession
from food_portal.models.beneficiary import BeneficiaryOut
from food_portal.services import reports

router = APIRouter()


@router.get("/stats")
async def get_stats(session: CurrentSession):
    """Overview counters for the dashboard."""
    return await reports.dashboard_stats(session)


@router.get("/search", response_model=BeneficiaryOut)
async def search_beneficiary(cnic: str, session: CurrentSession):
    return BeneficiaryOut.from_document(await reports.search_by_cnic(session, cnic))
