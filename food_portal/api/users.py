"""User management: provisioning, roles, activation and deletion."""
from fastapi import APIRouter

from food_portal.api.deps import CurrentSession
from food_portal.models.user import BeneficiaryPermissionUpdate, RoleUpdate, StatusUpdate, UserCreate, UserOut
from food_portal.services import users as user_service

router = APIRouter()


@router.get("/", response_model=list[UserOut])
async def list_users(session: CurrentSession):
    users = await user_service.list_users(session)
    return [UserOut.from_document(u) for u in users]


@router.post("/", response_model=UserOut, status_code=201)
async def create_user(data: UserCreate, session: CurrentSession):
    """Create an account of any role without switching the caller's session."""
    user = await session.provision_account(data.email, data.password, data.name, data.role)
    return UserOut.from_document(user)


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, session: CurrentSession):
    return UserOut.from_document(await user_service.get_user(session, user_id))


@router.patch("/{user_id}/role", response_model=UserOut)
async def change_role(user_id: str, data: RoleUpdate, session: CurrentSession):
    return UserOut.from_document(await user_service.change_role(session, user_id, data.role))


@router.patch("/{user_id}/status", response_model=UserOut)
async def set_status(user_id: str, data: StatusUpdate, session: CurrentSession):
    return UserOut.from_document(await user_service.set_status(session, user_id, data.status))


@router.patch("/{user_id}/beneficiary-permission", response_model=UserOut)
async def set_beneficiary_permission(user_id: str, data: BeneficiaryPermissionUpdate, session: CurrentSession):
    user = await user_service.set_can_create_beneficiaries(session, user_id, data.can_create_beneficiaries)
    return UserOut.from_document(user)


@router.delete("/{user_id}", status_code=204)
async def delete_user(user_id: str, session: CurrentSession):
    await user_service.delete_user(session, user_id)
