"""Sign-up, sign-in, sign-out and the current principal."""
from fastapi import APIRouter
from pydantic import BaseModel

from food_portal.api.deps import AnonymousSession, CurrentSession
from food_portal.models.account import LoginRequest, RefreshRequest, TokenResponse
from food_portal.models.user import SignUpRequest, UserOut
from food_portal.rbac import capabilities
from food_portal.services.users import register_push_token

router = APIRouter()


class FCMTokenRequest(BaseModel):
    token: str


@router.post("/signup", response_model=UserOut, status_code=201)
async def signup(data: SignUpRequest, session: AnonymousSession):
    """Self-service sign-up; new accounts are always staff."""
    user = await session.provision_account(data.email, data.password, data.name)
    return UserOut.from_document(user)


@router.post("/login", response_model=TokenResponse)
async def login(req: LoginRequest, session: AnonymousSession):
    await session.sign_in(req.email, req.password)
    return TokenResponse(
        access_token=session.credential.access_token,
        refresh_token=session.credential.refresh_token,
    )


@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(req: RefreshRequest, session: AnonymousSession):
    credential = await session.refresh(req.refresh_token)
    return TokenResponse(access_token=credential.access_token, refresh_token=credential.refresh_token)


@router.post("/logout")
async def logout(session: CurrentSession):
    await session.sign_out()
    return {"status": "ok"}


@router.get("/me")
async def me(session: CurrentSession):
    user = session.principal
    return {
        **UserOut.from_document(user).model_dump(mode="json"),
        "capabilities": capabilities(user),
    }


@router.post("/fcm-token")
async def register_fcm_token(req: FCMTokenRequest, session: CurrentSession):
    await register_push_token(session, req.token)
    return {"status": "ok"}
