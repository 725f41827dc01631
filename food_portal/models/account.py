"""Identity accounts: credential storage behind the identity provider."""
from datetime import datetime

from beanie import Document, Indexed
from pydantic import BaseModel, EmailStr, Field


class AuthAccount(Document):
    email: Indexed(EmailStr, unique=True)
    hashed_password: str
    disabled: bool = False
    # Bumped on invalidate; tokens minted under an older epoch stop verifying
    session_epoch: int = 0
    created_at: datetime = Field(default_factory=datetime.utcnow)
    last_sign_in_at: datetime | None = None

    class Settings:
        name = "auth_accounts"
        use_state_management = True


class Credential(BaseModel):
    """A signed-in identity: what the provider hands back after auth."""

    uid: str
    email: str
    access_token: str
    refresh_token: str
    epoch: int = 0


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
