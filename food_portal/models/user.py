"""Principals: staff, admins and the super admin."""
from datetime import datetime
from enum import Enum

from beanie import Document, Indexed
from pydantic import BaseModel, EmailStr, Field


class UserRole(str, Enum):
    STAFF = "staff"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(Document):
    """Principal record; ``uid`` links it to the identity account."""

    uid: Indexed(str, unique=True)
    email: Indexed(EmailStr, unique=True)
    name: str
    role: UserRole = UserRole.STAFF
    status: UserStatus = UserStatus.ACTIVE

    # Staff-only switch; admins can always register beneficiaries
    can_create_beneficiaries: bool = True

    # FCM tokens for notifications
    fcm_tokens: list[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "users"
        use_state_management = True

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str
    name: str


class UserCreate(BaseModel):
    email: EmailStr
    password: str
    name: str
    role: UserRole = UserRole.STAFF


class RoleUpdate(BaseModel):
    role: UserRole


class StatusUpdate(BaseModel):
    status: UserStatus


class BeneficiaryPermissionUpdate(BaseModel):
    can_create_beneficiaries: bool


class UserOut(BaseModel):
    id: str
    uid: str
    email: str
    name: str
    role: UserRole
    status: UserStatus
    can_create_beneficiaries: bool
    created_at: datetime

    @classmethod
    def from_document(cls, user: User) -> "UserOut":
        return cls(
            id=str(user.id),
            uid=user.uid,
            email=user.email,
            name=user.name,
            role=user.role,
            status=user.status,
            can_create_beneficiaries=user.can_create_beneficiaries,
            created_at=user.created_at,
        )
