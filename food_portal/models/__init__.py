"""Beanie document models and Pydantic schemas."""
from food_portal.models.user import (
    User,
    UserRole,
    UserStatus,
    UserCreate,
    UserOut,
    SignUpRequest,
    RoleUpdate,
    StatusUpdate,
    BeneficiaryPermissionUpdate,
)
from food_portal.models.account import AuthAccount, Credential, LoginRequest, RefreshRequest, TokenResponse
from food_portal.models.beneficiary import (
    Beneficiary,
    BeneficiaryCreate,
    BeneficiaryUpdate,
    BeneficiaryOut,
    BeneficiaryStatus,
    IncomeLevel,
    FINAL_STATUSES,
)
from food_portal.models.center import DistributionCenter, CenterCreate, CenterUpdate
from food_portal.models.schedule import FoodSchedule, ScheduleCreate, ScheduleOut

DOCUMENT_MODELS = [
    User,
    AuthAccount,
    Beneficiary,
    DistributionCenter,
    FoodSchedule,
]

__all__ = [
    "User",
    "UserRole",
    "UserStatus",
    "UserCreate",
    "UserOut",
    "SignUpRequest",
    "RoleUpdate",
    "StatusUpdate",
    "BeneficiaryPermissionUpdate",
    "AuthAccount",
    "Credential",
    "LoginRequest",
    "RefreshRequest",
    "TokenResponse",
    "Beneficiary",
    "BeneficiaryCreate",
    "BeneficiaryUpdate",
    "BeneficiaryOut",
    "BeneficiaryStatus",
    "IncomeLevel",
    "FINAL_STATUSES",
    "DistributionCenter",
    "CenterCreate",
    "CenterUpdate",
    "FoodSchedule",
    "ScheduleCreate",
    "ScheduleOut",
    "DOCUMENT_MODELS",
]
