"""Beneficiary households keyed by their 13-digit CNIC."""
from datetime import datetime
from enum import Enum
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field


class IncomeLevel(str, Enum):
    VERY_LOW = "Very Low"
    LOW = "Low"
    MIDDLE = "Middle"


class BeneficiaryStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


FINAL_STATUSES = {BeneficiaryStatus.APPROVED, BeneficiaryStatus.REJECTED}


class Beneficiary(Document):
    cnic: Indexed(str, unique=True)
    name: str
    phone: str
    address: str
    family_members: int
    income_level: IncomeLevel
    status: BeneficiaryStatus = BeneficiaryStatus.PENDING
    status_finalized: bool = False
    status_updated_at: Optional[datetime] = None
    status_updated_by: Optional[str] = None  # user id
    created_by: Optional[str] = None  # user id
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "beneficiaries"
        use_state_management = True

    @property
    def is_finalized(self) -> bool:
        return self.status_finalized or self.status in FINAL_STATUSES


class BeneficiaryCreate(BaseModel):
    cnic: str
    name: str
    phone: str
    address: str
    family_members: int
    income_level: str = IncomeLevel.VERY_LOW.value


class BeneficiaryUpdate(BaseModel):
    """Editable fields only; cnic and status are not updatable here."""
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    family_members: Optional[int] = None
    income_level: Optional[str] = None


class BeneficiaryOut(BaseModel):
    id: str
    cnic: str
    name: str
    phone: str
    address: str
    family_members: int
    income_level: IncomeLevel
    status: BeneficiaryStatus
    status_finalized: bool
    status_updated_at: Optional[datetime] = None
    created_at: datetime

    @classmethod
    def from_document(cls, b: Beneficiary) -> "BeneficiaryOut":
        return cls(
            id=str(b.id),
            cnic=b.cnic,
            name=b.name,
            phone=b.phone,
            address=b.address,
            family_members=b.family_members,
            income_level=b.income_level,
            status=b.status,
            status_finalized=b.status_finalized,
            status_updated_at=b.status_updated_at,
            created_at=b.created_at,
        )
