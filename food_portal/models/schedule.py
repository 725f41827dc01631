"""Food pickup schedules identified by a short token such as SAY-1234."""
from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field


class FoodSchedule(Document):
    token: Indexed(str, unique=True)
    cnic: Indexed(str)
    pickup_date: Indexed(str)  # YYYY-MM-DD
    pickup_time: str  # HH:MM
    distribution_center: str  # center name, not an id
    distributed_status: bool = False
    distributed_at: Optional[datetime] = None
    distributed_by: Optional[str] = None  # user id
    distributed_by_name: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "food_schedules"
        use_state_management = True


class ScheduleCreate(BaseModel):
    cnic: str
    pickup_date: str
    pickup_time: str
    distribution_center: str


class ScheduleOut(BaseModel):
    id: str
    token: str
    cnic: str
    beneficiary_name: Optional[str] = None
    pickup_date: str
    pickup_time: str
    distribution_center: str
    distributed_status: bool
    distributed_at: Optional[datetime] = None
    distributed_by: Optional[str] = None
    distributed_by_name: Optional[str] = None

    @classmethod
    def from_document(cls, s: FoodSchedule, beneficiary_name: Optional[str] = None) -> "ScheduleOut":
        return cls(
            id=str(s.id),
            token=s.token,
            cnic=s.cnic,
            beneficiary_name=beneficiary_name,
            pickup_date=s.pickup_date,
            pickup_time=s.pickup_time,
            distribution_center=s.distribution_center,
            distributed_status=s.distributed_status,
            distributed_at=s.distributed_at,
            distributed_by=s.distributed_by,
            distributed_by_name=s.distributed_by_name,
        )
