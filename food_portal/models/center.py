"""Distribution centers where packages are picked up."""
from datetime import datetime
from typing import Optional

from beanie import Document, Indexed
from pydantic import BaseModel, Field


class DistributionCenter(Document):
    name: Indexed(str)
    address: str = ""
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "distribution_centers"
        use_state_management = True


class CenterCreate(BaseModel):
    name: str
    address: Optional[str] = None


class CenterUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    is_active: Optional[bool] = None
