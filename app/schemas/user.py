"""
User schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, ConfigDict, field_serializer
from app.utils.datetime_utils import iso_8601_utc


class UserOut(BaseModel):
    """The authenticated user's profile"""
    id: int
    email: str
    name: str
    role: str
    parent_company: Optional[str] = None
    daily_rate: Optional[Decimal] = None
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("created_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_8601_utc(dt)
