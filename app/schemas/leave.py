"""
Leave schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from app.models.leave import LeaveCategory, LeaveStatus
from app.utils.datetime_utils import iso_8601_utc


class LeaveApplyRequest(BaseModel):
    """Schema for submitting leave"""
    # Validated by the service so an unknown category is a 400 like other rule failures
    leave_category: str = Field(..., description="Annual Leave, Medical (MC), Medical (No MC), Unpaid Leave or Compassionate Leave")
    start_date: date = Field(..., description="First day of leave")
    end_date: date = Field(..., description="Last day of leave (inclusive)")
    reason: Optional[str] = Field(None, description="Reason for leave")
    parent_company_ref_id: Optional[str] = Field(None, description="Reference id issued by the parent company")


class RejectActionRequest(BaseModel):
    """Schema for leave rejection"""
    reason: Optional[str] = Field(None, description="Reason for rejection (required, non-empty)")


class LeaveOut(BaseModel):
    """Schema for leave record output"""
    id: int
    staff_id: int
    staff_email: str
    staff_name: str
    parent_company: str
    leave_category: LeaveCategory
    is_chargeable: bool
    start_date: date
    end_date: date
    total_days: int
    reason: Optional[str] = None
    parent_company_ref_id: Optional[str] = None
    daily_rate_at_leave: Decimal
    calculated_cost: Decimal
    status: LeaveStatus
    rejection_reason: Optional[str] = None
    decided_by_email: Optional[str] = None
    manager_approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    parent_acknowledged_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer(
        "manager_approved_at", "rejected_at", "parent_acknowledged_at", "created_at", "updated_at",
        when_used="always",
    )
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_8601_utc(dt)


class LeaveCounts(BaseModel):
    pending: int
    approved: int
    awaiting_parent: int


class LeaveOverviewOut(BaseModel):
    """Approval dashboard"""
    counts: LeaveCounts
    pending: List[LeaveOut]
    processed: List[LeaveOut]
