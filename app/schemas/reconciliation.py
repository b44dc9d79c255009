"""
Reconciliation schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from app.models.leave import LeaveCategory
from app.utils.datetime_utils import iso_8601_utc


class ReportGenerateRequest(BaseModel):
    """Schema for generating a reconciliation report"""
    parent_company: str = Field(..., description="Parent company name")
    month: str = Field(..., description="Month in YYYY-MM format")
    source: Optional[str] = Field(None, description="Actual amount source (billed or reported); defaults to configuration")


class LineItemOut(BaseModel):
    leave_record_id: int
    staff_id: int
    staff_name: str
    staff_email: str
    leave_category: LeaveCategory
    start_date: date
    end_date: date
    total_days: int
    daily_rate_at_leave: Decimal
    calculated_cost: Decimal
    actual_amount: Decimal
    variance: Decimal
    variance_percent: Optional[Decimal] = None

    model_config = ConfigDict(from_attributes=True)


class ReportTotals(BaseModel):
    total_staff: int
    total_leaves: int
    total_chargeable_days: int
    total_billed_amount: Decimal
    total_actual_amount: Decimal
    total_variance: Decimal
    variance_percentage: Optional[Decimal] = None
    has_discrepancies: bool
    needs_review: bool


class ReportOut(ReportTotals):
    """Persisted report header"""
    id: int
    month: str
    parent_company: str
    generated_by_email: Optional[str] = None
    generated_at: datetime
    status: str
    actual_amount_source: str

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("generated_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_8601_utc(dt)


class ReportDetailOut(ReportOut):
    line_items: List[LineItemOut]


class ReconciliationPreviewOut(ReportTotals):
    """Reconciliation computed without persisting"""
    parent_company: str
    month: str
    actual_amount_source: str
    line_items: List[LineItemOut]


class ChargeCreateRequest(BaseModel):
    """Amount a parent company invoiced for one leave record"""
    leave_record_id: int
    actual_amount: Decimal = Field(..., description="Invoiced amount")
    invoice_reference: Optional[str] = None


class ChargeOut(BaseModel):
    id: int
    leave_record_id: int
    parent_company: str
    actual_amount: Decimal
    invoice_reference: Optional[str] = None
    reported_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("reported_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_8601_utc(dt)
