"""
Variance dashboard schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, field_serializer
from app.services.variance_service import VarianceClass
from app.utils.datetime_utils import iso_8601_utc


class VarianceRowOut(BaseModel):
    """One (month, parent company) row"""
    unique_key: str
    period: str
    parent_company: str
    total_billed: Decimal
    total_actual: Decimal
    total_variance: Decimal
    variance_percentage: Optional[Decimal] = None
    variance_class: VarianceClass
    needs_review: bool
    generated_at: Optional[datetime] = None
    report_count: int

    @field_serializer("generated_at")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_8601_utc(dt)


class VarianceSummaryOut(BaseModel):
    total_variance: Decimal
    total_billed: Decimal
    total_actual: Decimal
    periods_needing_review: int
    unique_companies: int
    unique_months: int


class AlertCompanyOut(BaseModel):
    company: str
    email: str
    contact_person: str
    period: str
    variance: Decimal
    percent: Optional[Decimal] = None
    amount: Decimal
    direction: str
    variance_class: VarianceClass


class VarianceAlertOut(BaseModel):
    """Alert content; delivery happens elsewhere"""
    sender: str
    to: List[str]
    cc: Optional[str] = None
    subject: str
    companies: List[AlertCompanyOut]
    body: str
