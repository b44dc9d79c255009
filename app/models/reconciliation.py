"""
Reconciliation models
"""
from sqlalchemy import (
    Column,
    Integer,
    Date,
    ForeignKey,
    String,
    Numeric,
    Enum as SQLEnum,
    Boolean,
    Index,
)
from sqlalchemy.orm import relationship
from app.db.base import Base
from app.db.types import UTCDateTime
from app.models.leave import LeaveCategory
from app.utils.datetime_utils import now_utc


class ReconciliationReport(Base):
    """One generation of the monthly billing reconciliation for a parent company"""
    __tablename__ = "reconciliation_reports"

    id = Column(Integer, primary_key=True, index=True)
    month = Column(String(7), nullable=False)  # YYYY-MM
    parent_company = Column(String, nullable=False)
    generated_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    generated_by_email = Column(String, nullable=True)
    generated_at = Column(UTCDateTime, default=now_utc, nullable=False)
    total_staff = Column(Integer, nullable=False)
    total_leaves = Column(Integer, nullable=False)
    total_chargeable_days = Column(Integer, nullable=False)
    total_billed_amount = Column(Numeric(14, 2), nullable=False)
    total_actual_amount = Column(Numeric(14, 2), nullable=False)
    total_variance = Column(Numeric(14, 2), nullable=False)
    variance_percentage = Column(Numeric(14, 2), nullable=True)  # NULL when nothing was billed
    has_discrepancies = Column(Boolean, nullable=False, default=False)
    needs_review = Column(Boolean, nullable=False, default=False)
    status = Column(String, nullable=False, default="generated")
    actual_amount_source = Column(String, nullable=False)

    line_items = relationship(
        "ReconciliationLineItem",
        back_populates="report",
        order_by="ReconciliationLineItem.position",
    )

    __table_args__ = (
        Index("ix_reconciliation_reports_key", "month", "parent_company"),
    )


class ReconciliationLineItem(Base):
    """A qualifying leave record as reconciled inside one report"""
    __tablename__ = "reconciliation_line_items"

    id = Column(Integer, primary_key=True, index=True)
    report_id = Column(Integer, ForeignKey("reconciliation_reports.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    leave_record_id = Column(Integer, ForeignKey("leave_records.id"), nullable=False, index=True)
    staff_id = Column(Integer, nullable=False)
    staff_name = Column(String, nullable=False)
    staff_email = Column(String, nullable=False)
    leave_category = Column(SQLEnum(LeaveCategory), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    daily_rate_at_leave = Column(Numeric(12, 2), nullable=False)
    calculated_cost = Column(Numeric(12, 2), nullable=False)
    actual_amount = Column(Numeric(12, 2), nullable=False)
    variance = Column(Numeric(12, 2), nullable=False)
    variance_percent = Column(Numeric(14, 1), nullable=True)

    report = relationship("ReconciliationReport", back_populates="line_items")


class ParentCompanyCharge(Base):
    """Amount a parent company reported for one leave record"""
    __tablename__ = "parent_company_charges"

    id = Column(Integer, primary_key=True, index=True)
    leave_record_id = Column(Integer, ForeignKey("leave_records.id"), nullable=False, unique=True)
    parent_company = Column(String, nullable=False, index=True)
    actual_amount = Column(Numeric(12, 2), nullable=False)
    invoice_reference = Column(String, nullable=True)
    reported_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    reported_at = Column(UTCDateTime, default=now_utc, nullable=False)

    leave_record = relationship("LeaveRecord")
