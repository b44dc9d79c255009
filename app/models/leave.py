"""
Leave models
"""
from sqlalchemy import (
    Column,
    Integer,
    Date,
    ForeignKey,
    String,
    Text,
    Numeric,
    Enum as SQLEnum,
    Boolean,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
import enum
from app.db.base import Base
from app.db.types import UTCDateTime
from app.utils.datetime_utils import now_utc


class LeaveCategory(str, enum.Enum):
    ANNUAL = "Annual Leave"
    MEDICAL_MC = "Medical (MC)"
    MEDICAL_NO_MC = "Medical (No MC)"
    UNPAID = "Unpaid Leave"
    COMPASSIONATE = "Compassionate Leave"


# Categories billed to the parent company
CHARGEABLE_CATEGORIES = frozenset({LeaveCategory.ANNUAL, LeaveCategory.COMPASSIONATE})


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED_MANAGER = "approved_manager"
    APPROVED_PARENT = "approved_parent"
    REJECTED = "rejected"


class LeaveDecision(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


# Statuses that count as approved for billing
APPROVED_STATUSES = (LeaveStatus.APPROVED_MANAGER, LeaveStatus.APPROVED_PARENT)

# Statuses that carry a manager decision
DECIDED_STATUSES = (LeaveStatus.APPROVED_MANAGER, LeaveStatus.APPROVED_PARENT, LeaveStatus.REJECTED)


class LeaveRecord(Base):
    __tablename__ = "leave_records"

    id = Column(Integer, primary_key=True, index=True)
    staff_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    staff_email = Column(String, nullable=False)
    staff_name = Column(String, nullable=False)
    parent_company = Column(String, nullable=False, index=True)
    leave_category = Column(SQLEnum(LeaveCategory), nullable=False)
    is_chargeable = Column(Boolean, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    total_days = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    parent_company_ref_id = Column(String, nullable=True)
    daily_rate_at_leave = Column(Numeric(12, 2), nullable=False)  # snapshot at submission
    calculated_cost = Column(Numeric(12, 2), nullable=False)
    status = Column(SQLEnum(LeaveStatus), nullable=False, default=LeaveStatus.PENDING)
    rejection_reason = Column(Text, nullable=True)
    decided_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    decided_by_email = Column(String, nullable=True)
    manager_approved_at = Column(UTCDateTime, nullable=True)
    rejected_at = Column(UTCDateTime, nullable=True)
    parent_acknowledged_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, default=now_utc, nullable=False)
    updated_at = Column(UTCDateTime, default=now_utc, nullable=False)

    staff = relationship("User", foreign_keys=[staff_id], back_populates="leave_records")
    decided_by = relationship("User", foreign_keys=[decided_by_id])

    __table_args__ = (
        Index("ix_leave_records_reconciliation", "parent_company", "status", "start_date"),
        CheckConstraint("start_date <= end_date", name="check_start_date_le_end_date"),
        CheckConstraint("total_days >= 1", name="check_total_days_positive"),
    )

    @property
    def decided_at(self):
        """When the manager decision was recorded"""
        if self.status == LeaveStatus.REJECTED:
            return self.rejected_at or self.updated_at
        return self.manager_approved_at or self.updated_at
