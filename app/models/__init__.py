"""
Database models
"""
from app.models.user import User, Role
from app.models.leave import (
    LeaveRecord,
    LeaveCategory,
    LeaveStatus,
    LeaveDecision,
    CHARGEABLE_CATEGORIES,
    APPROVED_STATUSES,
    DECIDED_STATUSES,
)
from app.models.reconciliation import (
    ReconciliationReport,
    ReconciliationLineItem,
    ParentCompanyCharge,
)
from app.models.parent_company import ParentCompany
from app.models.audit_export import AuditExport

__all__ = [
    "User",
    "Role",
    "LeaveRecord",
    "LeaveCategory",
    "LeaveStatus",
    "LeaveDecision",
    "CHARGEABLE_CATEGORIES",
    "APPROVED_STATUSES",
    "DECIDED_STATUSES",
    "ReconciliationReport",
    "ReconciliationLineItem",
    "ParentCompanyCharge",
    "ParentCompany",
    "AuditExport",
]
