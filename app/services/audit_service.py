"""
Audit trail service

The trail is compiled on demand from four independent sources: leave
submissions, manager decisions, generated reconciliation reports and earlier
exports of the trail itself. Exporting writes a new export record, so the
next compile shows the export.
"""
import csv
import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.errors import ValidationError
from app.core.permissions import Capability, ensure_capability
from app.db.persistence import commit_or_raise
from app.models.audit_export import AuditExport
from app.models.leave import DECIDED_STATUSES, LeaveRecord, LeaveStatus
from app.models.reconciliation import ReconciliationReport
from app.models.user import Role, User
from app.utils.datetime_utils import UTC, coerce_timestamp, iso_8601_utc, now_utc
from app.utils.enums import enum_to_str
from app.utils.json_serializer import sanitize_for_json

logger = logging.getLogger(__name__)

ACTION_APPLIED = "applied_leave"
ACTION_APPROVED = "approved_leave"
ACTION_REJECTED = "rejected_leave"
ACTION_REPORT = "generated_report"
ACTION_EXPORT = "exported_audit"

AUDIT_ACTIONS = (ACTION_APPLIED, ACTION_APPROVED, ACTION_REJECTED, ACTION_REPORT, ACTION_EXPORT)
AUDIT_ROLES = tuple(role.value for role in Role)

# Filter value that disables a dimension
ALL = "all"

AUDIT_CSV_HEADERS = ["Timestamp", "User", "Role", "Action", "Description", "Details"]
AUDIT_CSV_QUOTING = csv.QUOTE_ALL

_OLDEST = datetime.min.replace(tzinfo=UTC)


def _field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, dict):
        return source.get(name, default)
    return getattr(source, name, default)


def load_audit_sources(db: Session) -> Dict[str, List[Any]]:
    """Read the four raw sources the trail is built from"""
    return {
        "applications": db.query(LeaveRecord).order_by(LeaveRecord.id).all(),
        "decisions": (
            db.query(LeaveRecord)
            .filter(LeaveRecord.status.in_(DECIDED_STATUSES))
            .order_by(LeaveRecord.id)
            .all()
        ),
        "reports": db.query(ReconciliationReport).order_by(ReconciliationReport.id).all(),
        "exports": db.query(AuditExport).order_by(AuditExport.id).all(),
    }


def application_event(record: Any) -> Dict:
    category = enum_to_str(_field(record, "leave_category"))
    days = _field(record, "total_days")
    return {
        "id": f"leave-{_field(record, 'id')}",
        "timestamp": coerce_timestamp(_field(record, "created_at")),
        "user": _field(record, "staff_email") or _field(record, "staff_name"),
        "user_role": Role.CONTRACT_STAFF.value,
        "action": ACTION_APPLIED,
        "icon": "📝",
        "color": "#007bff",
        "description": f"Applied {days} days {category}",
        "details": {
            "company": _field(record, "parent_company"),
            "start_date": _field(record, "start_date"),
            "end_date": _field(record, "end_date"),
            "days": days,
            "is_chargeable": _field(record, "is_chargeable"),
        },
    }


def decision_event(record: Any) -> Dict:
    rejected = enum_to_str(_field(record, "status")) == LeaveStatus.REJECTED.value
    if rejected:
        decided_at = _field(record, "rejected_at") or _field(record, "updated_at")
    else:
        decided_at = _field(record, "manager_approved_at") or _field(record, "updated_at")
    staff_name = _field(record, "staff_name")
    return {
        "id": f"leave-{_field(record, 'id')}-decision",
        "timestamp": coerce_timestamp(decided_at),
        "user": _field(record, "decided_by_email") or "unknown manager",
        "user_role": Role.MANAGER.value,
        "action": ACTION_REJECTED if rejected else ACTION_APPROVED,
        "icon": "❌" if rejected else "✅",
        "color": "#dc3545" if rejected else "#28a745",
        "description": f"{'Rejected' if rejected else 'Approved'} leave for {staff_name}",
        "details": {
            "staff_name": staff_name,
            "company": _field(record, "parent_company"),
            "days": _field(record, "total_days"),
            "leave_category": enum_to_str(_field(record, "leave_category")),
            "comments": _field(record, "rejection_reason") or _field(record, "reason") or "No comments",
        },
    }


def report_event(report: Any) -> Dict:
    company = _field(report, "parent_company")
    month = _field(report, "month")
    return {
        "id": f"report-{_field(report, 'id')}",
        "timestamp": coerce_timestamp(_field(report, "generated_at")),
        "user": _field(report, "generated_by_email") or "unknown finance officer",
        "user_role": Role.FINANCE_OFFICER.value,
        "action": ACTION_REPORT,
        "icon": "🟢",
        "color": "#17a2b8",
        "description": f"Generated reconciliation report for {company} - {month}",
        "details": {
            "company": company,
            "period": month,
            "total_variance": _field(report, "total_variance"),
            "variance_percent": _field(report, "variance_percentage"),
            "total_leaves": _field(report, "total_leaves"),
            "needs_review": _field(report, "needs_review"),
        },
    }


def export_event(export: Any) -> Dict:
    count = _field(export, "record_count")
    return {
        "id": f"export-{_field(export, 'id')}",
        "timestamp": coerce_timestamp(_field(export, "exported_at")),
        "user": _field(export, "exported_by"),
        "user_role": _field(export, "exported_by_role") or Role.FINANCE_OFFICER.value,
        "action": ACTION_EXPORT,
        "icon": "📊",
        "color": "#6c757d",
        "description": f"Exported audit trail ({count} records)",
        "details": {
            "record_count": count,
            "filename": _field(export, "filename"),
            "filters": _field(export, "filters"),
        },
    }


def compile_audit_events(sources: Dict[str, Iterable[Any]]) -> List[Dict]:
    """
    Map every source record to an audit event and order newest first

    Events without a usable timestamp sort last.
    """
    events = (
        [application_event(r) for r in sources.get("applications", ())]
        + [decision_event(r) for r in sources.get("decisions", ())]
        + [report_event(r) for r in sources.get("reports", ())]
        + [export_event(r) for r in sources.get("exports", ())]
    )
    events.sort(key=lambda e: e["timestamp"] or _OLDEST, reverse=True)
    return events


def compile_audit_trail(db: Session, actor: User) -> List[Dict]:
    ensure_capability(actor, Capability.VIEW_AUDIT_TRAIL)
    return compile_audit_events(load_audit_sources(db))


def _is_all(value: Optional[str]) -> bool:
    return value is None or value.strip() == "" or value == ALL


def filter_audit_events(
    events: List[Dict],
    search_term: Optional[str] = None,
    action: Optional[str] = ALL,
    role: Optional[str] = ALL,
) -> List[Dict]:
    """
    Narrow events by free text, action kind and role (all AND-combined)

    The search is a case-insensitive substring match on description, user,
    company and staff name. ``all`` or an empty value disables a dimension.
    """
    if not _is_all(action) and action not in AUDIT_ACTIONS:
        raise ValidationError(f"Unknown audit action {action!r}", field="action")
    if not _is_all(role) and role not in AUDIT_ROLES:
        raise ValidationError(f"Unknown audit role {role!r}", field="role")

    term = (search_term or "").strip().lower()
    filtered = []
    for event in events:
        if term:
            details = event.get("details") or {}
            haystack = (
                event.get("description"),
                event.get("user"),
                details.get("company"),
                details.get("staff_name"),
            )
            if not any(term in str(value).lower() for value in haystack if value):
                continue
        if not _is_all(action) and event["action"] != action:
            continue
        if not _is_all(role) and event["user_role"] != role:
            continue
        filtered.append(event)
    return filtered


def summarize_audit_events(events: List[Dict]) -> Dict[str, int]:
    """Event count per action kind"""
    counts = {action: 0 for action in AUDIT_ACTIONS}
    for event in events:
        counts[event["action"]] = counts.get(event["action"], 0) + 1
    return counts


def export_filename(today=None) -> str:
    today = today or now_utc().date()
    return f"audit-trail-{today.isoformat()}.csv"


def record_export(
    db: Session,
    actor: User,
    filters: Dict[str, Any],
    result_count: int,
    filename: str,
) -> AuditExport:
    """
    Persist an export of the audit trail

    Args:
        db: Database session
        actor: User who exported
        filters: The filters the exported view was built with
        result_count: Number of events exported
        filename: Name of the produced file

    Returns:
        Created AuditExport instance
    """
    ensure_capability(actor, Capability.EXPORT_AUDIT_TRAIL)

    audit_export = AuditExport(
        exported_at=now_utc(),
        exported_by=actor.email,
        exported_by_role=enum_to_str(actor.role),
        record_count=result_count,
        filename=filename,
        filters=sanitize_for_json({
            "search_term": filters.get("search_term") or "none",
            "action_type": filters.get("action") or ALL,
            "user_role": filters.get("role") or ALL,
        }),
    )
    db.add(audit_export)
    commit_or_raise(db, "record audit export", filename=filename)
    db.refresh(audit_export)

    logger.info(
        "audit trail exported: export_id=%s by=%s records=%s filename=%s",
        audit_export.id, actor.email, result_count, filename,
    )
    return audit_export


def audit_csv_rows(events: List[Dict]) -> List[Dict]:
    rows = []
    for event in events:
        details = sanitize_for_json(event.get("details") or {})
        rows.append({
            "Timestamp": iso_8601_utc(event["timestamp"]) or "N/A",
            "User": event.get("user") or "",
            "Role": (event.get("user_role") or "").replace("_", " "),
            "Action": event["action"].replace("_", " "),
            "Description": event.get("description") or "",
            "Details": "; ".join(f"{key}: {value}" for key, value in details.items()),
        })
    return rows
