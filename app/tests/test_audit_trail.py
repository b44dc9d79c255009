"""
Tests for the compiled audit trail and its export
"""
import csv
import io
from datetime import date, datetime, timezone

import pytest
from fastapi import status

from app.core.errors import PermissionDeniedError, ValidationError
from app.models.audit_export import AuditExport
from app.models.leave import LeaveStatus
from app.services.audit_service import (
    AUDIT_CSV_HEADERS,
    audit_csv_rows,
    compile_audit_events,
    compile_audit_trail,
    filter_audit_events,
    record_export,
    summarize_audit_events,
)
from app.services.leave_service import approve_leave, submit_leave
from app.services.reconciliation_service import generate_report


@pytest.fixture
def activity(db, staff_user, manager_user, finance_user):
    """Two submissions, one approval and one report"""
    approved = submit_leave(db, staff_user, "Annual Leave", date(2026, 2, 3), date(2026, 2, 5))
    submit_leave(db, staff_user, "Medical (MC)", date(2026, 2, 10), date(2026, 2, 10))
    approve_leave(db, approved.id, manager_user)
    generate_report(db, "ABC Staffing", "2026-02", finance_user)
    return approved


def test_trail_is_compiled_from_every_source(db, finance_user, activity):
    events = compile_audit_trail(db, finance_user)

    assert len(events) == 4
    assert sorted(e["action"] for e in events) == [
        "applied_leave", "applied_leave", "approved_leave", "generated_report",
    ]
    descriptions = {e["description"] for e in events}
    assert "Applied 3 days Annual Leave" in descriptions
    assert "Approved leave for Alice Tan" in descriptions
    assert "Generated reconciliation report for ABC Staffing - 2026-02" in descriptions


def test_export_appears_in_next_compilation(db, finance_user, activity):
    events = compile_audit_trail(db, finance_user)
    record_export(db, finance_user, {"search_term": None}, len(events), "audit-trail-2026-03-01.csv")

    events = compile_audit_trail(db, finance_user)

    assert len(events) == 5
    exports = [e for e in events if e["action"] == "exported_audit"]
    assert len(exports) == 1
    assert exports[0]["description"] == "Exported audit trail (4 records)"
    assert exports[0]["user"] == "finance@example.com"
    assert exports[0]["user_role"] == "finance_officer"

    stored = db.query(AuditExport).one()
    assert stored.filters == {"search_term": "none", "action_type": "all", "user_role": "all"}


def test_events_are_ordered_newest_first():
    events = compile_audit_events({
        "applications": [{
            "id": 1, "created_at": "2026-02-01T09:00:00Z", "staff_email": "a@example.com",
            "leave_category": "Annual Leave", "total_days": 2,
        }],
        "decisions": [{
            "id": 1, "status": "rejected", "rejected_at": datetime(2026, 2, 2, 9, tzinfo=timezone.utc),
            "staff_name": "A", "rejection_reason": "Cover",
        }],
        "reports": [{"id": 7, "generated_at": datetime(2026, 3, 1, 9), "parent_company": "ABC Staffing", "month": "2026-02"}],
        "exports": [{"id": 3, "exported_at": None, "exported_by": "f@example.com", "record_count": 3}],
    })

    assert [e["id"] for e in events] == ["report-7", "leave-1-decision", "leave-1", "export-3"]
    assert events[1]["action"] == "rejected_leave"
    assert events[1]["details"]["comments"] == "Cover"
    assert events[0]["timestamp"].tzinfo is not None


def _event(action, role, description, user="someone@example.com", company=None, staff_name=None):
    return {
        "action": action,
        "user_role": role,
        "description": description,
        "user": user,
        "details": {"company": company, "staff_name": staff_name},
    }


EVENTS = [
    _event("applied_leave", "contract_staff", "Applied 2 days Annual Leave", company="ABC Staffing"),
    _event("approved_leave", "manager", "Approved leave for Alice Tan", staff_name="Alice Tan", company="ABC Staffing"),
    _event("generated_report", "finance_officer", "Generated reconciliation report for DEF Staffing - 2026-02",
           company="DEF Staffing"),
]


def test_filter_all_dimensions_disabled():
    assert filter_audit_events(EVENTS) == EVENTS
    assert filter_audit_events(EVENTS, "", "all", "all") == EVENTS


def test_filter_search_is_case_insensitive_across_fields():
    assert len(filter_audit_events(EVENTS, "abc staffing")) == 2
    assert len(filter_audit_events(EVENTS, "ALICE")) == 1


def test_filters_combine_with_and():
    result = filter_audit_events(EVENTS, "staffing", action="approved_leave", role="manager")
    assert result == [EVENTS[1]]
    assert filter_audit_events(EVENTS, "staffing", action="approved_leave", role="finance_officer") == []


def test_unknown_filter_values_are_rejected():
    with pytest.raises(ValidationError):
        filter_audit_events(EVENTS, action="deleted_everything")
    with pytest.raises(ValidationError):
        filter_audit_events(EVENTS, role="auditor")


def test_summary_counts_each_action():
    counts = summarize_audit_events(EVENTS)
    assert counts["applied_leave"] == 1
    assert counts["exported_audit"] == 0


def test_csv_rows_flatten_details():
    rows = audit_csv_rows([{
        "timestamp": datetime(2026, 2, 1, 9, tzinfo=timezone.utc),
        "user": "a@example.com",
        "user_role": "contract_staff",
        "action": "applied_leave",
        "description": "Applied 1 days Annual Leave",
        "details": {"company": "ABC Staffing", "days": 1},
    }])

    assert rows[0]["Timestamp"] == "2026-02-01T09:00:00Z"
    assert rows[0]["Role"] == "contract staff"
    assert rows[0]["Details"] == "company: ABC Staffing; days: 1"


def test_staff_cannot_view_audit_trail(db, staff_user):
    with pytest.raises(PermissionDeniedError):
        compile_audit_trail(db, staff_user)


def test_manager_views_but_cannot_export(db, manager_user):
    assert compile_audit_trail(db, manager_user) == []
    with pytest.raises(PermissionDeniedError):
        record_export(db, manager_user, {}, 0, "audit.csv")


def test_export_endpoint_quotes_all_fields_and_records_export(client, db, finance_user, activity, auth_headers):
    headers = auth_headers("finance@example.com", "finpass123")

    response = client.get("/api/v1/audit/export.csv", params={"action": "applied_leave"}, headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.text.startswith('"Timestamp","User","Role","Action","Description","Details"')
    rows = list(csv.DictReader(io.StringIO(response.text)))
    assert list(rows[0].keys()) == AUDIT_CSV_HEADERS
    assert len(rows) == 2

    export = db.query(AuditExport).one()
    assert export.record_count == 2
    assert export.filters["action_type"] == "applied_leave"

    trail = client.get("/api/v1/audit/events", headers=headers)
    assert trail.status_code == status.HTTP_200_OK
    assert trail.json()["total"] == 5
    assert trail.json()["counts"]["exported_audit"] == 1
