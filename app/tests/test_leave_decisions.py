"""
Tests for manager decisions and parent acknowledgement
"""
from datetime import date

import pytest
from fastapi import status

from app.core.errors import InvalidTransitionError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.leave import LeaveStatus
from app.services.leave_service import (
    TERMINAL_LEAVE_STATUSES,
    acknowledge_leave,
    approval_overview,
    approve_leave,
    decide_leave,
    reject_leave,
)

NON_PENDING = [LeaveStatus.APPROVED_MANAGER, LeaveStatus.APPROVED_PARENT, LeaveStatus.REJECTED]


@pytest.fixture
def pending_leave(staff_user, make_leave):
    return make_leave(staff_user, date(2026, 2, 3), date(2026, 2, 4), status=LeaveStatus.PENDING)


def test_approve_moves_pending_to_approved_manager(db, manager_user, pending_leave):
    record = approve_leave(db, pending_leave.id, manager_user)

    assert record.status == LeaveStatus.APPROVED_MANAGER
    assert record.decided_by_email == "manager@example.com"
    assert record.manager_approved_at is not None
    assert record.rejection_reason is None


def test_reject_stores_reason_verbatim(db, manager_user, pending_leave):
    reason = "  Peak period, please pick another week.  "
    record = reject_leave(db, pending_leave.id, manager_user, reason)

    assert record.status == LeaveStatus.REJECTED
    assert record.rejection_reason == reason
    assert record.rejected_at is not None


@pytest.mark.parametrize("reason", [None, "", "   "])
def test_reject_without_reason_leaves_record_pending(db, manager_user, pending_leave, reason):
    with pytest.raises(ValidationError) as exc:
        reject_leave(db, pending_leave.id, manager_user, reason)
    assert exc.value.field == "reason"

    db.refresh(pending_leave)
    assert pending_leave.status == LeaveStatus.PENDING


@pytest.mark.parametrize("current", NON_PENDING)
@pytest.mark.parametrize("decision", ["approve", "reject"])
def test_decisions_on_non_pending_records_are_invalid(db, staff_user, manager_user, make_leave, current, decision):
    record = make_leave(staff_user, date(2026, 2, 3), date(2026, 2, 4), status=current)

    with pytest.raises(InvalidTransitionError) as exc:
        decide_leave(db, record.id, decision, manager_user, reason="Another reason")
    assert exc.value.context["current_status"] == current.value

    db.refresh(record)
    assert record.status == current


def test_transition_is_checked_before_reason(db, staff_user, manager_user, make_leave):
    record = make_leave(staff_user, date(2026, 2, 3), date(2026, 2, 4), status=LeaveStatus.REJECTED)

    with pytest.raises(InvalidTransitionError):
        reject_leave(db, record.id, manager_user, None)


def test_unknown_decision_is_rejected(db, manager_user, pending_leave):
    with pytest.raises(ValidationError) as exc:
        decide_leave(db, pending_leave.id, "escalate", manager_user)
    assert exc.value.field == "decision"


def test_missing_record_is_not_found(db, manager_user):
    with pytest.raises(NotFoundError):
        approve_leave(db, 9999, manager_user)


@pytest.mark.parametrize("actor_fixture", ["staff_user", "finance_user"])
def test_only_managers_decide(request, db, pending_leave, actor_fixture):
    actor = request.getfixturevalue(actor_fixture)
    with pytest.raises(PermissionDeniedError):
        approve_leave(db, pending_leave.id, actor)


def test_inactive_manager_cannot_decide(db, manager_user, pending_leave):
    manager_user.active = False
    db.commit()

    with pytest.raises(PermissionDeniedError):
        approve_leave(db, pending_leave.id, manager_user)


def test_acknowledge_moves_approved_manager_to_approved_parent(db, staff_user, finance_user, make_leave):
    record = make_leave(staff_user, date(2026, 2, 3), date(2026, 2, 4), status=LeaveStatus.APPROVED_MANAGER)

    record = acknowledge_leave(db, record.id, finance_user)

    assert record.status == LeaveStatus.APPROVED_PARENT
    assert record.parent_acknowledged_at is not None


@pytest.mark.parametrize("current", [LeaveStatus.PENDING, LeaveStatus.APPROVED_PARENT, LeaveStatus.REJECTED])
def test_acknowledge_requires_approved_manager(db, staff_user, finance_user, make_leave, current):
    record = make_leave(staff_user, date(2026, 2, 3), date(2026, 2, 4), status=current)

    with pytest.raises(InvalidTransitionError):
        acknowledge_leave(db, record.id, finance_user)


def test_overview_counts_and_filters(db, staff_user, other_staff_user, manager_user, make_leave):
    make_leave(staff_user, date(2026, 2, 3), date(2026, 2, 3), status=LeaveStatus.PENDING)
    make_leave(other_staff_user, date(2026, 2, 4), date(2026, 2, 4), category="Medical (MC)", status=LeaveStatus.PENDING)
    make_leave(staff_user, date(2026, 2, 5), date(2026, 2, 5), status=LeaveStatus.APPROVED_MANAGER)
    make_leave(staff_user, date(2026, 2, 6), date(2026, 2, 6), status=LeaveStatus.APPROVED_PARENT)
    make_leave(other_staff_user, date(2026, 2, 9), date(2026, 2, 9), status=LeaveStatus.REJECTED)

    overview = approval_overview(db, manager_user, search_name="bob")

    assert overview["counts"] == {"pending": 2, "approved": 2, "awaiting_parent": 1}
    assert [r.staff_name for r in overview["pending"]] == ["Bob Lim"]
    assert [r.status for r in overview["processed"]] == [LeaveStatus.REJECTED]

    by_category = approval_overview(db, manager_user, leave_category="Medical (MC)")
    assert len(by_category["pending"]) == 1
    assert by_category["processed"] == []


def test_approve_endpoint(client, manager_user, pending_leave, auth_headers):
    headers = auth_headers("manager@example.com", "mgrpass123")
    response = client.post(f"/api/v1/leaves/{pending_leave.id}/approve", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "approved_manager"

    again = client.post(f"/api/v1/leaves/{pending_leave.id}/approve", headers=headers)
    assert again.status_code == status.HTTP_409_CONFLICT
    assert again.json()["error_type"] == "InvalidTransitionError"


def test_reject_endpoint_requires_reason(client, manager_user, pending_leave, auth_headers):
    headers = auth_headers("manager@example.com", "mgrpass123")

    response = client.post(f"/api/v1/leaves/{pending_leave.id}/reject", json={}, headers=headers)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = client.post(
        f"/api/v1/leaves/{pending_leave.id}/reject", json={"reason": "Short staffed"}, headers=headers
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["rejection_reason"] == "Short staffed"


def test_staff_cannot_approve_via_api(client, staff_user, pending_leave, auth_headers):
    headers = auth_headers("alice@example.com", "staffpass123")
    response = client.post(f"/api/v1/leaves/{pending_leave.id}/approve", headers=headers)

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["error_type"] == "PermissionDeniedError"


def test_pending_endpoint_lists_oldest_first(client, staff_user, manager_user, make_leave, auth_headers):
    first = make_leave(staff_user, date(2026, 2, 3), date(2026, 2, 3), status=LeaveStatus.PENDING)
    second = make_leave(staff_user, date(2026, 2, 4), date(2026, 2, 4), status=LeaveStatus.PENDING)
    make_leave(staff_user, date(2026, 2, 5), date(2026, 2, 5), status=LeaveStatus.APPROVED_MANAGER)

    headers = auth_headers("manager@example.com", "mgrpass123")
    response = client.get("/api/v1/leaves/pending", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    assert [r["id"] for r in response.json()] == [first.id, second.id]


def test_terminal_statuses_allow_no_transitions():
    assert TERMINAL_LEAVE_STATUSES == {LeaveStatus.APPROVED_PARENT, LeaveStatus.REJECTED}
