"""
Tests for leave submission
"""
from datetime import date
from decimal import Decimal

import pytest
from fastapi import status

from app.core.errors import PermissionDeniedError, ValidationError
from app.models.leave import LeaveCategory, LeaveStatus
from app.services.leave_service import calculate_total_days, parse_leave_category, submit_leave


def test_total_days_is_inclusive():
    assert calculate_total_days(date(2026, 2, 3), date(2026, 2, 3)) == 1
    assert calculate_total_days(date(2026, 2, 3), date(2026, 2, 6)) == 4
    assert calculate_total_days(date(2026, 2, 27), date(2026, 3, 2)) == 4


def test_end_before_start_is_rejected():
    with pytest.raises(ValidationError) as exc:
        calculate_total_days(date(2026, 2, 6), date(2026, 2, 3))
    assert exc.value.field == "end_date"


def test_missing_date_is_rejected():
    with pytest.raises(ValidationError) as exc:
        calculate_total_days(None, date(2026, 2, 3))
    assert exc.value.field == "start_date"


@pytest.mark.parametrize("value", ["Annual Leave", "ANNUAL", LeaveCategory.ANNUAL])
def test_parse_leave_category_accepts_value_or_name(value):
    assert parse_leave_category(value) == LeaveCategory.ANNUAL


@pytest.mark.parametrize("value", ["Sabbatical", "", None])
def test_parse_leave_category_rejects_unknown(value):
    with pytest.raises(ValidationError) as exc:
        parse_leave_category(value)
    assert exc.value.field == "leave_category"


def test_chargeable_leave_is_costed_at_daily_rate(db, staff_user):
    record = submit_leave(db, staff_user, "Annual Leave", date(2026, 2, 3), date(2026, 2, 5), reason="Family trip")

    assert record.status == LeaveStatus.PENDING
    assert record.total_days == 3
    assert record.is_chargeable is True
    assert record.daily_rate_at_leave == Decimal("200.00")
    assert record.calculated_cost == Decimal("600.00")
    assert record.parent_company == "ABC Staffing"
    assert record.staff_name == "Alice Tan"


@pytest.mark.parametrize("category", ["Medical (MC)", "Medical (No MC)", "Unpaid Leave"])
def test_non_chargeable_leave_costs_nothing(db, staff_user, category):
    record = submit_leave(db, staff_user, category, date(2026, 2, 3), date(2026, 2, 5))

    assert record.is_chargeable is False
    assert record.calculated_cost == Decimal("0.00")


def test_compassionate_leave_is_chargeable(db, staff_user):
    record = submit_leave(db, staff_user, "Compassionate Leave", date(2026, 2, 3), date(2026, 2, 4))

    assert record.is_chargeable is True
    assert record.calculated_cost == Decimal("400.00")


def test_rate_is_snapshotted_at_submission(db, staff_user):
    record = submit_leave(db, staff_user, "Annual Leave", date(2026, 2, 3), date(2026, 2, 3))

    staff_user.daily_rate = Decimal("350.00")
    db.commit()
    db.refresh(record)

    assert record.daily_rate_at_leave == Decimal("200.00")
    assert record.calculated_cost == Decimal("200.00")


def test_staff_without_daily_rate_cannot_submit(db, staff_user):
    staff_user.daily_rate = None
    db.commit()

    with pytest.raises(ValidationError) as exc:
        submit_leave(db, staff_user, "Annual Leave", date(2026, 2, 3), date(2026, 2, 3))
    assert exc.value.field == "daily_rate"


def test_manager_cannot_submit_leave(db, manager_user):
    with pytest.raises(PermissionDeniedError):
        submit_leave(db, manager_user, "Annual Leave", date(2026, 2, 3), date(2026, 2, 3))


def test_apply_endpoint_creates_pending_record(client, staff_user, auth_headers):
    headers = auth_headers("alice@example.com", "staffpass123")
    response = client.post(
        "/api/v1/leaves/apply",
        json={
            "leave_category": "Annual Leave",
            "start_date": "2026-02-03",
            "end_date": "2026-02-06",
            "reason": "Holiday",
        },
        headers=headers,
    )

    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["status"] == "pending"
    assert data["total_days"] == 4
    assert Decimal(data["calculated_cost"]) == Decimal("800")
    assert data["created_at"].endswith("Z")


def test_apply_endpoint_reports_bad_range_as_400(client, staff_user, auth_headers):
    headers = auth_headers("alice@example.com", "staffpass123")
    response = client.post(
        "/api/v1/leaves/apply",
        json={"leave_category": "Annual Leave", "start_date": "2026-02-06", "end_date": "2026-02-03"},
        headers=headers,
    )

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["error_type"] == "ValidationError"
    assert body["context"]["field"] == "end_date"


def test_my_leaves_lists_only_own_records(client, db, staff_user, other_staff_user, make_leave, auth_headers):
    make_leave(staff_user, date(2026, 2, 3), date(2026, 2, 3), status=LeaveStatus.PENDING)
    make_leave(other_staff_user, date(2026, 2, 3), date(2026, 2, 3), status=LeaveStatus.PENDING)

    headers = auth_headers("alice@example.com", "staffpass123")
    response = client.get("/api/v1/leaves/my", headers=headers)

    assert response.status_code == status.HTTP_200_OK
    records = response.json()
    assert len(records) == 1
    assert records[0]["staff_email"] == "alice@example.com"
