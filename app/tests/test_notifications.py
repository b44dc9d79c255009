"""
Tests for billing variance alert content
"""
from datetime import date
from decimal import Decimal

from app.models.parent_company import ParentCompany
from app.services.notification_service import build_variance_alert, fallback_contact_email
from app.services.variance_service import group_by_period_and_company


def _report(month, company, billed, actual, review):
    return {
        "month": month,
        "parent_company": company,
        "total_billed_amount": Decimal(billed),
        "total_actual_amount": Decimal(actual),
        "total_variance": Decimal(actual) - Decimal(billed),
        "needs_review": review,
    }


def test_fallback_contact_email():
    assert fallback_contact_email("GHI Staffing") == "GHI-Staffing@example.com"


def test_alert_lists_only_companies_needing_review(db, finance_user):
    db.add(ParentCompany(name="ABC Staffing", contact_person="Jane Ong", contact_email="billing@abc.example.com"))
    db.commit()
    rows = group_by_period_and_company([
        _report("2026-02", "ABC Staffing", "10000", "10600", True),
        _report("2026-02", "DEF Staffing", "1000", "1010", False),
        _report("2026-01", "GHI Staffing", "1000", "900", True),
    ])

    alert = build_variance_alert(db, finance_user, rows, today=date(2026, 3, 5))

    assert alert["body"].startswith("Dear Billing Contact,")
    assert alert["subject"] == "[ACTION REQUIRED] Billing Variance Alert - 2026-03-05"
    assert alert["sender"] == "finance@example.com"
    assert alert["to"] == ["billing@abc.example.com", "GHI-Staffing@example.com"]
    companies = {c["company"]: c for c in alert["companies"]}
    assert set(companies) == {"ABC Staffing", "GHI Staffing"}
    assert companies["ABC Staffing"]["contact_person"] == "Jane Ong"
    assert companies["ABC Staffing"]["direction"] == "overbilled"
    assert companies["ABC Staffing"]["percent"] == Decimal("6.0")
    assert companies["GHI Staffing"]["direction"] == "underbilled"
    assert companies["GHI Staffing"]["period"] == "January 2026"
    assert "ABC Staffing (Jane Ong), February 2026: +$600 (6.0%) overbilled" in alert["body"]


def test_alert_without_flagged_rows(db, finance_user):
    alert = build_variance_alert(db, finance_user, [], today=date(2026, 3, 5))

    assert alert["to"] == []
    assert alert["companies"] == []
    assert "No billing variances" in alert["body"]


def test_alert_endpoint(client, finance_user, auth_headers):
    headers = auth_headers("finance@example.com", "finpass123")
    response = client.get("/api/v1/variance/alert", headers=headers)

    assert response.status_code == 200
    assert response.json()["companies"] == []
