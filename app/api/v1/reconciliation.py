"""
Reconciliation endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_capability
from app.core.permissions import Capability
from app.models.user import User
from app.schemas.reconciliation import (
    ChargeCreateRequest,
    ChargeOut,
    ReconciliationPreviewOut,
    ReportDetailOut,
    ReportGenerateRequest,
    ReportOut,
)
from app.services.actual_amount_service import get_actual_amount_provider, record_parent_charge
from app.services.reconciliation_service import (
    LINE_ITEM_CSV_HEADERS,
    generate_report,
    get_report,
    line_item_csv_rows,
    list_reports,
    preview_reconciliation,
)
from app.utils.csv_export import stream_csv

router = APIRouter()


@router.get("/preview", response_model=ReconciliationPreviewOut)
async def preview(
    parent_company: str = Query(..., description="Parent company name"),
    month: str = Query(..., description="Month (YYYY-MM)"),
    source: Optional[str] = Query(None, description="Actual amount source (billed or reported)"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_REPORTS)),
):
    """Reconcile a company's month without saving a report"""
    provider = get_actual_amount_provider(source) if source else None
    return preview_reconciliation(db, parent_company, month, current_user, provider=provider)


@router.post("/reports", response_model=ReportDetailOut, status_code=status.HTTP_201_CREATED)
async def create_report(
    request: ReportGenerateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.GENERATE_REPORT)),
):
    """
    Generate and save the reconciliation report for a parent company and month

    Every call creates a new report; earlier generations for the same key are kept.
    """
    provider = get_actual_amount_provider(request.source) if request.source else None
    report = generate_report(db, request.parent_company, request.month, current_user, provider=provider)
    return get_report(db, report.id, current_user)


@router.get("/reports", response_model=List[ReportOut])
async def reports(
    parent_company: Optional[str] = Query(None, description="Filter by parent company"),
    month: Optional[str] = Query(None, description="Filter by month (YYYY-MM)"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum number of reports"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_REPORTS)),
):
    """Saved reports, newest first"""
    return list_reports(db, current_user, parent_company=parent_company, month=month, limit=limit)


@router.get("/reports/{report_id}", response_model=ReportDetailOut)
async def report_detail(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_REPORTS)),
):
    """A saved report with its line items"""
    return get_report(db, report_id, current_user)


@router.get("/reports/{report_id}/line_items.csv")
async def report_line_items_csv(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_REPORTS)),
):
    """Export a report's line items as CSV"""
    report = get_report(db, report_id, current_user)
    filename = f"reconciliation_{report.parent_company.replace(' ', '_')}_{report.month}.csv"
    return stream_csv(LINE_ITEM_CSV_HEADERS, line_item_csv_rows(report.line_items), filename=filename)


@router.post("/charges", response_model=ChargeOut, status_code=status.HTTP_201_CREATED)
async def record_charge(
    request: ChargeCreateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.RECORD_CHARGES)),
):
    """Record (or replace) the amount a parent company invoiced for a leave record"""
    return record_parent_charge(
        db,
        leave_record_id=request.leave_record_id,
        actual_amount=request.actual_amount,
        actor=current_user,
        invoice_reference=request.invoice_reference,
    )
