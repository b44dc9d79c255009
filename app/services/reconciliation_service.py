"""
Reconciliation service - monthly billed vs. actual leave cost per parent company
"""
import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import NoQualifyingRecordsError, NotFoundError, PartialWriteError, ValidationError
from app.core.permissions import Capability, ensure_capability
from app.db.persistence import commit_or_raise
from app.models.leave import APPROVED_STATUSES, LeaveRecord
from app.models.reconciliation import ReconciliationLineItem, ReconciliationReport
from app.models.user import User
from app.services.actual_amount_service import ActualAmountProvider, get_actual_amount_provider
from app.services.variance_service import has_discrepancies, needs_review, percent_of
from app.utils.datetime_utils import month_bounds, now_utc

logger = logging.getLogger(__name__)

MONEY = Decimal("0.01")
LINE_PERCENT = Decimal("0.1")
REPORT_PERCENT = Decimal("0.01")

LINE_ITEM_CSV_HEADERS = [
    "staff_name",
    "leave_category",
    "start_date",
    "end_date",
    "total_days",
    "daily_rate_at_leave",
    "calculated_cost",
    "actual_amount",
    "variance",
    "variance_percent",
]


def parse_month(month: Optional[str]):
    """First and last day of a YYYY-MM month, or ValidationError"""
    try:
        return month_bounds(month)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid month {month!r}; expected YYYY-MM", field="month")


def query_qualifying_records(db: Session, parent_company: str, month: str) -> List[LeaveRecord]:
    """
    Approved chargeable leave of ``parent_company`` starting within ``month``,
    ordered by start date
    """
    month_start, month_end = parse_month(month)
    return (
        db.query(LeaveRecord)
        .filter(
            LeaveRecord.parent_company == parent_company,
            LeaveRecord.status.in_(APPROVED_STATUSES),
            LeaveRecord.is_chargeable.is_(True),
            LeaveRecord.start_date >= month_start,
            LeaveRecord.start_date <= month_end,
        )
        .order_by(LeaveRecord.start_date.asc(), LeaveRecord.id.asc())
        .all()
    )


def build_line_item(leave_record: LeaveRecord, actual_amount: Decimal) -> Dict:
    """Reconcile one record against the amount the parent company reported"""
    cost = Decimal(leave_record.calculated_cost).quantize(MONEY)
    actual = Decimal(actual_amount).quantize(MONEY)
    variance = actual - cost
    return {
        "leave_record_id": leave_record.id,
        "staff_id": leave_record.staff_id,
        "staff_name": leave_record.staff_name,
        "staff_email": leave_record.staff_email,
        "leave_category": leave_record.leave_category,
        "start_date": leave_record.start_date,
        "end_date": leave_record.end_date,
        "total_days": leave_record.total_days,
        "daily_rate_at_leave": Decimal(leave_record.daily_rate_at_leave).quantize(MONEY),
        "calculated_cost": cost,
        "actual_amount": actual,
        "variance": variance,
        "variance_percent": percent_of(variance, cost, LINE_PERCENT),
    }


def summarize_line_items(line_items: List[Dict]) -> Dict:
    """
    Report totals for a list of line items

    total_variance is actual - billed, which equals the sum of line variances.
    """
    billed = sum((item["calculated_cost"] for item in line_items), Decimal("0.00"))
    actual = sum((item["actual_amount"] for item in line_items), Decimal("0.00"))
    variance = actual - billed
    percentage = percent_of(variance, billed, REPORT_PERCENT)
    return {
        "total_staff": len({item["staff_id"] for item in line_items}),
        "total_leaves": len(line_items),
        "total_chargeable_days": sum(item["total_days"] for item in line_items),
        "total_billed_amount": billed,
        "total_actual_amount": actual,
        "total_variance": variance,
        "variance_percentage": percentage,
        "has_discrepancies": has_discrepancies(variance),
        "needs_review": needs_review(variance, percentage),
    }


def _reconcile(
    db: Session,
    parent_company: str,
    month: str,
    provider: Optional[ActualAmountProvider],
):
    if not parent_company or not parent_company.strip():
        raise ValidationError("parent_company is required", field="parent_company")
    provider = provider or get_actual_amount_provider()

    records = query_qualifying_records(db, parent_company, month)
    if not records:
        raise NoQualifyingRecordsError(parent_company, month)

    line_items = [build_line_item(r, provider.actual_amount(db, r)) for r in records]
    return provider, line_items, summarize_line_items(line_items)


def preview_reconciliation(
    db: Session,
    parent_company: str,
    month: str,
    actor: User,
    provider: Optional[ActualAmountProvider] = None,
) -> Dict:
    """Reconcile without persisting anything"""
    ensure_capability(actor, Capability.VIEW_REPORTS)
    provider, line_items, totals = _reconcile(db, parent_company, month, provider)
    return {
        "parent_company": parent_company,
        "month": month,
        "actual_amount_source": provider.name,
        "line_items": line_items,
        **totals,
    }


def generate_report(
    db: Session,
    parent_company: str,
    month: str,
    actor: User,
    provider: Optional[ActualAmountProvider] = None,
) -> ReconciliationReport:
    """
    Generate and persist the reconciliation report for (parent_company, month)

    The header is committed first, then each line item. Reports are never
    deduplicated by key; the newest generation is the canonical one.

    Raises:
        PermissionDeniedError: If the actor may not generate reports
        ValidationError: If the month or company is malformed
        NoQualifyingRecordsError: If nothing qualifies; nothing is persisted
        ActualAmountUnavailableError: If an actual amount cannot be resolved; nothing is persisted
        PersistenceError: If the header could not be written
        PartialWriteError: If the header was written but not every line item
    """
    ensure_capability(actor, Capability.GENERATE_REPORT)
    provider, line_items, totals = _reconcile(db, parent_company, month, provider)

    report = ReconciliationReport(
        month=month,
        parent_company=parent_company,
        generated_by_id=actor.id,
        generated_by_email=actor.email,
        generated_at=now_utc(),
        status="generated",
        actual_amount_source=provider.name,
        **totals,
    )
    db.add(report)
    commit_or_raise(db, "create reconciliation report", parent_company=parent_company, month=month)
    report_id = report.id

    written = 0
    for position, item in enumerate(line_items, start=1):
        try:
            db.add(ReconciliationLineItem(report_id=report_id, position=position, **item))
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "partial reconciliation write: report_id=%s written=%s expected=%s error=%s",
                report_id, written, len(line_items), exc,
            )
            raise PartialWriteError(report_id, written, len(line_items), cause=str(exc)) from exc
        written += 1

    db.refresh(report)
    logger.info(
        "reconciliation report generated: report_id=%s company=%s month=%s leaves=%s billed=%s "
        "actual=%s variance=%s needs_review=%s source=%s",
        report.id, parent_company, month, totals["total_leaves"], totals["total_billed_amount"],
        totals["total_actual_amount"], totals["total_variance"], totals["needs_review"], provider.name,
    )
    return report


def list_reports(
    db: Session,
    actor: User,
    parent_company: Optional[str] = None,
    month: Optional[str] = None,
    limit: Optional[int] = None,
) -> List[ReconciliationReport]:
    """Reports newest first, optionally narrowed to a company and/or month"""
    ensure_capability(actor, Capability.VIEW_REPORTS)
    query = db.query(ReconciliationReport)
    if parent_company:
        query = query.filter(ReconciliationReport.parent_company == parent_company)
    if month:
        parse_month(month)
        query = query.filter(ReconciliationReport.month == month)
    query = query.order_by(ReconciliationReport.generated_at.desc(), ReconciliationReport.id.desc())
    if limit:
        query = query.limit(limit)
    return query.all()


def get_report(db: Session, report_id: int, actor: User) -> ReconciliationReport:
    ensure_capability(actor, Capability.VIEW_REPORTS)
    report = (
        db.query(ReconciliationReport)
        .options(selectinload(ReconciliationReport.line_items))
        .filter(ReconciliationReport.id == report_id)
        .first()
    )
    if report is None:
        raise NotFoundError(f"Reconciliation report with id {report_id} not found", report_id=report_id)
    return report


def line_item_csv_rows(line_items) -> List[Dict]:
    """CSV rows for persisted line items or preview dictionaries"""
    rows = []
    for item in line_items:
        get = item.get if isinstance(item, dict) else lambda key: getattr(item, key)
        category = get("leave_category")
        rows.append({
            "staff_name": get("staff_name"),
            "leave_category": getattr(category, "value", category),
            "start_date": get("start_date"),
            "end_date": get("end_date"),
            "total_days": get("total_days"),
            "daily_rate_at_leave": get("daily_rate_at_leave"),
            "calculated_cost": get("calculated_cost"),
            "actual_amount": get("actual_amount"),
            "variance": get("variance"),
            "variance_percent": get("variance_percent"),
        })
    return rows
