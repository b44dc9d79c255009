"""
Variance service - classification and per-(month, company) grouping of reconciliation reports

Two threshold policies coexist on purpose:

* classify_variance looks at the absolute amount only (exact / minor / critical)
* needs_review is |variance| > 500 OR |percentage| > 5

A $600 variance on a huge bill is critical; a $50 variance at 8% is minor yet
needs review.
"""
import enum
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.constants import DISCREPANCY_THRESHOLD, REVIEW_PERCENT_THRESHOLD, REVIEW_VARIANCE_THRESHOLD
from app.core.permissions import Capability, ensure_capability
from app.models.reconciliation import ReconciliationReport
from app.models.user import User
from app.utils.datetime_utils import format_month_label

logger = logging.getLogger(__name__)

REPORT_PERCENT = Decimal("0.01")

VARIANCE_CSV_HEADERS = ["Month", "Parent Company", "Billed Amount", "Actual Amount", "Variance", "Variance %", "Status"]


class VarianceClass(str, enum.Enum):
    EXACT = "exact"
    MINOR = "minor"
    CRITICAL = "critical"

    @property
    def color(self) -> str:
        return VARIANCE_COLORS[self]

    @property
    def icon(self) -> str:
        return VARIANCE_ICONS[self]


VARIANCE_COLORS = {
    VarianceClass.EXACT: "#28a745",
    VarianceClass.MINOR: "#ffc107",
    VarianceClass.CRITICAL: "#dc3545",
}

VARIANCE_ICONS = {
    VarianceClass.EXACT: "✅",
    VarianceClass.MINOR: "⚡",
    VarianceClass.CRITICAL: "⚠️",
}


def _decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def percent_of(variance: Any, base: Any, places: Decimal = REPORT_PERCENT) -> Optional[Decimal]:
    """variance / base * 100 rounded half-up to ``places``; None when base is zero"""
    base = _decimal(base)
    if not base:
        return None
    return (_decimal(variance) / base * 100).quantize(places, rounding=ROUND_HALF_UP)


def classify_variance(variance: Any) -> VarianceClass:
    """Exact at zero, critical above the absolute threshold (strict), minor otherwise"""
    amount = _decimal(variance)
    if amount == 0:
        return VarianceClass.EXACT
    if abs(amount) > REVIEW_VARIANCE_THRESHOLD:
        return VarianceClass.CRITICAL
    return VarianceClass.MINOR


def needs_review(variance: Any, percentage: Any) -> bool:
    """Absolute or relative threshold exceeded (both strict); a missing percentage never exceeds"""
    if abs(_decimal(variance)) > REVIEW_VARIANCE_THRESHOLD:
        return True
    return percentage is not None and abs(_decimal(percentage)) > REVIEW_PERCENT_THRESHOLD


def has_discrepancies(variance: Any) -> bool:
    return abs(_decimal(variance)) > DISCREPANCY_THRESHOLD


def _field(report: Any, name: str, default: Any = None) -> Any:
    if isinstance(report, dict):
        return report.get(name, default)
    return getattr(report, name, default)


def group_by_period_and_company(reports: Iterable[Any]) -> List[Dict]:
    """
    Fold reports into one row per (month, parent company)

    Normally each key has one report; when several share a key their money
    totals are summed and needs_review is OR-combined. Rows are ordered by
    month (newest first) and then company name.

    Args:
        reports: ReconciliationReport instances or dictionaries with the same fields
    """
    groups: Dict[str, Dict] = {}
    for report in reports:
        month = _field(report, "month")
        company = _field(report, "parent_company")
        key = f"{month}_{company}"
        generated_at = _field(report, "generated_at")
        row = groups.get(key)
        if row is None:
            groups[key] = {
                "unique_key": key,
                "period": month,
                "parent_company": company,
                "total_billed": _decimal(_field(report, "total_billed_amount")),
                "total_actual": _decimal(_field(report, "total_actual_amount")),
                "total_variance": _decimal(_field(report, "total_variance")),
                "needs_review": bool(_field(report, "needs_review", False)),
                "generated_at": generated_at,
                "report_count": 1,
            }
            continue

        row["total_billed"] += _decimal(_field(report, "total_billed_amount"))
        row["total_actual"] += _decimal(_field(report, "total_actual_amount"))
        row["total_variance"] += _decimal(_field(report, "total_variance"))
        row["needs_review"] = row["needs_review"] or bool(_field(report, "needs_review", False))
        if generated_at is not None and (row["generated_at"] is None or generated_at > row["generated_at"]):
            row["generated_at"] = generated_at
        row["report_count"] += 1
        logger.warning("multiple reconciliation reports share key %s (count=%s)", key, row["report_count"])

    rows = list(groups.values())
    for row in rows:
        row["variance_percentage"] = percent_of(row["total_variance"], row["total_billed"])
        row["variance_class"] = classify_variance(row["total_variance"])

    # company ascending, then a stable sort on month descending
    rows.sort(key=lambda r: r["parent_company"] or "")
    rows.sort(key=lambda r: r["period"] or "", reverse=True)
    return rows


def summarize_variance(rows: List[Dict]) -> Dict:
    """Dashboard totals over grouped rows"""
    return {
        "total_variance": sum((row["total_variance"] for row in rows), Decimal("0")),
        "total_billed": sum((row["total_billed"] for row in rows), Decimal("0")),
        "total_actual": sum((row["total_actual"] for row in rows), Decimal("0")),
        "periods_needing_review": sum(1 for row in rows if row["needs_review"]),
        "unique_companies": len({row["parent_company"] for row in rows}),
        "unique_months": len({row["period"] for row in rows}),
    }


def load_variance_rows(db: Session, actor: User, limit: Optional[int] = None) -> List[Dict]:
    """Group the most recently generated reports (settings.VARIANCE_REPORT_LIMIT by default)"""
    ensure_capability(actor, Capability.VIEW_VARIANCE)
    limit = settings.VARIANCE_REPORT_LIMIT if limit is None else limit
    query = db.query(ReconciliationReport).order_by(
        ReconciliationReport.generated_at.desc(), ReconciliationReport.id.desc()
    )
    if limit:
        query = query.limit(limit)
    return group_by_period_and_company(query.all())


def variance_csv_rows(rows: List[Dict]) -> List[Dict]:
    """Dashboard export rows; status follows needs_review recomputed from the row totals"""
    out = []
    for row in rows:
        percentage = row["variance_percentage"]
        flagged = needs_review(row["total_variance"], percentage)
        out.append({
            "Month": format_month_label(row["period"]),
            "Parent Company": row["parent_company"],
            "Billed Amount": row["total_billed"],
            "Actual Amount": row["total_actual"],
            "Variance": row["total_variance"],
            "Variance %": f"{percentage}%" if percentage is not None else "",
            "Status": "Needs Review" if flagged else "OK",
        })
    return out
