"""
Billing variance alert content

Builds the message finance sends to parent companies whose billing needs
review. Delivery is not handled here.
"""
import logging
import re
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.permissions import Capability, ensure_capability
from app.models.parent_company import ParentCompany
from app.models.user import User
from app.services.variance_service import classify_variance, needs_review, percent_of
from app.utils.datetime_utils import format_month_label

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


def fallback_contact_email(company: str) -> str:
    slug = re.sub(r"\s+", "-", company.strip())
    return f"{slug}@{settings.NOTIFICATION_FALLBACK_DOMAIN}"


def _contacts(db: Session, companies: List[str]) -> Dict[str, ParentCompany]:
    if not companies:
        return {}
    found = db.query(ParentCompany).filter(ParentCompany.name.in_(companies)).all()
    return {c.name: c for c in found if c.active}


def build_variance_alert(
    db: Session,
    actor: User,
    rows: List[Dict],
    sender: Optional[str] = None,
    today: Optional[date] = None,
) -> Dict:
    """
    Alert content for every grouped variance row that needs review

    Args:
        db: Database session (parent company contacts)
        actor: Finance officer preparing the alert
        rows: Rows from group_by_period_and_company
        sender: From address; defaults to the actor's email
        today: Date used in the subject line
    """
    ensure_capability(actor, Capability.VIEW_VARIANCE)
    today = today or date.today()

    flagged = [row for row in rows if needs_review(row["total_variance"], row["variance_percentage"])]
    contacts = _contacts(db, sorted({row["parent_company"] for row in flagged}))

    companies = []
    for row in flagged:
        company = row["parent_company"]
        contact = contacts.get(company)
        variance = row["total_variance"]
        companies.append({
            "company": company,
            "email": (contact.contact_email if contact and contact.contact_email else fallback_contact_email(company)),
            "contact_person": (contact.contact_person if contact and contact.contact_person else "Billing Contact"),
            "period": format_month_label(row["period"]),
            "variance": variance,
            "percent": percent_of(variance, row["total_billed"], ONE_DECIMAL),
            "amount": abs(variance),
            "direction": "overbilled" if variance >= 0 else "underbilled",
            "variance_class": classify_variance(variance),
        })

    recipients = list(dict.fromkeys(c["email"] for c in companies))
    alert = {
        "sender": sender or actor.email,
        "to": recipients,
        "cc": settings.FINANCE_NOTIFICATION_CC,
        "subject": f"[ACTION REQUIRED] Billing Variance Alert - {today.isoformat()}",
        "companies": companies,
        "body": render_alert_body(companies),
    }
    logger.info("variance alert prepared: companies=%s sender=%s", len(companies), alert["sender"])
    return alert


def render_alert_body(companies: List[Dict]) -> str:
    lines = ["Dear Billing Contact,", ""]
    if not companies:
        lines.append("No billing variances exceed the review thresholds for the selected periods.")
    else:
        lines.append(
            "The following companies have billing variances exceeding our threshold of $500 or 5%:"
        )
        lines.append("")
        for c in companies:
            sign = "+" if c["variance"] >= 0 else "-"
            percent = f"{c['percent']}%" if c["percent"] is not None else "n/a"
            lines.append(
                f"- {c['company']} ({c['contact_person']}), {c['period']}: "
                f"{sign}${c['amount']:,} ({percent}) {c['direction']}"
            )
        lines.append("")
        lines.append("Please review the attached reconciliation and confirm or correct the invoiced amounts.")
    lines.append("")
    lines.append("Regards,")
    lines.append("Finance")
    return "\n".join(lines)
