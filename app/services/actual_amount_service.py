"""
Actual-amount providers for reconciliation

A provider answers one question: what did the parent company actually invoice
for this leave record? The aggregation contract downstream does not depend on
which provider is used.
"""
import logging
from decimal import Decimal
from typing import Dict, Optional, Union

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ActualAmountUnavailableError, NotFoundError, ValidationError
from app.core.permissions import Capability, ensure_capability
from app.db.persistence import commit_or_raise
from app.models.leave import LeaveRecord
from app.models.reconciliation import ParentCompanyCharge
from app.models.user import User
from app.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

MONEY = Decimal("0.01")


class ActualAmountProvider:
    """Resolves the parent-company reported amount for a leave record"""

    name = "base"

    def actual_amount(self, db: Session, leave_record: LeaveRecord) -> Decimal:
        raise NotImplementedError


class BilledAmountProvider(ActualAmountProvider):
    """
    Placeholder used until a parent-company feed exists: the actual amount is
    the billed amount, so every line reconciles exactly.
    """

    name = "billed"

    def actual_amount(self, db: Session, leave_record: LeaveRecord) -> Decimal:
        return Decimal(leave_record.calculated_cost).quantize(MONEY)


class ReportedChargeProvider(ActualAmountProvider):
    """Reads amounts recorded in parent_company_charges"""

    name = "reported"

    def actual_amount(self, db: Session, leave_record: LeaveRecord) -> Decimal:
        charge = (
            db.query(ParentCompanyCharge)
            .filter(ParentCompanyCharge.leave_record_id == leave_record.id)
            .first()
        )
        if charge is None:
            raise ActualAmountUnavailableError(leave_record.id, self.name)
        return Decimal(charge.actual_amount).quantize(MONEY)


class MappingProvider(ActualAmountProvider):
    """Amounts supplied up front, keyed by leave record id (imports, tests)"""

    name = "mapping"

    def __init__(self, amounts: Dict[int, Union[Decimal, int, float, str]]):
        self.amounts = {int(k): Decimal(str(v)).quantize(MONEY) for k, v in amounts.items()}

    def actual_amount(self, db: Session, leave_record: LeaveRecord) -> Decimal:
        try:
            return self.amounts[leave_record.id]
        except KeyError:
            raise ActualAmountUnavailableError(leave_record.id, self.name)


PROVIDERS = {
    BilledAmountProvider.name: BilledAmountProvider,
    ReportedChargeProvider.name: ReportedChargeProvider,
}


def get_actual_amount_provider(name: Optional[str] = None) -> ActualAmountProvider:
    """
    Resolve a provider by name; defaults to settings.ACTUAL_AMOUNT_SOURCE

    Raises:
        ValidationError: If the name is unknown
    """
    source = (name or settings.ACTUAL_AMOUNT_SOURCE).lower()
    try:
        return PROVIDERS[source]()
    except KeyError:
        raise ValidationError(
            f"Unknown actual amount source {source!r}; expected one of {sorted(PROVIDERS)}",
            field="source",
        )


def record_parent_charge(
    db: Session,
    leave_record_id: int,
    actual_amount: Union[Decimal, int, float, str],
    actor: User,
    invoice_reference: Optional[str] = None,
) -> ParentCompanyCharge:
    """
    Record (or replace) the amount a parent company invoiced for a leave record

    Raises:
        PermissionDeniedError: If the actor may not record charges
        NotFoundError: If the leave record does not exist
        ValidationError: If the record is not chargeable or the amount is negative
    """
    ensure_capability(actor, Capability.RECORD_CHARGES)

    leave_record = db.query(LeaveRecord).filter(LeaveRecord.id == leave_record_id).first()
    if leave_record is None:
        raise NotFoundError(f"Leave record with id {leave_record_id} not found", record_id=leave_record_id)
    if not leave_record.is_chargeable:
        raise ValidationError(
            "Charges can only be recorded for chargeable leave",
            field="leave_record_id",
            record_id=leave_record_id,
        )

    amount = Decimal(str(actual_amount)).quantize(MONEY)
    if amount < 0:
        raise ValidationError("actual_amount cannot be negative", field="actual_amount")

    charge = (
        db.query(ParentCompanyCharge)
        .filter(ParentCompanyCharge.leave_record_id == leave_record_id)
        .first()
    )
    if charge is None:
        charge = ParentCompanyCharge(leave_record_id=leave_record_id)
        db.add(charge)
    charge.parent_company = leave_record.parent_company
    charge.actual_amount = amount
    charge.invoice_reference = invoice_reference
    charge.reported_by_id = actor.id
    charge.reported_at = now_utc()

    commit_or_raise(db, "record parent company charge", record_id=leave_record_id)
    db.refresh(charge)

    logger.info(
        "parent charge recorded: leave_record_id=%s company=%s amount=%s invoice=%s",
        leave_record_id, charge.parent_company, amount, invoice_reference,
    )
    return charge
