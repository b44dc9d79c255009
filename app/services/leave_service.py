"""
Leave service - leave request lifecycle

pending ──approve──▶ approved_manager ──acknowledge──▶ approved_parent
   └────reject────▶ rejected
"""
import logging
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Union

from sqlalchemy.orm import Session

from app.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from app.core.permissions import Capability, ensure_capability
from app.db.persistence import commit_or_raise
from app.models.leave import (
    APPROVED_STATUSES,
    CHARGEABLE_CATEGORIES,
    LeaveCategory,
    LeaveDecision,
    LeaveRecord,
    LeaveStatus,
)
from app.models.user import User
from app.utils.datetime_utils import now_utc

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    LeaveStatus.PENDING: frozenset({LeaveStatus.APPROVED_MANAGER, LeaveStatus.REJECTED}),
    LeaveStatus.APPROVED_MANAGER: frozenset({LeaveStatus.APPROVED_PARENT}),
    LeaveStatus.APPROVED_PARENT: frozenset(),
    LeaveStatus.REJECTED: frozenset(),
}

TERMINAL_LEAVE_STATUSES = frozenset(
    status for status, targets in ALLOWED_TRANSITIONS.items() if not targets
)

PROCESSED_OVERVIEW_LIMIT = 10

MONEY = Decimal("0.01")


def parse_leave_category(value: Union[LeaveCategory, str, None]) -> LeaveCategory:
    """
    Resolve a leave category from the enum, its display value or its name

    Raises:
        ValidationError: If the value is not one of the five categories
    """
    if isinstance(value, LeaveCategory):
        return value
    if value:
        for category in LeaveCategory:
            if value in (category.value, category.name):
                return category
    raise ValidationError(
        f"Unknown leave category {value!r}; expected one of {[c.value for c in LeaveCategory]}",
        field="leave_category",
    )


def is_chargeable(category: LeaveCategory) -> bool:
    return category in CHARGEABLE_CATEGORIES


def calculate_total_days(start_date: Optional[date], end_date: Optional[date]) -> int:
    """
    Inclusive number of calendar days between start_date and end_date

    Raises:
        ValidationError: If a date is missing or end_date is before start_date
    """
    if start_date is None:
        raise ValidationError("start_date is required", field="start_date")
    if end_date is None:
        raise ValidationError("end_date is required", field="end_date")
    if end_date < start_date:
        raise ValidationError(
            f"end_date {end_date} is before start_date {start_date}",
            field="end_date",
        )
    return (end_date - start_date).days + 1


def calculate_cost(category: LeaveCategory, total_days: int, daily_rate: Decimal) -> Decimal:
    """Billable cost of a leave; zero for non-chargeable categories"""
    if not is_chargeable(category):
        return Decimal("0.00")
    return (Decimal(total_days) * Decimal(daily_rate)).quantize(MONEY)


def resolve_staff_profile(db: Session, staff_id: int) -> User:
    """
    Load the staff profile a submission is priced against

    Raises:
        ValidationError: If the profile is missing, inactive, or lacks employer or daily rate
    """
    profile = db.query(User).filter(User.id == staff_id).first()
    if profile is None or not profile.active:
        raise ValidationError("Staff profile not found", field="staff_id", staff_id=staff_id)
    if not profile.parent_company:
        raise ValidationError(
            "Staff profile has no employer company", field="parent_company", staff_id=staff_id
        )
    if profile.daily_rate is None:
        raise ValidationError(
            "Staff profile has no daily rate", field="daily_rate", staff_id=staff_id
        )
    return profile


def submit_leave(
    db: Session,
    staff: User,
    leave_category: Union[LeaveCategory, str, None],
    start_date: Optional[date],
    end_date: Optional[date],
    reason: Optional[str] = None,
    parent_company_ref_id: Optional[str] = None,
) -> LeaveRecord:
    """
    Validate a leave submission and persist it as pending

    Args:
        db: Database session
        staff: The submitting contract staff member
        leave_category: One of the five leave categories
        start_date: First day of leave
        end_date: Last day of leave (inclusive)
        reason: Free-text reason
        parent_company_ref_id: Reference id issued by the parent company

    Returns:
        Created LeaveRecord

    Raises:
        PermissionDeniedError: If the caller may not submit leave
        ValidationError: If any field is invalid or the profile cannot be resolved
    """
    ensure_capability(staff, Capability.SUBMIT_LEAVE)

    total_days = calculate_total_days(start_date, end_date)
    category = parse_leave_category(leave_category)
    profile = resolve_staff_profile(db, staff.id)

    daily_rate = Decimal(profile.daily_rate).quantize(MONEY)
    chargeable = is_chargeable(category)
    now = now_utc()

    leave_record = LeaveRecord(
        staff_id=profile.id,
        staff_email=profile.email,
        staff_name=profile.name,
        parent_company=profile.parent_company,
        leave_category=category,
        is_chargeable=chargeable,
        start_date=start_date,
        end_date=end_date,
        total_days=total_days,
        reason=reason,
        parent_company_ref_id=parent_company_ref_id,
        daily_rate_at_leave=daily_rate,
        calculated_cost=calculate_cost(category, total_days, daily_rate),
        status=LeaveStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    db.add(leave_record)
    commit_or_raise(db, "create leave record", staff_id=profile.id)
    db.refresh(leave_record)

    logger.info(
        "leave submitted: leave_record_id=%s staff_id=%s category=%s days=%s chargeable=%s cost=%s",
        leave_record.id, profile.id, category.value, total_days, chargeable, leave_record.calculated_cost,
    )
    return leave_record


def get_leave_record(db: Session, record_id: int) -> LeaveRecord:
    leave_record = db.query(LeaveRecord).filter(LeaveRecord.id == record_id).first()
    if leave_record is None:
        raise NotFoundError(f"Leave record with id {record_id} not found", record_id=record_id)
    return leave_record


def ensure_transition(leave_record: LeaveRecord, target: LeaveStatus) -> None:
    """Raise InvalidTransitionError unless the state machine allows current -> target"""
    current = LeaveStatus(leave_record.status)
    if target not in ALLOWED_TRANSITIONS[current]:
        raise InvalidTransitionError(leave_record.id, current.value, target.value)


def _parse_decision(decision: Union[LeaveDecision, str]) -> LeaveDecision:
    try:
        return LeaveDecision(decision)
    except ValueError:
        raise ValidationError(
            f"Unknown decision {decision!r}; expected approve or reject", field="decision"
        )


def decide_leave(
    db: Session,
    record_id: int,
    decision: Union[LeaveDecision, str],
    actor: User,
    reason: Optional[str] = None,
) -> LeaveRecord:
    """
    Apply a manager decision to a pending leave record

    No lock is taken: concurrent decisions on one record are last-write-wins.

    Raises:
        PermissionDeniedError: If the actor may not decide leave
        NotFoundError: If the record does not exist
        InvalidTransitionError: If the record is not pending
        ValidationError: If a rejection has no reason
    """
    ensure_capability(actor, Capability.DECIDE_LEAVE)
    decision = _parse_decision(decision)
    leave_record = get_leave_record(db, record_id)

    target = LeaveStatus.APPROVED_MANAGER if decision == LeaveDecision.APPROVE else LeaveStatus.REJECTED
    ensure_transition(leave_record, target)

    if decision == LeaveDecision.REJECT and (reason is None or not reason.strip()):
        raise ValidationError("A reason is required to reject leave", field="reason", record_id=record_id)

    before_status = LeaveStatus(leave_record.status).value
    now = now_utc()
    leave_record.status = target
    leave_record.decided_by_id = actor.id
    leave_record.decided_by_email = actor.email
    leave_record.updated_at = now
    if target == LeaveStatus.APPROVED_MANAGER:
        leave_record.manager_approved_at = now
    else:
        leave_record.rejection_reason = reason
        leave_record.rejected_at = now

    commit_or_raise(db, f"{decision.value} leave record", record_id=record_id)
    db.refresh(leave_record)

    logger.info(
        "leave status transition: leave_record_id=%s before=%s after=%s action=%s actor_id=%s",
        record_id, before_status, target.value, decision.value, actor.id,
    )
    return leave_record


def approve_leave(db: Session, record_id: int, actor: User) -> LeaveRecord:
    return decide_leave(db, record_id, LeaveDecision.APPROVE, actor)


def reject_leave(db: Session, record_id: int, actor: User, reason: Optional[str]) -> LeaveRecord:
    return decide_leave(db, record_id, LeaveDecision.REJECT, actor, reason=reason)


def acknowledge_leave(db: Session, record_id: int, actor: User) -> LeaveRecord:
    """
    Record that the parent company acknowledged a manager-approved leave

    Raises:
        PermissionDeniedError: If the actor may not record acknowledgements
        NotFoundError: If the record does not exist
        InvalidTransitionError: If the record is not approved_manager
    """
    ensure_capability(actor, Capability.ACKNOWLEDGE_LEAVE)
    leave_record = get_leave_record(db, record_id)
    ensure_transition(leave_record, LeaveStatus.APPROVED_PARENT)

    now = now_utc()
    leave_record.status = LeaveStatus.APPROVED_PARENT
    leave_record.parent_acknowledged_at = now
    leave_record.updated_at = now
    commit_or_raise(db, "acknowledge leave record", record_id=record_id)
    db.refresh(leave_record)

    logger.info(
        "leave status transition: leave_record_id=%s before=approved_manager after=approved_parent "
        "action=acknowledge actor_id=%s",
        record_id, actor.id,
    )
    return leave_record


def list_my_leaves(db: Session, staff: User) -> List[LeaveRecord]:
    """The caller's own leave records, newest first"""
    ensure_capability(staff, Capability.VIEW_OWN_LEAVES)
    return (
        db.query(LeaveRecord)
        .filter(LeaveRecord.staff_id == staff.id)
        .order_by(LeaveRecord.created_at.desc(), LeaveRecord.id.desc())
        .all()
    )


def list_pending(db: Session, actor: User) -> List[LeaveRecord]:
    """Pending leave records, oldest first so approvers see the longest-waiting ones first"""
    ensure_capability(actor, Capability.VIEW_PENDING_LEAVES)
    return (
        db.query(LeaveRecord)
        .filter(LeaveRecord.status == LeaveStatus.PENDING)
        .order_by(LeaveRecord.created_at.asc(), LeaveRecord.id.asc())
        .all()
    )


def matches_leave_filters(
    leave_record: LeaveRecord,
    search_name: Optional[str] = None,
    leave_category: Optional[LeaveCategory] = None,
) -> bool:
    if search_name and search_name.strip().lower() not in (leave_record.staff_name or "").lower():
        return False
    if leave_category is not None and leave_record.leave_category != leave_category:
        return False
    return True


def approval_overview(
    db: Session,
    actor: User,
    search_name: Optional[str] = None,
    leave_category: Union[LeaveCategory, str, None] = None,
) -> Dict:
    """
    The manager's approval dashboard: filtered pending and recently processed
    records, with counts taken over every record.
    """
    ensure_capability(actor, Capability.VIEW_PENDING_LEAVES)
    category = parse_leave_category(leave_category) if leave_category not in (None, "", "all") else None

    records = db.query(LeaveRecord).all()

    counts = {
        "pending": sum(1 for r in records if r.status == LeaveStatus.PENDING),
        "approved": sum(1 for r in records if r.status in APPROVED_STATUSES),
        "awaiting_parent": sum(1 for r in records if r.status == LeaveStatus.APPROVED_MANAGER),
    }

    pending = sorted(
        (r for r in records if r.status == LeaveStatus.PENDING and matches_leave_filters(r, search_name, category)),
        key=lambda r: (r.created_at, r.id),
    )
    processed = sorted(
        (r for r in records if r.status != LeaveStatus.PENDING and matches_leave_filters(r, search_name, category)),
        key=lambda r: (r.updated_at, r.id),
        reverse=True,
    )[:PROCESSED_OVERVIEW_LIMIT]

    return {"counts": counts, "pending": pending, "processed": processed}
