"""
Leave endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_capability
from app.core.permissions import Capability
from app.models.user import User
from app.schemas.leave import LeaveApplyRequest, LeaveOut, LeaveOverviewOut, RejectActionRequest
from app.services.leave_service import (
    submit_leave,
    list_my_leaves,
    list_pending,
    approval_overview,
    approve_leave,
    reject_leave,
    acknowledge_leave,
)

router = APIRouter()


@router.post("/apply", response_model=LeaveOut, status_code=status.HTTP_201_CREATED)
async def apply(
    request: LeaveApplyRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.SUBMIT_LEAVE)),
):
    """
    Submit a leave request for the current contract staff member

    Days are counted inclusively; the cost uses the staff member's current
    daily rate and is zero for non-chargeable categories.
    """
    return submit_leave(
        db,
        staff=current_user,
        leave_category=request.leave_category,
        start_date=request.start_date,
        end_date=request.end_date,
        reason=request.reason,
        parent_company_ref_id=request.parent_company_ref_id,
    )


@router.get("/my", response_model=List[LeaveOut])
async def my_leaves(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_OWN_LEAVES)),
):
    """Current user's leave records, newest first"""
    return list_my_leaves(db, current_user)


@router.get("/pending", response_model=List[LeaveOut])
async def pending(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_PENDING_LEAVES)),
):
    """Pending leave records awaiting a manager decision"""
    return list_pending(db, current_user)


@router.get("/overview", response_model=LeaveOverviewOut)
async def overview(
    search: Optional[str] = Query(None, description="Staff name contains (case-insensitive)"),
    leave_category: Optional[str] = Query(None, description="Leave category or 'all'"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_PENDING_LEAVES)),
):
    """Approval dashboard: counts, filtered pending and recently processed records"""
    return approval_overview(db, current_user, search_name=search, leave_category=leave_category)


@router.post("/{leave_id}/approve", response_model=LeaveOut)
async def approve(
    leave_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.DECIDE_LEAVE)),
):
    """Approve a pending leave record (manager)"""
    return approve_leave(db, leave_id, current_user)


@router.post("/{leave_id}/reject", response_model=LeaveOut)
async def reject(
    leave_id: int,
    request: RejectActionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.DECIDE_LEAVE)),
):
    """Reject a pending leave record with a reason (manager)"""
    return reject_leave(db, leave_id, current_user, request.reason)


@router.post("/{leave_id}/acknowledge", response_model=LeaveOut)
async def acknowledge(
    leave_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.ACKNOWLEDGE_LEAVE)),
):
    """Record the parent company's acknowledgement of a manager-approved leave"""
    return acknowledge_leave(db, leave_id, current_user)
