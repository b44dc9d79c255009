"""
Audit trail endpoints
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_capability
from app.core.permissions import Capability
from app.models.user import User
from app.schemas.audit import AuditTrailOut
from app.services.audit_service import (
    ALL,
    AUDIT_CSV_HEADERS,
    AUDIT_CSV_QUOTING,
    audit_csv_rows,
    compile_audit_trail,
    export_filename,
    filter_audit_events,
    record_export,
    summarize_audit_events,
)
from app.utils.csv_export import stream_csv

router = APIRouter()


@router.get("/events", response_model=AuditTrailOut)
async def events(
    search: Optional[str] = Query(None, description="Matches description, user, company or staff name"),
    action: str = Query(ALL, description="Action kind or 'all'"),
    role: str = Query(ALL, description="User role or 'all'"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_AUDIT_TRAIL)),
):
    """Compiled audit trail, newest first"""
    filtered = filter_audit_events(compile_audit_trail(db, current_user), search, action, role)
    return {"total": len(filtered), "counts": summarize_audit_events(filtered), "events": filtered}


@router.get("/export.csv")
async def export_csv(
    search: Optional[str] = Query(None),
    action: str = Query(ALL),
    role: str = Query(ALL),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.EXPORT_AUDIT_TRAIL)),
):
    """
    Export the filtered audit trail as CSV

    The export itself is recorded and appears in subsequent compilations.
    """
    filtered = filter_audit_events(compile_audit_trail(db, current_user), search, action, role)
    filename = export_filename()
    record_export(
        db,
        current_user,
        filters={"search_term": search, "action": action, "role": role},
        result_count=len(filtered),
        filename=filename,
    )
    return stream_csv(AUDIT_CSV_HEADERS, audit_csv_rows(filtered), filename=filename, quoting=AUDIT_CSV_QUOTING)
