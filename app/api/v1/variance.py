"""
Variance dashboard endpoints
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from app.core.deps import get_db, require_capability
from app.core.permissions import Capability
from app.models.user import User
from app.schemas.variance import VarianceAlertOut, VarianceRowOut, VarianceSummaryOut
from app.services.notification_service import build_variance_alert
from app.services.variance_service import (
    VARIANCE_CSV_HEADERS,
    load_variance_rows,
    summarize_variance,
    variance_csv_rows,
)
from app.utils.csv_export import stream_csv
from app.utils.datetime_utils import now_utc

router = APIRouter()


@router.get("/rows", response_model=List[VarianceRowOut])
async def rows(
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Most recent reports to group"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_VARIANCE)),
):
    """One row per (month, parent company), newest month first"""
    return load_variance_rows(db, current_user, limit=limit)


@router.get("/summary", response_model=VarianceSummaryOut)
async def summary(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_VARIANCE)),
):
    """Totals across the grouped rows"""
    return summarize_variance(load_variance_rows(db, current_user, limit=limit))


@router.get("/export.csv")
async def export_csv(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_VARIANCE)),
):
    """Export the grouped variance rows as CSV"""
    grouped = load_variance_rows(db, current_user, limit=limit)
    filename = f"billing-variance-{now_utc().date().isoformat()}.csv"
    return stream_csv(VARIANCE_CSV_HEADERS, variance_csv_rows(grouped), filename=filename)


@router.get("/alert", response_model=VarianceAlertOut)
async def alert(
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_capability(Capability.VIEW_VARIANCE)),
):
    """Alert content for the companies whose variance needs review"""
    grouped = load_variance_rows(db, current_user, limit=limit)
    return build_variance_alert(db, current_user, grouped)
