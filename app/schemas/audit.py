"""
Audit trail schemas
"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, field_serializer
from app.utils.datetime_utils import iso_8601_utc
from app.utils.json_serializer import sanitize_for_json


class AuditEventOut(BaseModel):
    id: str
    timestamp: Optional[datetime] = None
    user: Optional[str] = None
    user_role: str
    action: str
    icon: str
    color: str
    description: str
    details: Dict[str, Any]

    @field_serializer("timestamp")
    def _ser_datetime(self, dt: Optional[datetime]) -> Optional[str]:
        return iso_8601_utc(dt)

    @field_serializer("details")
    def _ser_details(self, details: Dict[str, Any]) -> Dict[str, Any]:
        return sanitize_for_json(details)


class AuditTrailOut(BaseModel):
    """Filtered events with per-action counts over the filtered set"""
    total: int
    counts: Dict[str, int]
    events: List[AuditEventOut]
