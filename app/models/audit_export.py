"""
Audit export model
"""
from sqlalchemy import Column, Integer, String, JSON
from app.db.base import Base
from app.db.types import UTCDateTime
from app.utils.datetime_utils import now_utc


class AuditExport(Base):
    """Each download of the audit trail leaves one of these behind"""
    __tablename__ = "audit_exports"

    id = Column(Integer, primary_key=True, index=True)
    exported_at = Column(UTCDateTime, default=now_utc, nullable=False)
    exported_by = Column(String, nullable=False)
    exported_by_role = Column(String, nullable=False)
    record_count = Column(Integer, nullable=False)
    filename = Column(String, nullable=False)
    filters = Column(JSON, nullable=True)  # search_term, action_type, user_role
