"""
User model (staff profiles, managers and finance officers)
"""
from sqlalchemy import Column, Integer, String, Boolean, Numeric
from sqlalchemy.orm import relationship
import enum
from app.db.base import Base
from app.db.types import UTCDateTime
from app.utils.datetime_utils import now_utc


class Role(str, enum.Enum):
    CONTRACT_STAFF = "contract_staff"
    MANAGER = "manager"
    FINANCE_OFFICER = "finance_officer"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    parent_company = Column(String, nullable=True, index=True)  # employer of contract staff
    daily_rate = Column(Numeric(12, 2), nullable=True)
    password_hash = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=now_utc, nullable=False)
    updated_at = Column(UTCDateTime, default=now_utc, onupdate=now_utc, nullable=False)

    leave_records = relationship(
        "LeaveRecord", foreign_keys="LeaveRecord.staff_id", back_populates="staff"
    )
