"""
Pytest configuration and fixtures
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

from datetime import date
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.engine import Engine
from app.main import app
from app.db.base import Base
from app.core.deps import get_db
from app.core.security import hash_password

# Import all models to ensure they're registered with Base.metadata
from app.models import (
    AuditExport,
    LeaveRecord,
    LeaveStatus,
    ParentCompany,
    ParentCompanyCharge,
    ReconciliationLineItem,
    ReconciliationReport,
    Role,
    User,
)  # noqa
from app.utils.datetime_utils import now_utc


# Use in-memory SQLite for testing
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# Enable foreign keys for SQLite
@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db):
    """Test client fixture with database override"""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_user(db: Session, email: str, name: str, role: Role, password: str, **fields) -> User:
    user = User(
        email=email,
        name=name,
        role=role.value,
        password_hash=hash_password(password),
        active=True,
        **fields
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def staff_user(db: Session):
    """Contract staff employed by ABC Staffing at 200/day"""
    return _create_user(
        db, "alice@example.com", "Alice Tan", Role.CONTRACT_STAFF, "staffpass123",
        parent_company="ABC Staffing", daily_rate=Decimal("200.00"),
    )


@pytest.fixture
def other_staff_user(db: Session):
    """Contract staff employed by DEF Staffing at 150/day"""
    return _create_user(
        db, "bob@example.com", "Bob Lim", Role.CONTRACT_STAFF, "staffpass123",
        parent_company="DEF Staffing", daily_rate=Decimal("150.00"),
    )


@pytest.fixture
def manager_user(db: Session):
    return _create_user(db, "manager@example.com", "Mona Manager", Role.MANAGER, "mgrpass123")


@pytest.fixture
def finance_user(db: Session):
    return _create_user(db, "finance@example.com", "Fiona Finance", Role.FINANCE_OFFICER, "finpass123")


@pytest.fixture
def make_leave(db: Session):
    """
    Factory inserting a leave record directly in a given status

    Cost follows the staff member's current daily rate.
    """
    def _make(staff: User, start: date, end: date, category="Annual Leave",
              status: LeaveStatus = LeaveStatus.APPROVED_MANAGER, decided_by: User = None) -> LeaveRecord:
        from app.services.leave_service import calculate_cost, calculate_total_days, is_chargeable, parse_leave_category

        leave_category = parse_leave_category(category)
        days = calculate_total_days(start, end)
        now = now_utc()
        record = LeaveRecord(
            staff_id=staff.id,
            staff_email=staff.email,
            staff_name=staff.name,
            parent_company=staff.parent_company,
            leave_category=leave_category,
            is_chargeable=is_chargeable(leave_category),
            start_date=start,
            end_date=end,
            total_days=days,
            daily_rate_at_leave=staff.daily_rate,
            calculated_cost=calculate_cost(leave_category, days, staff.daily_rate),
            status=status,
            decided_by_id=decided_by.id if decided_by else None,
            decided_by_email=decided_by.email if decided_by else None,
            manager_approved_at=now if status in (LeaveStatus.APPROVED_MANAGER, LeaveStatus.APPROVED_PARENT) else None,
            rejected_at=now if status == LeaveStatus.REJECTED else None,
            rejection_reason="Not enough cover" if status == LeaveStatus.REJECTED else None,
            created_at=now,
            updated_at=now,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
        return record
    return _make


@pytest.fixture
def auth_headers(client):
    """Factory returning Authorization headers for a login"""
    def _headers(email: str, password: str) -> dict:
        response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}
    return _headers
