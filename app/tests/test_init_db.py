"""
Tests for demo data seeding
"""
from app.db.init_db import DEFAULT_PARENT_COMPANIES, DEMO_PASSWORD, DEMO_USERS, init_db
from app.core.security import verify_password
from app.models.parent_company import ParentCompany
from app.models.user import User


def test_seed_is_idempotent(db):
    init_db(db)
    init_db(db)

    assert db.query(ParentCompany).count() == len(DEFAULT_PARENT_COMPANIES)
    assert db.query(User).count() == len(DEMO_USERS)


def test_seeded_staff_can_be_priced(db):
    init_db(db)

    staff = db.query(User).filter(User.role == "contract_staff").one()
    assert staff.parent_company == "ABC Staffing"
    assert staff.daily_rate is not None
    assert verify_password(DEMO_PASSWORD, staff.password_hash)
