"""
Database initialization
Seeds parent companies and one demo account per role
"""
import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.db.persistence import commit_or_raise
from app.models.parent_company import ParentCompany
from app.models.user import Role, User

logger = logging.getLogger(__name__)

DEFAULT_PARENT_COMPANIES = [
    {"name": "ABC Staffing", "contact_person": "Billing Contact", "contact_email": "billing@abc-staffing.example.com"},
    {"name": "DEF Staffing", "contact_person": "Billing Contact", "contact_email": "billing@def-staffing.example.com"},
    {"name": "GHI Staffing", "contact_person": "Billing Contact", "contact_email": "billing@ghi-staffing.example.com"},
]

DEMO_PASSWORD = "changeme123"  # local development only

DEMO_USERS = [
    {
        "email": "staff@example.com",
        "name": "Demo Contract Staff",
        "role": Role.CONTRACT_STAFF.value,
        "parent_company": "ABC Staffing",
        "daily_rate": Decimal("200.00"),
    },
    {"email": "manager@example.com", "name": "Demo Manager", "role": Role.MANAGER.value},
    {"email": "finance@example.com", "name": "Demo Finance Officer", "role": Role.FINANCE_OFFICER.value},
]


def init_db(db: Session) -> None:
    """
    Seed parent companies and demo users that do not exist yet

    Safe to run repeatedly.
    """
    created = 0
    for company in DEFAULT_PARENT_COMPANIES:
        if db.query(ParentCompany).filter(ParentCompany.name == company["name"]).first() is None:
            db.add(ParentCompany(active=True, **company))
            created += 1

    for user in DEMO_USERS:
        if db.query(User).filter(User.email == user["email"]).first() is None:
            db.add(User(active=True, password_hash=hash_password(DEMO_PASSWORD), **user))
            created += 1

    if created:
        commit_or_raise(db, "seed demo data")
        logger.info("seeded %s parent companies and demo users", created)
    else:
        logger.info("demo data already present, skipping seed")
