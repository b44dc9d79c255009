"""
Seed parent companies and one demo account per role.
Existing rows are left unchanged. Run from the project root with .env loaded.

Usage:
  python scripts/seed_demo_data.py
"""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from app.core.logging import setup_logging
from app.db.init_db import DEMO_USERS, init_db
from app.db.session import SessionLocal, create_sqlite_schema


def main():
    setup_logging()
    create_sqlite_schema()
    db = SessionLocal()
    try:
        init_db(db)
        for user in DEMO_USERS:
            print(f"{user['role']}: {user['email']}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
