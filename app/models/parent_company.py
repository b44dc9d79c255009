"""
Parent company model
"""
from sqlalchemy import Column, Integer, String, Boolean
from app.db.base import Base


class ParentCompany(Base):
    __tablename__ = "parent_companies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    contact_person = Column(String, nullable=True)
    contact_email = Column(String, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
