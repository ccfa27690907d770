"""
Org Unit Models
College -> Department -> Program, each scoped to one institution.

Every unit carries institution_id directly, so scoping checks are one lookup.
Parent links must point at units of the same institution; the validators
enforce that on write.
"""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class College(Base):
    __tablename__ = "colleges"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    institution_id = Column(GUID, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    acronym = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    logo_url = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<College {self.acronym}>"


class Department(Base):
    __tablename__ = "departments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    institution_id = Column(GUID, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)
    college_id = Column(GUID, ForeignKey("colleges.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    acronym = Column(String(50), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    logo_url = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Department {self.acronym}>"


class Program(Base):
    __tablename__ = "programs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    institution_id = Column(GUID, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)
    department_id = Column(GUID, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    acronym = Column(String(50), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Program {self.acronym}>"
