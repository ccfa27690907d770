"""
Institution Models
- Institution profile (the account itself is a User with role "institution")
- Membership of students and employees in an institution
"""

from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, enum_column


class MembershipKind(str, enum.Enum):
    STUDENT = "student"
    EMPLOYEE = "employee"


class MembershipStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Institution(Base):
    """Institution profile, keyed by the institution account's user id"""
    __tablename__ = "institutions"

    id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    name = Column(String(255), nullable=False)
    # Display slug; deliberately not unique
    slug = Column(String(255), nullable=False, index=True)
    email_domain = Column(String(255), nullable=True)
    web_domain = Column(String(255), nullable=True)
    contact_person_email = Column(String(255), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Institution {self.slug}>"


class InstitutionMembership(Base):
    """
    A student's or employee's relationship to their institution.

    user_id is unique: an account belongs to at most one institution.
    """
    __tablename__ = "institution_memberships"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    institution_id = Column(GUID, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)

    kind = Column(enum_column(MembershipKind), nullable=False)
    status = Column(enum_column(MembershipStatus), default=MembershipStatus.APPROVED, nullable=False)
    is_staff = Column(Boolean, default=False, nullable=False)

    # Optional enrollment in the institution's org units
    college_id = Column(GUID, ForeignKey("colleges.id", ondelete="SET NULL"), nullable=True)
    department_id = Column(GUID, ForeignKey("departments.id", ondelete="SET NULL"), nullable=True)
    program_id = Column(GUID, ForeignKey("programs.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<InstitutionMembership {self.user_id} -> {self.institution_id} ({self.kind})>"
