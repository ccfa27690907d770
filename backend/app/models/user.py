from sqlalchemy import Column, String, Boolean, DateTime
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, enum_column


class PlatformRole(str, enum.Enum):
    """Platform-wide account roles"""
    STUDENT = "student"
    EMPLOYEE = "employee"
    STAFF = "staff"  # employee variant
    INSTITUTION = "institution"
    SUPER_ADMIN = "super_admin"


class UserStatus(str, enum.Enum):
    """
    Account status. Meaning depends on role:
    students/employees are active|disabled, institutions pending|approved|rejected.
    """
    ACTIVE = "active"
    DISABLED = "disabled"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


EMPLOYEE_ROLES = frozenset([PlatformRole.EMPLOYEE, PlatformRole.STAFF])
MEMBER_ROLES = frozenset([PlatformRole.STUDENT, PlatformRole.EMPLOYEE, PlatformRole.STAFF])
# Institution account statuses that allow sign-in and writes
APPROVED_INSTITUTION_STATUSES = (UserStatus.APPROVED, UserStatus.ACTIVE)


class User(Base):
    """
    Every account on the platform. Institutions are users too
    (platform_role="institution"), with their profile in ``institutions``.
    """
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), unique=True, nullable=True)
    id_number = Column(String(100), unique=True, nullable=True)
    hashed_password = Column(String(255), nullable=True)

    platform_role = Column(enum_column(PlatformRole), nullable=False, index=True)
    status = Column(enum_column(UserStatus), default=UserStatus.ACTIVE, nullable=False, index=True)

    # Bootstrapped super admin: cannot be deleted, demoted or disabled
    is_protected = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    @property
    def is_employee(self) -> bool:
        return self.platform_role in EMPLOYEE_ROLES

    def __repr__(self):
        return f"<User {self.email} ({self.platform_role})>"


class UsedEmail(Base):
    """
    Registry of every email that has ever owned an account.
    Rows are never deleted, so an email cannot be reused.
    """
    __tablename__ = "used_emails"

    email = Column(String(255), primary_key=True)
    first_used_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<UsedEmail {self.email}>"
