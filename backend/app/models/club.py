from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, enum_column


class ClubStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    SUSPENDED = "suspended"


class ClubRole(str, enum.Enum):
    MEMBER = "member"
    OFFICER = "officer"


class Club(Base):
    """Student club belonging to one institution"""
    __tablename__ = "clubs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    institution_id = Column(GUID, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    club_name = Column(String(255), nullable=False)  # legacy duplicate of name, kept in sync
    acronym = Column(String(50), nullable=True)
    slug = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True)
    about = Column(Text, nullable=True)
    logo_url = Column(Text, nullable=True)

    status = Column(enum_column(ClubStatus), default=ClubStatus.PENDING, nullable=False, index=True)

    # At most one advisor (an employee of the same institution)
    advisor_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def rename(self, name: str) -> None:
        self.name = name
        self.club_name = name

    def __repr__(self):
        return f"<Club {self.slug} ({self.status})>"


class ClubMembership(Base):
    """MEMBER_OF_CLUB relationship with role member|officer"""
    __tablename__ = "club_memberships"
    __table_args__ = (
        UniqueConstraint("club_id", "user_id", name="uq_club_membership"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    club_id = Column(GUID, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(enum_column(ClubRole), default=ClubRole.MEMBER, nullable=False)

    joined_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ClubMembership {self.user_id} in {self.club_id} ({self.role})>"
