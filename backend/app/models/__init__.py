# Re-export all models for convenient imports
from app.models.user import (
    User,
    UsedEmail,
    PlatformRole,
    UserStatus,
    EMPLOYEE_ROLES,
    MEMBER_ROLES,
    APPROVED_INSTITUTION_STATUSES,
)
from app.models.institution import Institution, InstitutionMembership, MembershipKind, MembershipStatus
from app.models.organization import College, Department, Program
from app.models.club import Club, ClubMembership, ClubStatus, ClubRole
from app.models.content import (
    Event,
    Announcement,
    Tag,
    PostStatus,
    PostType,
    Visibility,
    LIVE_STATUSES,
    event_tags,
    announcement_tags,
)
from app.models.rsvp import RSVP, RSVPState, EventCheckIn, make_rsvp_key
from app.models.audit_log import AuditLog

__all__ = [
    # Accounts
    "User",
    "UsedEmail",
    "PlatformRole",
    "UserStatus",
    "EMPLOYEE_ROLES",
    "MEMBER_ROLES",
    "APPROVED_INSTITUTION_STATUSES",
    # Institutions
    "Institution",
    "InstitutionMembership",
    "MembershipKind",
    "MembershipStatus",
    # Org units
    "College",
    "Department",
    "Program",
    # Clubs
    "Club",
    "ClubMembership",
    "ClubStatus",
    "ClubRole",
    # Content
    "Event",
    "Announcement",
    "Tag",
    "PostStatus",
    "PostType",
    "Visibility",
    "LIVE_STATUSES",
    "event_tags",
    "announcement_tags",
    # RSVP
    "RSVP",
    "RSVPState",
    "EventCheckIn",
    "make_rsvp_key",
    # Audit
    "AuditLog",
]
