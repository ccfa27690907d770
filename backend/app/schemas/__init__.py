# Pydantic schemas
from app.schemas.auth import (
    LoginRequest,
    MemberRegister,
    InstitutionRegister,
    UserOut,
)
from app.schemas.organization import (
    InstitutionOut,
    CollegeOut,
    DepartmentOut,
    ProgramOut,
    ProgramWrite,
)
from app.schemas.club import (
    ClubOut,
    StudentClubCreate,
    MemberAddRequest,
    MemberReassignRequest,
    ClubMemberOut,
    AdvisorCandidateOut,
    ClubRelation,
)
from app.schemas.content import (
    PostDraft,
    PostEdit,
    PostStatusRequest,
    EventStatusRequest,
    RSVPRequest,
    RSVPCounts,
    EventOut,
    AnnouncementOut,
)
from app.schemas.common import ReviewRequest, ClubStatusRequest, AccountStatusRequest
from app.schemas.admin import InstitutionStatusRequest, AdminInstitutionOut, PlatformStats

__all__ = [
    # Auth
    "LoginRequest",
    "MemberRegister",
    "InstitutionRegister",
    "UserOut",
    # Organization
    "InstitutionOut",
    "CollegeOut",
    "DepartmentOut",
    "ProgramOut",
    "ProgramWrite",
    # Clubs
    "ClubOut",
    "StudentClubCreate",
    "MemberAddRequest",
    "MemberReassignRequest",
    "ClubMemberOut",
    "AdvisorCandidateOut",
    "ClubRelation",
    # Posts
    "PostDraft",
    "PostEdit",
    "PostStatusRequest",
    "EventStatusRequest",
    "RSVPRequest",
    "RSVPCounts",
    "EventOut",
    "AnnouncementOut",
    # Status changes
    "ReviewRequest",
    "ClubStatusRequest",
    "AccountStatusRequest",
    "InstitutionStatusRequest",
    "AdminInstitutionOut",
    "PlatformStats",
]
