from pydantic import BaseModel, field_validator
from typing import Literal, Optional
from datetime import datetime

from app.models import ClubStatus, ClubRole
from app.schemas.common import blank_to_none


class ClubOut(BaseModel):
    id: str
    institution_id: str
    name: str
    acronym: Optional[str] = None
    slug: str
    email: Optional[str] = None
    phone: Optional[str] = None
    about: Optional[str] = None
    logo_url: Optional[str] = None
    status: ClubStatus
    advisor_id: Optional[str] = None
    created_by_id: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StudentClubCreate(BaseModel):
    """Self-service club proposal (JSON, no logo)"""
    name: str
    acronym: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    about: Optional[str] = None

    @field_validator("acronym", "email", "phone", "about", mode="before")
    @classmethod
    def blanks(cls, v):
        return blank_to_none(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Club name must be at least 2 characters")
        return v


class MemberAddRequest(BaseModel):
    user_id: str


class MemberReassignRequest(BaseModel):
    role: ClubRole


class ClubMemberOut(BaseModel):
    user_id: str
    name: str
    email: str
    role: ClubRole
    joined_at: datetime


class AdvisorCandidateOut(BaseModel):
    user_id: str
    name: str
    email: str
    is_staff: bool = False


class ClubRelation(BaseModel):
    """A club as seen by one of its members or its advisor"""
    club: ClubOut
    relation: Literal["advisor", "officer", "member"]
