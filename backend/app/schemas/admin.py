from pydantic import BaseModel
from typing import Literal, Optional
from datetime import datetime

from app.models import UserStatus


# ==================== Institutions ====================

class InstitutionStatusRequest(BaseModel):
    action: Literal["approve", "reject"]


class AdminInstitutionOut(BaseModel):
    id: str
    name: str
    slug: str
    contact_person_email: str
    email_domain: Optional[str] = None
    web_domain: Optional[str] = None
    status: UserStatus
    created_at: datetime


# ==================== Dashboard ====================

class PlatformStats(BaseModel):
    """Platform-wide counts for the super-admin dashboard"""
    institutions: int
    pending_institutions: int
    students: int
    employees: int
    clubs: int
    pending_clubs: int
    events: int
    live_events: int
    announcements: int
    rsvps: int
