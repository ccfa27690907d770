from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime

from app.models import PlatformRole, UserStatus
from app.schemas.common import blank_to_none
from app.services.validators import is_valid_phone, normalize_phone, normalize_email


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize(cls, v: str) -> str:
        return normalize_email(v)


class MemberRegister(BaseModel):
    """Student or employee self-registration"""
    name: str
    id_number: str
    email: EmailStr
    password: str
    phone: str

    institution_id: Optional[str] = None
    institution_slug: Optional[str] = None

    college_id: Optional[str] = None
    department_id: Optional[str] = None
    program_id: Optional[str] = None

    @field_validator("institution_id", "institution_slug", "college_id", "department_id", "program_id", mode="before")
    @classmethod
    def blank_ids(cls, v):
        return blank_to_none(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v

    @field_validator("id_number")
    @classmethod
    def validate_id_number(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("ID number is required")
        return v

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v: str) -> str:
        if not is_valid_phone(v):
            raise ValueError("Phone number must be 11 digits")
        return normalize_phone(v)

    @model_validator(mode="after")
    def require_institution(self):
        if not self.institution_id and not self.institution_slug:
            raise ValueError("Institution is required")
        return self


class InstitutionRegister(BaseModel):
    institution_name: str
    password: str
    contact_person_email: EmailStr
    email_domain: Optional[str] = None
    web_domain: Optional[str] = None

    @field_validator("email_domain", "web_domain", mode="before")
    @classmethod
    def blank_domains(cls, v):
        v = blank_to_none(v)
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("institution_name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Institution name must be at least 2 characters")
        return v

    @field_validator("contact_person_email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < 8:
            raise ValueError("Password must be at least 8 characters")
        return v


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    id_number: Optional[str] = None
    platform_role: PlatformRole
    status: UserStatus
    created_at: datetime
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True
