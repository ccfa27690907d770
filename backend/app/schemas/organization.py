from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class CollegeOut(BaseModel):
    id: str
    institution_id: str
    name: str
    acronym: str
    email: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class DepartmentOut(CollegeOut):
    college_id: str


class ProgramOut(BaseModel):
    id: str
    institution_id: str
    department_id: str
    name: str
    acronym: str
    created_at: datetime

    class Config:
        from_attributes = True


class ProgramWrite(BaseModel):
    name: Optional[str] = None
    acronym: Optional[str] = None
    department_id: Optional[str] = None


class InstitutionOut(BaseModel):
    id: str
    name: str
    slug: str
    email_domain: Optional[str] = None
    web_domain: Optional[str] = None
    contact_person_email: str
    created_at: datetime

    class Config:
        from_attributes = True
