"""
Uniqueness & Referential Validators
===================================

Read-only checks used before writes:
- global uniqueness of email / phone / id number
- institution membership
- org-unit scoping (college ⊂ institution, department ⊂ college, program ⊂ department)

The unique constraints on ``users`` and ``used_emails`` remain the final
guard; these checks exist to report which field collided.
"""

import re
from typing import Dict, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models import (
    User,
    UsedEmail,
    InstitutionMembership,
    College,
    Department,
    Program,
)
from app.services.store import EntityStore


EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_DIGITS = 11


# ============================================
# Pure helpers
# ============================================

def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_phone(phone: Optional[str]) -> str:
    """Strip everything except digits"""
    return re.sub(r"\D", "", phone or "")


def is_valid_phone(phone: Optional[str]) -> bool:
    return len(normalize_phone(phone)) == PHONE_DIGITS


def is_valid_email(email: Optional[str]) -> bool:
    return bool(EMAIL_PATTERN.match((email or "").strip()))


def require_text(value: Optional[str], message: str, field: Optional[str] = None) -> str:
    """Return the stripped value or raise ValidationError"""
    text = (value or "").strip()
    if not text:
        raise ValidationError(message, field=field)
    return text


def clean_contact(email: Optional[str], phone: Optional[str]) -> Dict[str, Optional[str]]:
    """Optional contact email / phone, validated and normalized; blanks become None"""
    email = normalize_email(email) or None
    if email and not is_valid_email(email):
        raise ValidationError("Invalid email address", field="email")
    phone = (phone or "").strip() or None
    if phone:
        if not is_valid_phone(phone):
            raise ValidationError("Phone number must be 11 digits", field="phone")
        phone = normalize_phone(phone)
    return {"email": email, "phone": phone}


# ============================================
# Store-backed checks
# ============================================

class Validators:
    """Uniqueness and scoping checks against the store"""

    def __init__(self, db: AsyncSession):
        self.store = EntityStore(db)

    async def is_email_globally_registered(self, email: str) -> bool:
        email = normalize_email(email)
        if await self.store.exists(select(UsedEmail).where(UsedEmail.email == email)):
            return True
        return await self.store.exists(select(User).where(func.lower(User.email) == email))

    async def is_email_registered_in_institution(self, email: str, institution_id: str) -> bool:
        stmt = (
            select(User.id)
            .join(InstitutionMembership, InstitutionMembership.user_id == User.id)
            .where(
                func.lower(User.email) == normalize_email(email),
                InstitutionMembership.institution_id == institution_id,
            )
        )
        return await self.store.exists(stmt)

    async def is_phone_globally_registered(self, phone: str) -> bool:
        return await self.store.exists(select(User).where(User.phone == normalize_phone(phone)))

    async def is_id_number_globally_registered(self, id_number: str) -> bool:
        return await self.store.exists(select(User).where(User.id_number == id_number.strip()))

    async def has_existing_institution_relationship(self, email: str) -> bool:
        """True when the account already studies at, works for or is a member of an institution"""
        stmt = (
            select(InstitutionMembership.id)
            .join(User, User.id == InstitutionMembership.user_id)
            .where(func.lower(User.email) == normalize_email(email))
        )
        return await self.store.exists(stmt)

    async def ensure_identity_available(
        self,
        email: str,
        phone: Optional[str] = None,
        id_number: Optional[str] = None,
        conflict_message: str = "User with that email or ID already exists",
    ) -> None:
        """Raise ConflictError if any identifying field is taken"""
        if await self.is_email_globally_registered(email):
            raise ConflictError(conflict_message)
        if id_number and await self.is_id_number_globally_registered(id_number):
            raise ConflictError(conflict_message)
        if phone and await self.is_phone_globally_registered(phone):
            raise ConflictError("Phone number already exists")
        if await self.has_existing_institution_relationship(email):
            raise ConflictError("Account already belongs to an institution")

    # ==================== Org-unit scoping ====================

    async def validate_college_belongs_to_institution(self, college_id: str, institution_id: str) -> College:
        college = await self.store.first(
            select(College).where(College.id == college_id, College.institution_id == institution_id)
        )
        if college is None:
            raise NotFoundError("College not found in this institution", code="COLLEGE_NOT_FOUND")
        return college

    async def validate_department_belongs_to_institution(
        self,
        department_id: str,
        institution_id: str,
        college_id: Optional[str] = None,
    ) -> Department:
        conditions = [Department.id == department_id, Department.institution_id == institution_id]
        if college_id:
            conditions.append(Department.college_id == college_id)
        department = await self.store.first(select(Department).where(*conditions))
        if department is None:
            raise NotFoundError("Department not found in this institution", code="DEPARTMENT_NOT_FOUND")
        return department

    async def validate_program_belongs_to_institution(
        self,
        program_id: str,
        institution_id: str,
        department_id: Optional[str] = None,
    ) -> Program:
        conditions = [Program.id == program_id, Program.institution_id == institution_id]
        if department_id:
            conditions.append(Program.department_id == department_id)
        program = await self.store.first(select(Program).where(*conditions))
        if program is None:
            raise NotFoundError("Program not found in this institution", code="PROGRAM_NOT_FOUND")
        return program
