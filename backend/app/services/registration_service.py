"""
Registration Service - account creation for students, employees and institutions

Handles:
- Resolving the target institution by id or slug
- Global identity uniqueness (email / phone / id number)
- Org-unit scoping of the optional college / department / program
- Creating the user, its used-email record and membership in one flush
"""

from typing import Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InstitutionNotFoundError
from app.core.logging_config import logger
from app.core.security import get_password_hash
from app.core.types import generate_uuid
from app.models import (
    User,
    UsedEmail,
    PlatformRole,
    UserStatus,
    APPROVED_INSTITUTION_STATUSES,
    Institution,
    InstitutionMembership,
    MembershipKind,
    MembershipStatus,
)
from app.schemas.auth import MemberRegister, InstitutionRegister
from app.services.store import EntityStore
from app.services.validators import Validators
from app.services.workflow import Workflow, EntityKind
from app.utils.slug import slugify


MEMBER_ROLE_FOR_KIND = {
    MembershipKind.STUDENT: PlatformRole.STUDENT,
    MembershipKind.EMPLOYEE: PlatformRole.EMPLOYEE,
}


class RegistrationService:
    """Creates accounts; the request transaction commits them"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)
        self.validators = Validators(db)
        self.workflow = Workflow(db)

    async def find_institution(
        self,
        institution_id: Optional[str] = None,
        institution_slug: Optional[str] = None,
    ) -> Institution:
        """
        Approved institution by id, else by slug.

        Slugs are not unique; the oldest approved institution with the slug wins.
        """
        stmt = (
            select(Institution)
            .join(User, User.id == Institution.id)
            .where(User.status.in_(APPROVED_INSTITUTION_STATUSES))
        )
        if institution_id:
            stmt = stmt.where(Institution.id == institution_id)
        else:
            stmt = stmt.where(Institution.slug == slugify(institution_slug or "")).order_by(Institution.created_at)

        institution = await self.store.first(stmt)
        if institution is None:
            raise InstitutionNotFoundError(institution_id or institution_slug or "")
        return institution

    async def register_member(self, data: MemberRegister, kind: MembershipKind) -> User:
        """
        Register a student or employee of an approved institution.

        Raises:
            NotFoundError: institution or org unit missing / out of scope
            ConflictError: email, phone or id number already taken
        """
        institution = await self.find_institution(data.institution_id, data.institution_slug)

        # Org units must belong to the chosen institution and to each other
        if data.college_id:
            await self.validators.validate_college_belongs_to_institution(data.college_id, institution.id)
        if data.department_id:
            await self.validators.validate_department_belongs_to_institution(
                data.department_id, institution.id, college_id=data.college_id
            )
        if data.program_id:
            await self.validators.validate_program_belongs_to_institution(
                data.program_id, institution.id, department_id=data.department_id
            )

        conflict_message = "User with that email or ID already exists"
        await self.validators.ensure_identity_available(
            data.email, phone=data.phone, id_number=data.id_number, conflict_message=conflict_message
        )

        user = self.store.add(User(
            id=generate_uuid(),
            name=data.name,
            email=data.email,
            phone=data.phone,
            id_number=data.id_number,
            hashed_password=get_password_hash(data.password),
            platform_role=MEMBER_ROLE_FOR_KIND[kind],
            status=UserStatus.ACTIVE,
        ))
        self.store.add(UsedEmail(email=data.email))
        self.store.add(InstitutionMembership(
            id=generate_uuid(),
            user_id=user.id,
            institution_id=institution.id,
            kind=kind,
            status=MembershipStatus.APPROVED,
            college_id=data.college_id,
            department_id=data.department_id,
            program_id=data.program_id,
        ))
        await self.store.flush(conflict_message)

        logger.log_auth_event(
            event=f"register_{kind.value}",
            success=True,
            user_email=data.email,
            institution_id=institution.id,
        )
        return user

    async def register_institution(self, data: InstitutionRegister) -> User:
        """
        Register an institution account. It starts pending and cannot sign in
        until a super-admin approves it.
        """
        user, _ = await self.create_institution(data)
        logger.log_auth_event(event="register_institution", success=True, user_email=data.contact_person_email)
        return user

    async def create_institution(
        self,
        data: InstitutionRegister,
        status: UserStatus = UserStatus.PENDING,
        actor_id: Optional[str] = None,
        action: str = "institution.register",
    ) -> Tuple[User, Institution]:
        """Institution account plus its profile; the contact email must be unused"""
        conflict_message = "Institution with that email already exists"
        await self.validators.ensure_identity_available(
            data.contact_person_email, conflict_message=conflict_message
        )

        user = self.store.add(User(
            id=generate_uuid(),
            name=data.institution_name,
            email=data.contact_person_email,
            hashed_password=get_password_hash(data.password),
            platform_role=PlatformRole.INSTITUTION,
        ))
        await self.workflow.initial(user, EntityKind.INSTITUTION, status, actor_id=actor_id, action=action)
        self.store.add(UsedEmail(email=data.contact_person_email))
        institution = self.store.add(Institution(
            id=user.id,
            name=data.institution_name,
            slug=slugify(data.institution_name),
            email_domain=data.email_domain,
            web_domain=data.web_domain,
            contact_person_email=data.contact_person_email,
        ))
        await self.store.flush(conflict_message)
        return user, institution
