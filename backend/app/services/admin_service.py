"""
Admin Service - super-admin oversight

Handles:
- Institution approval / rejection
- Account enable / disable and hard deletion of student and employee accounts
- Platform-wide statistics

The protected (bootstrapped) super-admin is never modified or deleted.
"""

from typing import Any, Dict, Optional

from sqlalchemy import select, delete, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, InstitutionNotFoundError, UserNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models import (
    User,
    UsedEmail,
    PlatformRole,
    UserStatus,
    MEMBER_ROLES,
    Institution,
    InstitutionMembership,
    Club,
    ClubMembership,
    ClubStatus,
    Event,
    Announcement,
    RSVP,
    EventCheckIn,
    LIVE_STATUSES,
)
from app.modules.auth.session import SessionUser
from app.schemas.auth import InstitutionRegister, UserOut
from app.services.registration_service import RegistrationService
from app.services.store import EntityStore
from app.services.workflow import Workflow, EntityKind
from app.utils.pagination import paginate, create_paginated_response, MAX_PAGE_SIZE

INSTITUTION_STATUS_ACTIONS = {
    "approve": UserStatus.APPROVED,
    "reject": UserStatus.REJECTED,
}


def serialize_user(user: User) -> Dict[str, Any]:
    return UserOut.model_validate(user).model_dump(mode="json")


def serialize_institution(institution: Institution, account: User) -> Dict[str, Any]:
    return {
        "id": institution.id,
        "name": institution.name,
        "slug": institution.slug,
        "contact_person_email": institution.contact_person_email,
        "email_domain": institution.email_domain,
        "web_domain": institution.web_domain,
        "status": account.status.value,
        "created_at": institution.created_at.isoformat(),
    }


def ensure_modifiable_member(user: User) -> None:
    """Only student and employee accounts may be changed by administrators"""
    if user.is_protected:
        raise AuthorizationError("Protected account cannot be modified")
    if user.platform_role not in MEMBER_ROLES:
        raise AuthorizationError("Only student and employee accounts can be changed")


class AdminService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)
        self.workflow = Workflow(db)

    # ==================== INSTITUTIONS ====================

    async def list_institutions(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        conditions = []
        if status:
            try:
                conditions.append(User.status == UserStatus(status))
            except ValueError:
                raise ValidationError(f"Invalid status '{status}'", field="status")
        if search:
            term = f"%{search.strip()}%"
            conditions.append(or_(
                Institution.name.ilike(term),
                Institution.slug.ilike(term),
                Institution.contact_person_email.ilike(term),
            ))

        query = (
            select(Institution, User)
            .join(User, User.id == Institution.id)
            .where(*conditions)
            .order_by(Institution.created_at.desc())
        )
        page = max(1, page)
        page_size = max(1, min(MAX_PAGE_SIZE, page_size))
        total = await self.store.count(query)
        rows = await self.store.rows(query.offset((page - 1) * page_size).limit(page_size))
        items = [serialize_institution(institution, account) for institution, account in rows]
        return create_paginated_response(items, total, page, page_size)

    async def create_institution(self, session: SessionUser, data: InstitutionRegister) -> Dict[str, Any]:
        """Institution account created by a super-admin; approved from the start"""
        account, institution = await RegistrationService(self.db).create_institution(
            data, status=UserStatus.APPROVED, actor_id=session.user_id, action="institution.create",
        )
        logger.info(f"[Admin] Institution {institution.id} created by {session.user_id}")
        return serialize_institution(institution, account)

    async def set_institution_status(self, session: SessionUser, institution_id: str, action: str) -> Dict[str, Any]:
        target = INSTITUTION_STATUS_ACTIONS.get(action)
        if target is None:
            raise ValidationError("Action must be 'approve' or 'reject'", field="action")

        account = await self.store.first(
            select(User).where(User.id == institution_id, User.platform_role == PlatformRole.INSTITUTION)
        )
        institution = await self.store.get(Institution, institution_id)
        if account is None or institution is None:
            raise InstitutionNotFoundError(institution_id)

        await self.workflow.transition(account, EntityKind.INSTITUTION, target,
                                       actor_id=session.user_id, action=f"institution.{action}")
        await self.store.flush()
        return serialize_institution(institution, account)

    # ==================== USERS ====================

    async def list_users(
        self,
        role: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        conditions = []
        try:
            if role:
                conditions.append(User.platform_role == PlatformRole(role))
            if status:
                conditions.append(User.status == UserStatus(status))
        except ValueError as e:
            raise ValidationError(str(e))
        if search:
            term = f"%{search.strip()}%"
            conditions.append(or_(User.name.ilike(term), User.email.ilike(term), User.id_number.ilike(term)))

        query = select(User).where(*conditions).order_by(User.created_at.desc())
        return await paginate(self.db, query, page, page_size, serializer=serialize_user)

    async def get_user(self, user_id: str) -> User:
        user = await self.store.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def set_user_status(self, session: SessionUser, user_id: str, status: str) -> User:
        user = await self.get_user(user_id)
        ensure_modifiable_member(user)
        await self.workflow.transition(user, EntityKind.USER, status,
                                       actor_id=session.user_id, action=f"user.{status}")
        await self.store.flush()
        return user

    async def delete_user(self, session: SessionUser, user_id: str) -> None:
        """
        Hard delete a student or employee with their memberships and RSVPs.
        The email stays in used_emails so it can never register again.
        """
        user = await self.get_user(user_id)
        ensure_modifiable_member(user)

        if not await self.store.exists(select(UsedEmail).where(UsedEmail.email == user.email.lower())):
            self.store.add(UsedEmail(email=user.email.lower()))

        await self.store.execute(delete(RSVP).where(RSVP.user_id == user.id))
        await self.store.execute(delete(EventCheckIn).where(EventCheckIn.user_id == user.id))
        await self.store.execute(delete(ClubMembership).where(ClubMembership.user_id == user.id))
        await self.store.execute(delete(InstitutionMembership).where(InstitutionMembership.user_id == user.id))
        await self.store.execute(update(Club).where(Club.advisor_id == user.id).values(advisor_id=None))

        email = user.email
        await self.store.delete(user)
        await self.workflow.record(EntityKind.USER, user_id, actor_id=session.user_id,
                                   action="user.delete", details={"email": email})
        await self.store.flush()

    # ==================== STATS ====================

    async def stats(self) -> Dict[str, int]:
        async def count(model, *conditions) -> int:
            return await self.store.count(select(model.id).where(*conditions))

        return {
            "institutions": await count(User, User.platform_role == PlatformRole.INSTITUTION),
            "pending_institutions": await count(
                User, User.platform_role == PlatformRole.INSTITUTION, User.status == UserStatus.PENDING
            ),
            "students": await count(User, User.platform_role == PlatformRole.STUDENT),
            "employees": await count(User, User.platform_role.in_([PlatformRole.EMPLOYEE, PlatformRole.STAFF])),
            "clubs": await count(Club),
            "pending_clubs": await count(Club, Club.status == ClubStatus.PENDING),
            "events": await count(Event),
            "live_events": await count(Event, Event.status.in_(LIVE_STATUSES)),
            "announcements": await count(Announcement),
            "rsvps": await count(RSVP),
        }
