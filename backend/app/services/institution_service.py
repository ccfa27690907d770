"""
Institution Service - an institution-admin's view of its own institution

Handles:
- Profile with headline counts
- Member (student / employee) listing, enable / disable and rejection
- Staff flag on approved employees
"""

from typing import Any, Dict, Optional

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ConflictError,
    InstitutionNotFoundError,
    NotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.models import (
    User,
    UserStatus,
    Institution,
    InstitutionMembership,
    MembershipKind,
    MembershipStatus,
    College,
    Department,
    Program,
    Club,
    Event,
    PostStatus,
)
from app.modules.auth.session import SessionUser
from app.schemas.organization import InstitutionOut
from app.services.store import EntityStore
from app.services.workflow import Workflow, EntityKind
from app.utils.pagination import create_paginated_response, MAX_PAGE_SIZE


def serialize_member(user: User, membership: InstitutionMembership) -> Dict[str, Any]:
    return {
        "user_id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "id_number": user.id_number,
        "role": user.platform_role.value,
        "status": user.status.value,
        "kind": membership.kind.value,
        "membership_status": membership.status.value,
        "is_staff": membership.is_staff,
        "college_id": membership.college_id,
        "department_id": membership.department_id,
        "program_id": membership.program_id,
        "created_at": user.created_at.isoformat(),
    }


class InstitutionService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)
        self.workflow = Workflow(db)

    async def profile(self, institution_id: str) -> Dict[str, Any]:
        institution = await self.store.get(Institution, institution_id)
        account = await self.store.get(User, institution_id)
        if institution is None or account is None:
            raise InstitutionNotFoundError(institution_id)

        async def count(model, *conditions) -> int:
            return await self.store.count(select(model.id).where(model.institution_id == institution_id, *conditions))

        data = InstitutionOut.model_validate(institution).model_dump(mode="json")
        data["status"] = account.status.value
        data["counts"] = {
            "colleges": await count(College),
            "departments": await count(Department),
            "programs": await count(Program),
            "clubs": await count(Club),
            "students": await count(InstitutionMembership, InstitutionMembership.kind == MembershipKind.STUDENT),
            "employees": await count(InstitutionMembership, InstitutionMembership.kind == MembershipKind.EMPLOYEE),
            "events": await count(Event, Event.status != PostStatus.HIDDEN),
        }
        return data

    # ==================== MEMBERS ====================

    async def list_members(
        self,
        institution_id: str,
        kind: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        conditions = [InstitutionMembership.institution_id == institution_id]
        try:
            if kind:
                conditions.append(InstitutionMembership.kind == MembershipKind(kind))
            if status:
                conditions.append(User.status == UserStatus(status))
        except ValueError as e:
            raise ValidationError(str(e))
        if search:
            term = f"%{search.strip()}%"
            conditions.append(or_(User.name.ilike(term), User.email.ilike(term), User.id_number.ilike(term)))

        query = (
            select(User, InstitutionMembership)
            .join(InstitutionMembership, InstitutionMembership.user_id == User.id)
            .where(*conditions)
            .order_by(User.name)
        )
        page = max(1, page)
        page_size = max(1, min(MAX_PAGE_SIZE, page_size))
        total = await self.store.count(query)
        rows = await self.store.rows(query.offset((page - 1) * page_size).limit(page_size))
        return create_paginated_response([serialize_member(u, m) for u, m in rows], total, page, page_size)

    async def get_member(self, institution_id: str, user_id: str):
        """(user, membership) of this institution, 404 otherwise"""
        rows = await self.store.rows(
            select(User, InstitutionMembership)
            .join(InstitutionMembership, InstitutionMembership.user_id == User.id)
            .where(User.id == user_id, InstitutionMembership.institution_id == institution_id)
        )
        if not rows:
            raise UserNotFoundError(user_id)
        return rows[0]

    async def set_member_status(self, session: SessionUser, user_id: str, status: str) -> Dict[str, Any]:
        user, membership = await self.get_member(session.institution_id, user_id)
        await self.workflow.transition(user, EntityKind.USER, status,
                                       actor_id=session.user_id, action=f"user.{status}")
        await self.store.flush()
        return serialize_member(user, membership)

    async def reject_member(self, session: SessionUser, user_id: str) -> Dict[str, Any]:
        """Reject the membership; the account can no longer sign in"""
        user, membership = await self.get_member(session.institution_id, user_id)
        if membership.status == MembershipStatus.REJECTED:
            raise ConflictError("Membership is already rejected")
        previous = membership.status
        membership.status = MembershipStatus.REJECTED
        membership.is_staff = False
        await self.workflow.record(EntityKind.USER, user.id, actor_id=session.user_id, action="membership.reject",
                                   details={"from": previous.value, "institution_id": session.institution_id})
        await self.store.flush()
        return serialize_member(user, membership)

    # ==================== STAFF ====================

    async def _approved_employee(self, institution_id: str, user_id: str):
        user, membership = await self.get_member(institution_id, user_id)
        if membership.kind != MembershipKind.EMPLOYEE or membership.status != MembershipStatus.APPROVED:
            raise NotFoundError("Employee not found in this institution", code="EMPLOYEE_NOT_FOUND")
        return user, membership

    async def assign_staff(self, session: SessionUser, user_id: str) -> Dict[str, Any]:
        user, membership = await self._approved_employee(session.institution_id, user_id)
        if membership.is_staff:
            raise ConflictError("Employee is already staff")
        membership.is_staff = True
        await self.workflow.record(EntityKind.USER, user.id, actor_id=session.user_id, action="staff.assign")
        await self.store.flush()
        return serialize_member(user, membership)

    async def remove_staff(self, session: SessionUser, user_id: str) -> Dict[str, Any]:
        user, membership = await self._approved_employee(session.institution_id, user_id)
        if not membership.is_staff:
            raise NotFoundError("Employee is not staff", code="STAFF_NOT_FOUND")
        membership.is_staff = False
        await self.workflow.record(EntityKind.USER, user.id, actor_id=session.user_id, action="staff.remove")
        await self.store.flush()
        return serialize_member(user, membership)
