"""
Club Service - clubs, advisors and club membership

Handles:
- Institution-created clubs (approved immediately) and student proposals (pending)
- Club profile updates, status changes and hard deletion
- Advisor assignment (one advisor per club)
- Member add / reassign / remove, one officer per club
"""

from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from sqlalchemy import select, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    AuthorizationError,
    ClubNotFoundError,
    ConflictError,
    InstitutionNotFoundError,
    NotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.types import generate_uuid
from app.models import (
    User,
    UserStatus,
    EMPLOYEE_ROLES,
    InstitutionMembership,
    MembershipKind,
    MembershipStatus,
    Club,
    ClubMembership,
    ClubRole,
    ClubStatus,
    Event,
    Announcement,
    RSVP,
    EventCheckIn,
)
from app.modules.auth.session import SessionUser
from app.schemas.club import ClubOut, StudentClubCreate
from app.services.capabilities import Capabilities, Action
from app.services.storage_service import UploadStorage, UploadBatch
from app.services.store import EntityStore
from app.services.validators import clean_contact, require_text
from app.services.workflow import Workflow, EntityKind
from app.utils.pagination import paginate
from app.utils.slug import slugify


CLUB_STATUS_ACTIONS = {
    "approve": ClubStatus.APPROVED,
    "suspend": ClubStatus.SUSPENDED,
}


def serialize_club(club: Club, **extra: Any) -> Dict[str, Any]:
    data = ClubOut.model_validate(club).model_dump(mode="json")
    data.update(extra)
    return data


class ClubService:

    def __init__(self, db: AsyncSession, storage: Optional[UploadStorage] = None):
        self.db = db
        self.store = EntityStore(db)
        self.capabilities = Capabilities(db)
        self.workflow = Workflow(db)
        self.storage = storage

    # ==================== LOOKUP ====================

    async def get_club(self, club_id: str) -> Club:
        club = await self.store.get(Club, club_id)
        if club is None:
            raise ClubNotFoundError(club_id)
        return club

    async def get_institution_club(self, club_id: str, institution_id: Optional[str]) -> Club:
        """Club of the given institution; clubs of other institutions are 404"""
        club = await self.store.get(Club, club_id)
        if club is None or club.institution_id != institution_id:
            raise ClubNotFoundError(club_id)
        return club

    async def list_clubs(
        self,
        institution_id: Optional[str] = None,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        conditions = []
        if institution_id:
            conditions.append(Club.institution_id == institution_id)
        if status:
            try:
                conditions.append(Club.status == ClubStatus(status))
            except ValueError:
                raise ValidationError(f"Invalid club status '{status}'", field="status")
        if search:
            term = f"%{search.strip()}%"
            conditions.append(or_(Club.name.ilike(term), Club.acronym.ilike(term)))

        query = select(Club).where(*conditions).order_by(Club.created_at.desc())
        return await paginate(self.db, query, page, page_size, serializer=serialize_club)

    async def clubs_for_user(self, session: SessionUser) -> List[Dict[str, Any]]:
        """Clubs the caller advises or belongs to, with the caller's relation"""
        relations: Dict[str, str] = {}
        clubs: Dict[str, Club] = {}

        for club in await self.store.all(select(Club).where(Club.advisor_id == session.user_id)):
            clubs[club.id] = club
            relations[club.id] = "advisor"

        rows = await self.store.rows(
            select(Club, ClubMembership.role)
            .join(ClubMembership, ClubMembership.club_id == Club.id)
            .where(ClubMembership.user_id == session.user_id)
        )
        for club, role in rows:
            clubs.setdefault(club.id, club)
            relations.setdefault(club.id, role.value)

        ordered = sorted(clubs.values(), key=lambda c: c.name.lower())
        return [serialize_club(club, relation=relations[club.id]) for club in ordered]

    # ==================== CREATE / UPDATE ====================

    async def create_institution_club(
        self,
        session: SessionUser,
        name: str,
        acronym: str,
        email: str,
        phone: str,
        about: str,
        logo: Optional[UploadFile],
    ) -> Club:
        """Institution-created club; required fields include a logo. Starts approved."""
        if not await self.capabilities.is_approved_institution(session.institution_id):
            raise AuthorizationError("Institution is not approved")
        return await self._create_approved_club(session, session.institution_id, name, acronym,
                                                email, phone, about, logo)

    async def create_admin_club(
        self,
        session: SessionUser,
        institution_id: str,
        name: str,
        acronym: str,
        email: str,
        phone: str,
        about: str,
        logo: Optional[UploadFile],
    ) -> Club:
        """Super-admin creates an approved club for any approved institution"""
        if not await self.capabilities.is_approved_institution(institution_id):
            raise InstitutionNotFoundError(institution_id)
        return await self._create_approved_club(session, institution_id, name, acronym,
                                                email, phone, about, logo)

    async def _create_approved_club(
        self,
        session: SessionUser,
        institution_id: str,
        name: str,
        acronym: str,
        email: str,
        phone: str,
        about: str,
        logo: Optional[UploadFile],
    ) -> Club:
        name = require_text(name, "Club name is required", field="name")
        acronym = require_text(acronym, "Acronym is required", field="acronym")
        require_text(email, "Email is required", field="email")
        require_text(phone, "Phone is required", field="phone")
        about = require_text(about, "About is required", field="about")
        if logo is None:
            raise ValidationError("Logo is required", field="logo")
        contact = clean_contact(email, phone)

        # name and acronym are unique within an institution, case-insensitively
        if await self.store.exists(
            select(Club.id).where(
                Club.institution_id == institution_id,
                or_(func.lower(Club.name) == name.lower(), func.lower(Club.acronym) == acronym.lower()),
            )
        ):
            raise ConflictError("A club with this name or acronym already exists")

        async with UploadBatch(self.storage) as uploads:
            club = self.store.add(Club(
                id=generate_uuid(),
                institution_id=institution_id,
                acronym=acronym,
                slug=slugify(name),
                about=about,
                created_by_id=session.user_id,
                **contact,
            ))
            club.rename(name)
            club.logo_url = await uploads.save(logo, "clubs")
            await self.workflow.initial(club, EntityKind.CLUB, ClubStatus.APPROVED,
                                        actor_id=session.user_id, action="club.create")
            await self.store.flush("Club already exists")
        logger.info(f"[Club] Created approved club {club.id} for institution {institution_id}")
        return club

    async def create_student_club(self, session: SessionUser, data: StudentClubCreate) -> Club:
        """Student proposal: the club starts pending and the creator becomes its officer"""
        if not await self.capabilities.is_approved_institution(session.institution_id):
            raise AuthorizationError("Your institution is not approved")

        contact = clean_contact(data.email, data.phone)
        club = self.store.add(Club(
            id=generate_uuid(),
            institution_id=session.institution_id,
            acronym=data.acronym,
            slug=slugify(data.name),
            about=data.about,
            created_by_id=session.user_id,
            **contact,
        ))
        club.rename(data.name)
        await self.workflow.initial(club, EntityKind.CLUB, ClubStatus.PENDING,
                                    actor_id=session.user_id, action="club.propose")
        self.store.add(ClubMembership(
            id=generate_uuid(),
            club_id=club.id,
            user_id=session.user_id,
            role=ClubRole.OFFICER,
        ))
        await self.store.flush("Club already exists")
        return club

    async def update_club(
        self,
        session: SessionUser,
        club: Club,
        fields: Dict[str, Optional[str]],
        logo: Optional[UploadFile] = None,
    ) -> Club:
        """
        Update profile fields. Keys with None values are left unchanged.
        A new logo replaces the old one, which is deleted after the write.
        """
        await self.capabilities.authorize(Action.UPDATE_CLUB, session, club)

        name = fields.get("name")
        if name is not None:
            name = require_text(name, "Club name is required", field="name")
            club.rename(name)
            club.slug = slugify(name)
        for key in ("acronym", "about"):
            if fields.get(key) is not None:
                setattr(club, key, fields[key].strip() or None)
        if fields.get("email") is not None or fields.get("phone") is not None:
            contact = clean_contact(fields.get("email"), fields.get("phone"))
            for key, value in contact.items():
                if fields.get(key) is not None:
                    setattr(club, key, value)

        old_logo = None
        async with UploadBatch(self.storage) as uploads:
            if logo is not None:
                old_logo = club.logo_url
                club.logo_url = await uploads.save(logo, "clubs")
            await self.store.flush("Club already exists")

        if old_logo:
            await self.storage.delete(old_logo)
        return club

    async def delete_club(self, session: SessionUser, club: Club) -> None:
        """Hard delete the club with its memberships, posts and their RSVPs"""
        event_ids = [e.id for e in await self.store.all(select(Event).where(Event.club_id == club.id))]
        images: List[str] = [club.logo_url] if club.logo_url else []

        if event_ids:
            await self.store.execute(delete(RSVP).where(RSVP.event_id.in_(event_ids)))
            await self.store.execute(delete(EventCheckIn).where(EventCheckIn.event_id.in_(event_ids)))
        for model in (Event, Announcement):
            for post in await self.store.all(select(model).where(model.club_id == club.id)):
                if post.image_url:
                    images.append(post.image_url)
                await self.store.delete(post)
        await self.store.execute(delete(ClubMembership).where(ClubMembership.club_id == club.id))

        club_id = club.id
        await self.store.delete(club)
        await self.workflow.record(EntityKind.CLUB, club_id, actor_id=session.user_id, action="club.delete",
                                   details={"name": club.name})
        await self.store.flush()

        for url in images:
            await self.storage.delete(url)

    # ==================== STATUS ====================

    async def set_status(self, session: SessionUser, club: Club, action: str) -> Club:
        """approve | suspend, by the owning institution or a super-admin"""
        await self.capabilities.authorize(Action.SET_CLUB_STATUS, session, club)
        target = CLUB_STATUS_ACTIONS.get(action)
        if target is None:
            raise ValidationError("Action must be 'approve' or 'suspend'", field="action")
        await self.workflow.transition(club, EntityKind.CLUB, target,
                                       actor_id=session.user_id, action=f"club.{action}")
        await self.store.flush()
        return club

    async def approve_pending(self, session: SessionUser, club: Club) -> Club:
        await self.capabilities.authorize(Action.SET_CLUB_STATUS, session, club)
        await self.workflow.transition(club, EntityKind.CLUB, ClubStatus.APPROVED,
                                       actor_id=session.user_id, action="club.approve",
                                       require_from=[ClubStatus.PENDING])
        await self.store.flush()
        return club

    # ==================== ADVISORS ====================

    async def candidate_advisors(self, institution_id: str) -> List[Dict[str, Any]]:
        """Approved, active employees of the institution"""
        rows = await self.store.rows(
            select(User, InstitutionMembership.is_staff)
            .join(InstitutionMembership, InstitutionMembership.user_id == User.id)
            .where(
                InstitutionMembership.institution_id == institution_id,
                InstitutionMembership.kind == MembershipKind.EMPLOYEE,
                InstitutionMembership.status == MembershipStatus.APPROVED,
                User.status == UserStatus.ACTIVE,
            )
            .order_by(User.name)
        )
        return [
            {"user_id": user.id, "name": user.name, "email": user.email, "is_staff": bool(is_staff)}
            for user, is_staff in rows
        ]

    async def assign_advisor(self, session: SessionUser, club: Club, employee_id: str) -> Club:
        employee = await self.store.first(
            select(User)
            .join(InstitutionMembership, InstitutionMembership.user_id == User.id)
            .where(
                User.id == employee_id,
                User.platform_role.in_(EMPLOYEE_ROLES),
                InstitutionMembership.institution_id == club.institution_id,
                InstitutionMembership.status == MembershipStatus.APPROVED,
            )
        )
        if employee is None:
            raise NotFoundError("Employee not found in this institution", code="EMPLOYEE_NOT_FOUND")
        if club.advisor_id == employee.id:
            raise ConflictError("Employee is already the advisor of this club")
        if club.advisor_id:
            raise ConflictError("Club already has an advisor")

        club.advisor_id = employee.id
        await self.workflow.record(EntityKind.CLUB, club.id, actor_id=session.user_id,
                                   action="club.advisor.assign", details={"advisor_id": employee.id})
        await self.store.flush()
        return club

    async def unassign_advisor(self, session: SessionUser, club: Club) -> Club:
        if not club.advisor_id:
            raise NotFoundError("Club has no advisor assigned", code="ADVISOR_NOT_FOUND")
        previous = club.advisor_id
        club.advisor_id = None
        await self.workflow.record(EntityKind.CLUB, club.id, actor_id=session.user_id,
                                   action="club.advisor.unassign", details={"advisor_id": previous})
        await self.store.flush()
        return club

    # ==================== MEMBERS ====================

    async def list_members(self, club: Club, session: Optional[SessionUser] = None) -> List[Dict[str, Any]]:
        """Roster, officers first. With a session the caller must be able to view the club"""
        if session is not None:
            await self.capabilities.authorize(Action.VIEW_POSTS, session, club)
        rows = await self.store.rows(
            select(ClubMembership, User)
            .join(User, User.id == ClubMembership.user_id)
            .where(ClubMembership.club_id == club.id)
            .order_by(ClubMembership.role.desc(), User.name)
        )
        return [
            {
                "user_id": user.id,
                "name": user.name,
                "email": user.email,
                "role": membership.role.value,
                "joined_at": membership.joined_at.isoformat() if membership.joined_at else None,
            }
            for membership, user in rows
        ]

    async def addable_students(self, session: SessionUser, club: Club) -> List[Dict[str, Any]]:
        """Approved students of the club's institution who are not members yet"""
        await self.capabilities.authorize(Action.ADD_MEMBER, session, club)
        members = select(ClubMembership.user_id).where(ClubMembership.club_id == club.id)
        students = await self.store.all(
            select(User)
            .join(InstitutionMembership, InstitutionMembership.user_id == User.id)
            .where(
                InstitutionMembership.institution_id == club.institution_id,
                InstitutionMembership.kind == MembershipKind.STUDENT,
                InstitutionMembership.status == MembershipStatus.APPROVED,
                User.status == UserStatus.ACTIVE,
                User.id.not_in(members),
            )
            .order_by(User.name)
        )
        return [{"user_id": u.id, "name": u.name, "email": u.email, "id_number": u.id_number} for u in students]

    async def add_member(self, session: SessionUser, club: Club, user_id: str) -> ClubMembership:
        await self.capabilities.authorize(Action.ADD_MEMBER, session, club)

        student = await self.store.first(
            select(User)
            .join(InstitutionMembership, InstitutionMembership.user_id == User.id)
            .where(
                User.id == user_id,
                InstitutionMembership.institution_id == club.institution_id,
                InstitutionMembership.kind == MembershipKind.STUDENT,
                InstitutionMembership.status == MembershipStatus.APPROVED,
            )
        )
        if student is None:
            raise NotFoundError("Student not found in this institution", code="STUDENT_NOT_FOUND")
        if await self.capabilities.is_member_of(student.id, club.id):
            raise ConflictError("Student is already a member of this club")

        membership = self.store.add(ClubMembership(
            id=generate_uuid(),
            club_id=club.id,
            user_id=student.id,
            role=ClubRole.MEMBER,
        ))
        await self.workflow.record(EntityKind.CLUB, club.id, actor_id=session.user_id,
                                   action="club.member.add", details={"user_id": student.id})
        await self.store.flush("Student is already a member of this club")
        return membership

    async def _membership_or_404(self, club: Club, member_id: str) -> ClubMembership:
        membership = await self.store.first(
            select(ClubMembership).where(
                ClubMembership.club_id == club.id,
                ClubMembership.user_id == member_id,
            )
        )
        if membership is None:
            raise NotFoundError("Member not found in this club", code="MEMBER_NOT_FOUND")
        return membership

    async def reassign_member(self, session: SessionUser, club: Club, member_id: str, role: ClubRole) -> ClubMembership:
        """Change a member's role; promoting an officer demotes the current one"""
        await self.capabilities.authorize(Action.REASSIGN_MEMBER, session, club)
        membership = await self._membership_or_404(club, member_id)
        if membership.role == role:
            return membership

        demoted: List[str] = []
        if role == ClubRole.OFFICER:
            officers = await self.store.all(
                select(ClubMembership).where(
                    ClubMembership.club_id == club.id,
                    ClubMembership.role == ClubRole.OFFICER,
                    ClubMembership.id != membership.id,
                )
            )
            for officer in officers:
                officer.role = ClubRole.MEMBER
                demoted.append(officer.user_id)

        previous = membership.role
        membership.role = role
        await self.workflow.record(
            EntityKind.CLUB, club.id, actor_id=session.user_id, action="club.member.reassign",
            details={"user_id": member_id, "from": previous.value, "to": role.value, "demoted": demoted},
        )
        await self.store.flush()
        logger.info(f"[Club] {member_id} is now {role.value} of {club.id}")
        return membership

    async def remove_member(self, session: SessionUser, club: Club, member_id: str) -> None:
        await self.capabilities.authorize(Action.REMOVE_MEMBER, session, club)
        membership = await self._membership_or_404(club, member_id)
        await self.store.delete(membership)
        await self.workflow.record(EntityKind.CLUB, club.id, actor_id=session.user_id,
                                   action="club.member.remove", details={"user_id": member_id})
        await self.store.flush()
