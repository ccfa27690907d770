"""
Role-Capability Checks
======================

Predicates over relationships ("is X the advisor of club C?") plus a
declarative policy table that says which relationships grant each club
action. Endpoints call ``authorize(action, session, club)`` instead of
re-implementing the checks.

    Action            Granted to
    ----------------  -----------------------------------------------
    VIEW_POSTS        advisor, officer, member, owning institution, institution staff
    CREATE_POST       advisor, officer, member
    EDIT_POST         advisor, officer, member
    REVIEW_POST       advisor, owning institution, institution staff
    SET_VISIBILITY    advisor, officer
    DELETE_POST       advisor, officer
    UPDATE_CLUB       advisor, officer, owning institution
    ADD_MEMBER        advisor, officer
    REASSIGN_MEMBER   advisor
    REMOVE_MEMBER     advisor
    SET_CLUB_STATUS   owning institution, super admin
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Set

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError
from app.models import (
    User,
    PlatformRole,
    APPROVED_INSTITUTION_STATUSES,
    Club,
    ClubMembership,
    ClubRole,
    InstitutionMembership,
    MembershipStatus,
)
from app.modules.auth.session import SessionUser
from app.services.store import EntityStore


class Grant(str, Enum):
    """Relationship through which a caller holds a capability on a club"""
    SUPER_ADMIN = "super_admin"
    INSTITUTION = "institution"
    ADVISOR = "advisor"
    INSTITUTION_STAFF = "institution_staff"
    OFFICER = "officer"
    MEMBER = "member"


# Strongest first; the first held grant names the caller's capability
GRANT_PRIORITY: List[Grant] = [
    Grant.SUPER_ADMIN,
    Grant.INSTITUTION,
    Grant.ADVISOR,
    Grant.INSTITUTION_STAFF,
    Grant.OFFICER,
    Grant.MEMBER,
]


class Action(str, Enum):
    VIEW_POSTS = "view_posts"
    CREATE_POST = "create_post"
    EDIT_POST = "edit_post"
    REVIEW_POST = "review_post"
    SET_POST_VISIBILITY = "set_post_visibility"
    DELETE_POST = "delete_post"
    UPDATE_CLUB = "update_club"
    ADD_MEMBER = "add_member"
    REASSIGN_MEMBER = "reassign_member"
    REMOVE_MEMBER = "remove_member"
    SET_CLUB_STATUS = "set_club_status"


POLICY: Dict[Action, FrozenSet[Grant]] = {
    Action.VIEW_POSTS: frozenset({Grant.ADVISOR, Grant.OFFICER, Grant.MEMBER, Grant.INSTITUTION, Grant.INSTITUTION_STAFF}),
    Action.CREATE_POST: frozenset({Grant.ADVISOR, Grant.OFFICER, Grant.MEMBER}),
    Action.EDIT_POST: frozenset({Grant.ADVISOR, Grant.OFFICER, Grant.MEMBER}),
    Action.REVIEW_POST: frozenset({Grant.ADVISOR, Grant.INSTITUTION, Grant.INSTITUTION_STAFF}),
    Action.SET_POST_VISIBILITY: frozenset({Grant.ADVISOR, Grant.OFFICER}),
    Action.DELETE_POST: frozenset({Grant.ADVISOR, Grant.OFFICER}),
    Action.UPDATE_CLUB: frozenset({Grant.ADVISOR, Grant.OFFICER, Grant.INSTITUTION}),
    Action.ADD_MEMBER: frozenset({Grant.ADVISOR, Grant.OFFICER}),
    Action.REASSIGN_MEMBER: frozenset({Grant.ADVISOR}),
    Action.REMOVE_MEMBER: frozenset({Grant.ADVISOR}),
    Action.SET_CLUB_STATUS: frozenset({Grant.INSTITUTION, Grant.SUPER_ADMIN}),
}

DENIAL_MESSAGES: Dict[Action, str] = {
    Action.VIEW_POSTS: "You are not an advisor or member of this club",
    Action.CREATE_POST: "You are not an advisor or member of this club",
    Action.EDIT_POST: "You are not an advisor or member of this club",
    Action.REVIEW_POST: "Only the club advisor or institution staff can review posts",
    Action.SET_POST_VISIBILITY: "Only the club advisor or officer can change post status",
    Action.DELETE_POST: "Only the club advisor or officer can delete posts",
    Action.UPDATE_CLUB: "Only the club advisor or officer can update this club",
    Action.ADD_MEMBER: "Only the club advisor or officer can add members",
    Action.REASSIGN_MEMBER: "Only the club advisor can reassign member roles",
    Action.REMOVE_MEMBER: "Only the club advisor can remove members",
    Action.SET_CLUB_STATUS: "Not allowed to change this club's status",
}


def is_super_admin(role) -> bool:
    return role == PlatformRole.SUPER_ADMIN


def is_institution_admin_of(session: SessionUser, institution_id: Optional[str]) -> bool:
    return (
        session.role == PlatformRole.INSTITUTION
        and institution_id is not None
        and session.institution_id == institution_id
    )


class Capabilities:
    """Relationship predicates, one query each"""

    def __init__(self, db: AsyncSession):
        self.store = EntityStore(db)

    async def is_advisor_of(self, user_id: str, club_id: str) -> bool:
        return await self.store.exists(
            select(Club.id).where(Club.id == club_id, Club.advisor_id == user_id)
        )

    async def is_officer_of(self, user_id: str, club_id: str) -> bool:
        return await self.store.exists(
            select(ClubMembership.id).where(
                ClubMembership.club_id == club_id,
                ClubMembership.user_id == user_id,
                ClubMembership.role == ClubRole.OFFICER,
            )
        )

    async def is_member_of(self, user_id: str, club_id: str) -> bool:
        return await self.store.exists(
            select(ClubMembership.id).where(
                ClubMembership.club_id == club_id,
                ClubMembership.user_id == user_id,
            )
        )

    async def is_approved_institution(self, institution_id: Optional[str]) -> bool:
        if not institution_id:
            return False
        return await self.store.exists(
            select(User.id).where(
                User.id == institution_id,
                User.platform_role == PlatformRole.INSTITUTION,
                User.status.in_(APPROVED_INSTITUTION_STATUSES),
            )
        )

    async def is_institution_staff(self, user_id: str, institution_id: str) -> bool:
        return await self.store.exists(
            select(InstitutionMembership.id).where(
                InstitutionMembership.user_id == user_id,
                InstitutionMembership.institution_id == institution_id,
                InstitutionMembership.is_staff.is_(True),
                InstitutionMembership.status == MembershipStatus.APPROVED,
            )
        )

    async def grants_for(self, session: SessionUser, club: Club) -> Set[Grant]:
        """Every relationship through which the caller relates to the club"""
        grants: Set[Grant] = set()

        if is_super_admin(session.role):
            grants.add(Grant.SUPER_ADMIN)
        if is_institution_admin_of(session, club.institution_id):
            grants.add(Grant.INSTITUTION)
        if club.advisor_id and club.advisor_id == session.user_id:
            grants.add(Grant.ADVISOR)

        if session.role in (PlatformRole.STUDENT, PlatformRole.EMPLOYEE, PlatformRole.STAFF):
            membership = await self.store.first(
                select(ClubMembership).where(
                    ClubMembership.club_id == club.id,
                    ClubMembership.user_id == session.user_id,
                )
            )
            if membership is not None:
                grants.add(Grant.MEMBER)
                if membership.role == ClubRole.OFFICER:
                    grants.add(Grant.OFFICER)

            if session.is_employee and session.institution_id == club.institution_id:
                if await self.is_institution_staff(session.user_id, club.institution_id):
                    grants.add(Grant.INSTITUTION_STAFF)

        return grants

    async def resolve_capability(self, session: SessionUser, club: Club) -> Optional[Grant]:
        """Strongest relationship the caller holds on the club, if any"""
        grants = await self.grants_for(session, club)
        for grant in GRANT_PRIORITY:
            if grant in grants:
                return grant
        return None

    async def authorize(self, action: Action, session: SessionUser, club: Club) -> Grant:
        """
        Check the policy table for ``action``.

        Returns the strongest grant that allows the action, which callers
        use to pick initial statuses (advisor posts are auto-approved).

        Raises:
            AuthorizationError: no held relationship grants the action
        """
        allowed = POLICY[action]
        grants = await self.grants_for(session, club)
        for grant in GRANT_PRIORITY:
            if grant in grants and grant in allowed:
                return grant
        raise AuthorizationError(DENIAL_MESSAGES[action])
