"""
Unit Tests for relationship predicates and the club action policy
"""
import pytest

from app.core.exceptions import AuthorizationError
from app.models import UserStatus
from app.services.capabilities import Capabilities, Action, Grant, POLICY

from conftest import session_for


@pytest.fixture
async def campus(factory):
    """Institution with one club: advisor, officer, member, staff and an outsider"""
    institution = await factory.institution()
    advisor = await factory.employee(institution)
    staff = await factory.employee(institution, is_staff=True)
    officer = await factory.student(institution)
    member = await factory.student(institution)
    outsider = await factory.student(institution)
    club = await factory.club(institution, advisor=advisor, officers=[officer], members=[member])
    return {
        "institution": institution,
        "advisor": advisor,
        "staff": staff,
        "officer": officer,
        "member": member,
        "outsider": outsider,
        "club": club,
    }


class TestPredicates:

    async def test_relationship_predicates(self, db_session, campus):
        capabilities = Capabilities(db_session)
        club = campus["club"]

        assert await capabilities.is_advisor_of(campus["advisor"].id, club.id)
        assert not await capabilities.is_advisor_of(campus["officer"].id, club.id)
        assert await capabilities.is_officer_of(campus["officer"].id, club.id)
        assert not await capabilities.is_officer_of(campus["member"].id, club.id)
        assert await capabilities.is_member_of(campus["member"].id, club.id)
        assert await capabilities.is_member_of(campus["officer"].id, club.id)
        assert not await capabilities.is_member_of(campus["outsider"].id, club.id)

    async def test_institution_approval_and_staff(self, db_session, factory, campus):
        pending = await factory.institution(name="Pending College", status=UserStatus.PENDING)
        capabilities = Capabilities(db_session)

        assert await capabilities.is_approved_institution(campus["institution"].id)
        assert not await capabilities.is_approved_institution(pending.id)
        assert not await capabilities.is_approved_institution(None)
        assert await capabilities.is_institution_staff(campus["staff"].id, campus["institution"].id)
        assert not await capabilities.is_institution_staff(campus["advisor"].id, campus["institution"].id)


class TestResolveCapability:

    async def test_strongest_grant(self, db_session, factory, campus):
        capabilities = Capabilities(db_session)
        club = campus["club"]
        inst_id = campus["institution"].id
        admin = await factory.super_admin()

        assert await capabilities.resolve_capability(session_for(admin), club) == Grant.SUPER_ADMIN
        assert await capabilities.resolve_capability(session_for(campus["institution"]), club) == Grant.INSTITUTION
        assert await capabilities.resolve_capability(session_for(campus["advisor"], inst_id), club) == Grant.ADVISOR
        assert await capabilities.resolve_capability(session_for(campus["staff"], inst_id), club) == Grant.INSTITUTION_STAFF
        assert await capabilities.resolve_capability(session_for(campus["officer"], inst_id), club) == Grant.OFFICER
        assert await capabilities.resolve_capability(session_for(campus["member"], inst_id), club) == Grant.MEMBER
        assert await capabilities.resolve_capability(session_for(campus["outsider"], inst_id), club) is None

    async def test_other_institution_has_no_grant(self, db_session, factory, campus):
        other = await factory.institution(name="Bicol University")
        capabilities = Capabilities(db_session)

        assert await capabilities.resolve_capability(session_for(other), campus["club"]) is None


class TestAuthorize:

    async def test_member_can_post_but_not_delete(self, db_session, campus):
        capabilities = Capabilities(db_session)
        session = session_for(campus["member"], campus["institution"].id)

        assert await capabilities.authorize(Action.CREATE_POST, session, campus["club"]) == Grant.MEMBER
        with pytest.raises(AuthorizationError) as exc_info:
            await capabilities.authorize(Action.DELETE_POST, session, campus["club"])
        assert exc_info.value.message == "Only the club advisor or officer can delete posts"

    async def test_only_advisor_reassigns(self, db_session, campus):
        capabilities = Capabilities(db_session)
        inst_id = campus["institution"].id

        assert await capabilities.authorize(
            Action.REASSIGN_MEMBER, session_for(campus["advisor"], inst_id), campus["club"]
        ) == Grant.ADVISOR
        for name in ("officer", "member", "staff"):
            with pytest.raises(AuthorizationError):
                await capabilities.authorize(Action.REASSIGN_MEMBER, session_for(campus[name], inst_id), campus["club"])
        with pytest.raises(AuthorizationError):
            await capabilities.authorize(Action.REASSIGN_MEMBER, session_for(campus["institution"]), campus["club"])

    async def test_officer_picks_officer_grant_for_posts(self, db_session, campus):
        capabilities = Capabilities(db_session)
        session = session_for(campus["officer"], campus["institution"].id)

        # officer is also a member; the stronger grant is returned
        assert await capabilities.authorize(Action.CREATE_POST, session, campus["club"]) == Grant.OFFICER

    async def test_institution_reviews_but_cannot_post(self, db_session, campus):
        capabilities = Capabilities(db_session)
        session = session_for(campus["institution"])

        assert await capabilities.authorize(Action.REVIEW_POST, session, campus["club"]) == Grant.INSTITUTION
        with pytest.raises(AuthorizationError):
            await capabilities.authorize(Action.CREATE_POST, session, campus["club"])

    async def test_staff_reviews_posts(self, db_session, campus):
        capabilities = Capabilities(db_session)
        session = session_for(campus["staff"], campus["institution"].id, is_staff=True)

        assert await capabilities.authorize(Action.REVIEW_POST, session, campus["club"]) == Grant.INSTITUTION_STAFF

    def test_every_action_has_a_policy(self):
        assert set(POLICY) == set(Action)
