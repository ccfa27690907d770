"""
Student endpoints: club membership, proposals, posting and RSVP'd events.
"""
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.api.deps import get_club_service, get_post_service, post_draft_form
from app.core.database import get_db
from app.modules.auth.dependencies import require_student
from app.modules.auth.session import SessionUser
from app.schemas.club import MemberAddRequest, StudentClubCreate
from app.schemas.content import PostDraft, serialize_post
from app.services.club_service import ClubService, serialize_club
from app.services.post_service import PostService
from app.services.rsvp_service import RSVPService
from app.services.storage_service import uploaded

router = APIRouter(prefix="/student", tags=["Student"])


# ==================== CLUBS ====================

@router.get("/clubs")
async def my_clubs(
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_student)
):
    return {"ok": True, "clubs": await service.clubs_for_user(session)}


@router.post("/clubs", status_code=status.HTTP_201_CREATED)
async def propose_club(
    body: StudentClubCreate,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_student)
):
    """
    Propose a club. It stays pending until the institution approves it;
    the proposer becomes its officer.
    """
    club = await service.create_student_club(session, body)
    return {"ok": True, "club": serialize_club(club, relation="officer")}


@router.patch("/clubs/{club_id}")
async def update_club(
    club_id: str,
    name: Optional[str] = Form(None),
    acronym: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    about: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_student)
):
    """Officers only"""
    club = await service.get_institution_club(club_id, session.institution_id)
    fields = {"name": name, "acronym": acronym, "email": email, "phone": phone, "about": about}
    club = await service.update_club(session, club, fields, uploaded(logo))
    return {"ok": True, "club": serialize_club(club)}


@router.get("/clubs/{club_id}/students")
async def addable_students(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_student)
):
    """Students of the institution who can still be added to the club"""
    club = await service.get_institution_club(club_id, session.institution_id)
    return {"ok": True, "students": await service.addable_students(session, club)}


@router.post("/clubs/{club_id}/members", status_code=status.HTTP_201_CREATED)
async def add_member(
    club_id: str,
    body: MemberAddRequest,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_student)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    membership = await service.add_member(session, club, body.user_id)
    return {"ok": True, "member": {"user_id": membership.user_id, "role": membership.role.value}}


# ==================== POSTS ====================

@router.get("/clubs/{club_id}/posts")
async def list_posts(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_student)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    return {"ok": True, "posts": await posts.list_club_posts(session, club)}


@router.post("/clubs/{club_id}/posts", status_code=status.HTTP_201_CREATED)
async def create_post(
    club_id: str,
    draft: PostDraft = Depends(post_draft_form),
    image: Optional[UploadFile] = File(None),
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_student)
):
    """Posts start pending until the advisor approves them; officer events need tags"""
    club = await service.get_institution_club(club_id, session.institution_id)
    post = await posts.create_post(session, club, draft, uploaded(image), require_tags_for_officers=True)
    return {"ok": True, "post": serialize_post(post)}


@router.delete("/clubs/{club_id}/posts/{post_id}")
async def delete_post(
    club_id: str,
    post_id: str,
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_student)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    await posts.delete_post(session, club, await posts.get_club_post(club, post_id))
    return {"ok": True}


# ==================== EVENTS ====================

@router.get("/my-events")
async def my_events(
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_student)
):
    return {"ok": True, "events": await RSVPService(db).my_events(session)}
