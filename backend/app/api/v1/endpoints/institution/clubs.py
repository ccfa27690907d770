"""
Institution Club endpoints: clubs, advisors and post review.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import Optional

from app.api.deps import get_club_service, get_post_service
from app.modules.auth.dependencies import require_institution
from app.modules.auth.session import SessionUser
from app.schemas.common import ClubStatusRequest, ReviewRequest
from app.schemas.content import serialize_post
from app.services.club_service import ClubService, serialize_club
from app.services.post_service import PostService
from app.services.storage_service import uploaded

router = APIRouter()


@router.get("")
async def list_clubs(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    result = await service.list_clubs(session.institution_id, status=status, search=search, page=page, page_size=page_size)
    return {"ok": True, **result}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_club(
    name: str = Form(""),
    acronym: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    about: str = Form(""),
    logo: Optional[UploadFile] = File(None),
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    """Create an approved club (logo required)"""
    club = await service.create_institution_club(session, name, acronym, email, phone, about, uploaded(logo))
    return {"ok": True, "club": serialize_club(club)}


@router.get("/{club_id}")
async def get_club(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    return {"ok": True, "club": serialize_club(club), "members": await service.list_members(club)}


@router.patch("/{club_id}")
async def update_club(
    club_id: str,
    name: Optional[str] = Form(None),
    acronym: Optional[str] = Form(None),
    email: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    about: Optional[str] = Form(None),
    logo: Optional[UploadFile] = File(None),
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    fields = {"name": name, "acronym": acronym, "email": email, "phone": phone, "about": about}
    club = await service.update_club(session, club, fields, uploaded(logo))
    return {"ok": True, "club": serialize_club(club)}


@router.delete("/{club_id}")
async def delete_club(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    """Hard delete; the logo and post images are removed"""
    club = await service.get_institution_club(club_id, session.institution_id)
    await service.delete_club(session, club)
    return {"ok": True}


@router.patch("/{club_id}/approve")
async def approve_club(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    """Approve a pending student-proposed club"""
    club = await service.get_institution_club(club_id, session.institution_id)
    club = await service.approve_pending(session, club)
    return {"ok": True, "club": serialize_club(club)}


@router.patch("/{club_id}/status")
async def set_club_status(
    club_id: str,
    body: ClubStatusRequest,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    club = await service.set_status(session, club, body.action)
    return {"ok": True, "club": serialize_club(club)}


# ==================== ADVISORS ====================

@router.get("/{club_id}/employees")
async def candidate_advisors(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    """Approved employees who can be assigned as advisor"""
    club = await service.get_institution_club(club_id, session.institution_id)
    return {
        "ok": True,
        "advisor_id": club.advisor_id,
        "employees": await service.candidate_advisors(session.institution_id),
    }


@router.post("/{club_id}/advisors/{employee_id}/assign")
async def assign_advisor(
    club_id: str,
    employee_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    club = await service.assign_advisor(session, club, employee_id)
    return {"ok": True, "club": serialize_club(club)}


@router.delete("/{club_id}/advisors/unassign")
async def unassign_advisor(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_institution)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    club = await service.unassign_advisor(session, club)
    return {"ok": True, "club": serialize_club(club)}


# ==================== POSTS ====================

@router.get("/{club_id}/posts")
async def list_club_posts(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_institution)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    return {"ok": True, "posts": await posts.list_club_posts(session, club)}


@router.patch("/{club_id}/posts/{post_id}/review")
async def review_club_post(
    club_id: str,
    post_id: str,
    body: ReviewRequest,
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_institution)
):
    """approve | reject a pending club post"""
    club = await service.get_institution_club(club_id, session.institution_id)
    post = await posts.review(session, club, await posts.get_club_post(club, post_id), body.action)
    return {"ok": True, "post": serialize_post(post)}
