"""
Employee endpoints: advised clubs, their posts and members.

Advisors post straight to approved; an employee who is only a club member
posts as pending like any other member.
"""
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from typing import Optional

from app.api.deps import get_club_service, get_post_service, post_draft_form, post_edit_form
from app.modules.auth.dependencies import require_employee
from app.modules.auth.session import SessionUser
from app.schemas.club import MemberReassignRequest
from app.schemas.common import ReviewRequest
from app.schemas.content import PostDraft, PostEdit, PostStatusRequest, serialize_post
from app.services.club_service import ClubService
from app.services.post_service import PostService
from app.services.storage_service import uploaded

router = APIRouter(prefix="/employee", tags=["Employee"])


@router.get("/clubs")
async def my_clubs(
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_employee)
):
    return {"ok": True, "clubs": await service.clubs_for_user(session)}


# ==================== POSTS ====================

@router.get("/clubs/{club_id}/posts")
async def list_posts(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_employee)
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
    session: SessionUser = Depends(require_employee)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    post = await posts.create_post(session, club, draft, uploaded(image))
    return {"ok": True, "post": serialize_post(post)}


@router.patch("/clubs/{club_id}/posts/{post_id}")
async def edit_post(
    club_id: str,
    post_id: str,
    changes: PostEdit = Depends(post_edit_form),
    image: Optional[UploadFile] = File(None),
    remove_image: bool = Form(False),
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_employee)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    post = await posts.get_club_post(club, post_id)
    post = await posts.edit_post(session, club, post, changes, uploaded(image), remove_image=remove_image)
    return {"ok": True, "post": serialize_post(post)}


@router.patch("/clubs/{club_id}/posts/{post_id}/status")
async def set_post_status(
    club_id: str,
    post_id: str,
    body: PostStatusRequest,
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_employee)
):
    """published | hidden"""
    club = await service.get_institution_club(club_id, session.institution_id)
    post = await posts.set_visibility(session, club, await posts.get_club_post(club, post_id), body.status)
    return {"ok": True, "post": serialize_post(post)}


@router.patch("/clubs/{club_id}/posts/{post_id}/approve")
async def review_post(
    club_id: str,
    post_id: str,
    body: ReviewRequest,
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_employee)
):
    """Advisor review of a pending member post"""
    club = await service.get_institution_club(club_id, session.institution_id)
    post = await posts.review(session, club, await posts.get_club_post(club, post_id), body.action)
    return {"ok": True, "post": serialize_post(post)}


@router.delete("/clubs/{club_id}/posts/{post_id}")
async def delete_post(
    club_id: str,
    post_id: str,
    service: ClubService = Depends(get_club_service),
    posts: PostService = Depends(get_post_service),
    session: SessionUser = Depends(require_employee)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    await posts.delete_post(session, club, await posts.get_club_post(club, post_id))
    return {"ok": True}


# ==================== MEMBERS ====================

@router.get("/clubs/{club_id}/students")
async def list_members(
    club_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_employee)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    return {"ok": True, "members": await service.list_members(club, session)}


@router.patch("/clubs/{club_id}/members/{member_id}/reassign")
async def reassign_member(
    club_id: str,
    member_id: str,
    body: MemberReassignRequest,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_employee)
):
    """officer | member; promoting to officer demotes the current officer"""
    club = await service.get_institution_club(club_id, session.institution_id)
    membership = await service.reassign_member(session, club, member_id, body.role)
    return {"ok": True, "member": {"user_id": membership.user_id, "role": membership.role.value}}


@router.delete("/clubs/{club_id}/members/{member_id}/remove")
async def remove_member(
    club_id: str,
    member_id: str,
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_employee)
):
    club = await service.get_institution_club(club_id, session.institution_id)
    await service.remove_member(session, club, member_id)
    return {"ok": True}
