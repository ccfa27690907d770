"""
Institution Event endpoints.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from typing import Optional

from app.api.deps import get_event_service, post_edit_form
from app.models import PostType
from app.modules.auth.dependencies import require_institution
from app.modules.auth.session import SessionUser
from app.schemas.common import ReviewRequest
from app.schemas.content import PostDraft, PostEdit, EventStatusRequest, serialize_post
from app.services.event_service import EventService
from app.services.storage_service import uploaded

router = APIRouter()


@router.get("")
async def list_events(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    service: EventService = Depends(get_event_service),
    session: SessionUser = Depends(require_institution)
):
    result = await service.list_institution_events(
        session.institution_id, status=status, search=search, page=page, page_size=page_size
    )
    return {"ok": True, **result}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_event(
    title: str = Form(""),
    description: str = Form(""),
    start_at: Optional[str] = Form(None),
    end_at: Optional[str] = Form(None),
    venue: Optional[str] = Form(None),
    link: Optional[str] = Form(None),
    visibility: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    club_id: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: EventService = Depends(get_event_service),
    session: SessionUser = Depends(require_institution)
):
    """
    Create an event, published unless another status is given.

    end_at defaults to start_at; tags are comma separated; an optional
    club_id must be an approved club of this institution.
    """
    draft = PostDraft(
        type=PostType.EVENT,
        title=title,
        description=description,
        start_at=start_at,
        end_at=end_at,
        venue=venue,
        link=link,
        visibility=visibility,
        tags=tags,
    )
    event = await service.create_institution_event(
        session, draft, club_id=club_id or None, status=status or None, image=uploaded(image)
    )
    return {"ok": True, "event": serialize_post(event)}


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    service: EventService = Depends(get_event_service),
    session: SessionUser = Depends(require_institution)
):
    return {"ok": True, "event": await service.institution_event_detail(session.institution_id, event_id)}


@router.patch("/{event_id}")
async def edit_event(
    event_id: str,
    changes: PostEdit = Depends(post_edit_form),
    image: Optional[UploadFile] = File(None),
    remove_image: bool = Form(False),
    service: EventService = Depends(get_event_service),
    session: SessionUser = Depends(require_institution)
):
    """Edit any field of the event; its status does not change"""
    event = await service.get_institution_event(session.institution_id, event_id)
    event = await service.edit_institution_event(session, event, changes, uploaded(image), remove_image=remove_image)
    return {"ok": True, "event": serialize_post(event)}


@router.patch("/{event_id}/approve")
async def review_event(
    event_id: str,
    body: ReviewRequest,
    service: EventService = Depends(get_event_service),
    session: SessionUser = Depends(require_institution)
):
    """approve (publishes) | reject a pending event"""
    event = await service.get_institution_event(session.institution_id, event_id)
    event = await service.review_event(session, event, body.action)
    return {"ok": True, "event": serialize_post(event)}


@router.patch("/{event_id}/status")
async def set_event_status(
    event_id: str,
    body: EventStatusRequest,
    service: EventService = Depends(get_event_service),
    session: SessionUser = Depends(require_institution)
):
    """Override: set any status"""
    event = await service.get_institution_event(session.institution_id, event_id)
    event = await service.set_event_status(session, event, body.status.value)
    return {"ok": True, "event": serialize_post(event)}


@router.delete("/{event_id}")
async def delete_event(
    event_id: str,
    service: EventService = Depends(get_event_service),
    session: SessionUser = Depends(require_institution)
):
    """Soft delete: the event is hidden and its image removed"""
    event = await service.get_institution_event(session.institution_id, event_id)
    await service.soft_delete_event(session, event)
    return {"ok": True}
