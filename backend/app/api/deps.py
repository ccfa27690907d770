"""
Shared endpoint dependencies: service factories and multipart post forms.
"""
from fastapi import Depends, Form
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.schemas.content import PostDraft, PostEdit
from app.services.club_service import ClubService
from app.services.event_service import EventService
from app.services.org_unit_service import OrgUnitService
from app.services.post_service import PostService
from app.services.storage_service import UploadStorage, get_upload_storage


def get_club_service(
    db: AsyncSession = Depends(get_db),
    storage: UploadStorage = Depends(get_upload_storage),
) -> ClubService:
    return ClubService(db, storage)


def get_event_service(
    db: AsyncSession = Depends(get_db),
    storage: UploadStorage = Depends(get_upload_storage),
) -> EventService:
    return EventService(db, storage)


def get_org_unit_service(
    db: AsyncSession = Depends(get_db),
    storage: UploadStorage = Depends(get_upload_storage),
) -> OrgUnitService:
    return OrgUnitService(db, storage)


def get_post_service(
    db: AsyncSession = Depends(get_db),
    storage: UploadStorage = Depends(get_upload_storage),
) -> PostService:
    return PostService(db, storage)


def post_draft_form(
    type: str = Form("event"),
    title: str = Form(""),
    description: str = Form(""),
    start_at: Optional[str] = Form(None),
    end_at: Optional[str] = Form(None),
    venue: Optional[str] = Form(None),
    link: Optional[str] = Form(None),
    visibility: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
) -> PostDraft:
    """New event / announcement from multipart fields"""
    return PostDraft(
        type=type,
        title=title,
        description=description,
        start_at=start_at,
        end_at=end_at,
        venue=venue,
        link=link,
        visibility=visibility,
        tags=tags,
    )


def post_edit_form(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    start_at: Optional[str] = Form(None),
    end_at: Optional[str] = Form(None),
    venue: Optional[str] = Form(None),
    link: Optional[str] = Form(None),
    visibility: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
) -> PostEdit:
    return PostEdit(
        title=title,
        description=description,
        start_at=start_at,
        end_at=end_at,
        venue=venue,
        link=link,
        visibility=visibility,
        tags=tags,
    )
