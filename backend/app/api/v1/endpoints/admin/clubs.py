"""
Admin Club Oversight endpoints.
"""
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.api.deps import get_club_service
from app.core.database import get_db
from app.modules.auth.dependencies import require_super_admin
from app.modules.auth.session import SessionUser
from app.schemas.common import ClubStatusRequest
from app.services.club_service import ClubService, serialize_club
from app.services.storage_service import uploaded

router = APIRouter()


@router.get("")
async def list_clubs(
    status: Optional[str] = None,
    search: Optional[str] = None,
    institution_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    result = await ClubService(db).list_clubs(
        institution_id=institution_id, status=status, search=search, page=page, page_size=page_size
    )
    return {"ok": True, **result}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_club(
    institution_id: str = Form(""),
    name: str = Form(""),
    acronym: str = Form(""),
    email: str = Form(""),
    phone: str = Form(""),
    about: str = Form(""),
    logo: Optional[UploadFile] = File(None),
    service: ClubService = Depends(get_club_service),
    session: SessionUser = Depends(require_super_admin)
):
    """Create an approved club for an approved institution (logo required)"""
    club = await service.create_admin_club(
        session, institution_id, name, acronym, email, phone, about, uploaded(logo)
    )
    return {"ok": True, "club": serialize_club(club)}


@router.patch("/{club_id}/status")
async def set_club_status(
    club_id: str,
    body: ClubStatusRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    """approve | suspend"""
    service = ClubService(db)
    club = await service.set_status(session, await service.get_club(club_id), body.action)
    return {"ok": True, "club": serialize_club(club)}
