"""
Admin Institution Management endpoints.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.modules.auth.dependencies import require_super_admin
from app.modules.auth.session import SessionUser
from app.schemas.admin import InstitutionStatusRequest
from app.schemas.auth import InstitutionRegister
from app.services.admin_service import AdminService

router = APIRouter()


@router.get("")
async def list_institutions(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    result = await AdminService(db).list_institutions(status=status, search=search, page=page, page_size=page_size)
    return {"ok": True, **result}


@router.patch("/{institution_id}/status")
async def set_institution_status(
    institution_id: str,
    body: InstitutionStatusRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    """approve | reject"""
    institution = await AdminService(db).set_institution_status(session, institution_id, body.action)
    return {"ok": True, "institution": institution}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_institution(
    data: InstitutionRegister,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    """Create an institution account that can sign in immediately"""
    institution = await AdminService(db).create_institution(session, data)
    return {"ok": True, "institution": institution}
