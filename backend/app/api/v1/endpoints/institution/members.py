"""
Institution Member endpoints: students, employees and staff.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.modules.auth.dependencies import require_institution
from app.modules.auth.session import SessionUser
from app.schemas.common import AccountStatusRequest
from app.services.institution_service import InstitutionService

router = APIRouter()


@router.get("/users")
async def list_members(
    kind: Optional[str] = Query(None, description="student | employee"),
    status: Optional[str] = Query(None, description="active | disabled"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_institution)
):
    result = await InstitutionService(db).list_members(
        session.institution_id, kind=kind, status=status, search=search, page=page, page_size=page_size
    )
    return {"ok": True, **result}


@router.patch("/users/{user_id}/status")
async def set_member_status(
    user_id: str,
    body: AccountStatusRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_institution)
):
    member = await InstitutionService(db).set_member_status(session, user_id, body.status)
    return {"ok": True, "user": member}


@router.patch("/users/{user_id}/reject")
async def reject_member(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_institution)
):
    member = await InstitutionService(db).reject_member(session, user_id)
    return {"ok": True, "user": member}


@router.post("/staffs/{user_id}/assign")
async def assign_staff(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_institution)
):
    member = await InstitutionService(db).assign_staff(session, user_id)
    return {"ok": True, "user": member}


@router.delete("/staffs/{user_id}/remove")
async def remove_staff(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_institution)
):
    member = await InstitutionService(db).remove_staff(session, user_id)
    return {"ok": True, "user": member}
