"""
Admin User Management endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.modules.auth.dependencies import require_super_admin
from app.modules.auth.session import SessionUser
from app.schemas.common import AccountStatusRequest
from app.services.admin_service import AdminService, serialize_user

router = APIRouter()


@router.get("")
async def list_users(
    role: Optional[str] = None,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    """List accounts with filtering and pagination"""
    result = await AdminService(db).list_users(role=role, status=status, search=search, page=page, page_size=page_size)
    return {"ok": True, **result}


@router.patch("/{user_id}/status")
async def set_user_status(
    user_id: str,
    body: AccountStatusRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    """Enable or disable a student / employee account"""
    user = await AdminService(db).set_user_status(session, user_id, body.status)
    return {"ok": True, "user": serialize_user(user)}


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    """Hard delete a student / employee account; the email stays reserved"""
    await AdminService(db).delete_user(session, user_id)
    return {"ok": True}
