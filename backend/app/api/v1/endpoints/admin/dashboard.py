"""
Admin Dashboard endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.auth.dependencies import require_super_admin
from app.modules.auth.session import SessionUser
from app.schemas.admin import PlatformStats
from app.services.admin_service import AdminService

router = APIRouter()


@router.get("/stats")
async def get_stats(
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    """Platform-wide counts"""
    stats = PlatformStats(**await AdminService(db).stats())
    return {"ok": True, "stats": stats.model_dump()}
