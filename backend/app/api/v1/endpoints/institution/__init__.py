"""
Institution-admin API endpoints.
All endpoints require the institution role and are scoped to the caller's institution.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.institution import org_units, clubs, members, events
from app.core.database import get_db
from app.modules.auth.dependencies import require_institution
from app.modules.auth.session import SessionUser
from app.services.institution_service import InstitutionService

institution_router = APIRouter(prefix="/institution", tags=["Institution"])


@institution_router.get("")
async def get_profile(
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_institution)
):
    """Institution profile with headline counts"""
    return {"ok": True, "institution": await InstitutionService(db).profile(session.institution_id)}


institution_router.include_router(org_units.router, tags=["Institution Org Units"])
institution_router.include_router(clubs.router, prefix="/clubs", tags=["Institution Clubs"])
institution_router.include_router(members.router, tags=["Institution Members"])
institution_router.include_router(events.router, prefix="/events", tags=["Institution Events"])
