"""
Newsfeed endpoint.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.modules.auth.dependencies import get_current_session
from app.modules.auth.session import SessionUser
from app.services.newsfeed_service import NewsfeedService

router = APIRouter(tags=["Newsfeed"])


@router.get("/newsfeed")
async def newsfeed(
    filter: str = Query("all", description="all | institution | public"),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(get_current_session)
):
    items = await NewsfeedService(db).feed(session, filter, limit)
    return {"ok": True, "items": items}
