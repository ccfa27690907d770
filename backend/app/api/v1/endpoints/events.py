"""
Event detail and RSVP endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional

from app.core.database import get_db
from app.modules.auth.dependencies import get_current_session, get_optional_session
from app.modules.auth.session import SessionUser
from app.schemas.content import RSVPRequest
from app.services.event_service import EventService
from app.services.rsvp_service import RSVPService, parse_rsvp_state

router = APIRouter(prefix="/events", tags=["Events"])


@router.get("/{event_id}")
async def get_event(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    session: Optional[SessionUser] = Depends(get_optional_session)
):
    """Public events are visible anonymously; others need a session in the same institution"""
    return {"ok": True, "event": await EventService(db).event_detail(session, event_id)}


@router.post("/{event_id}/rsvp")
async def set_rsvp(
    event_id: str,
    body: RSVPRequest,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(get_current_session)
):
    """
    Set the caller's RSVP: going | interested. A null or empty state clears it.
    Repeating the same state is a no-op.
    """
    event = await EventService(db).get_visible_event(session, event_id)
    rsvps = RSVPService(db)
    state = await rsvps.set_rsvp(session, event, parse_rsvp_state(body.state))
    return {
        "ok": True,
        "state": state.value if state else None,
        "counts": await rsvps.counts(event.id),
    }


@router.delete("/{event_id}/rsvp")
async def clear_rsvp(
    event_id: str,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(get_current_session)
):
    event = await EventService(db).get_visible_event(session, event_id)
    rsvps = RSVPService(db)
    await rsvps.set_rsvp(session, event, None)
    return {"ok": True, "state": None, "counts": await rsvps.counts(event.id)}
