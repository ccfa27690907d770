"""
RSVP Service

Lifecycle per (user, event): none -> going | interested -> none.
The row is keyed by ``{user_id}-{event_id}``; setting a state upserts it and
clearing the state deletes it, so there is at most one record per pair.
"""

from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, ValidationError
from app.core.types import generate_uuid
from app.models import RSVP, RSVPState, EventCheckIn, Event, PostStatus, make_rsvp_key
from app.modules.auth.session import SessionUser
from app.schemas.content import serialize_post
from app.services.store import EntityStore


def empty_counts() -> Dict[str, int]:
    return {"going": 0, "interested": 0, "checkedIn": 0}


def parse_rsvp_state(value: Optional[str]) -> Optional[RSVPState]:
    """None or an empty string clears the RSVP; anything other than going/interested is rejected"""
    if not value:
        return None
    try:
        return RSVPState(value)
    except ValueError:
        raise ValidationError("State must be 'going', 'interested' or null", field="state")


class RSVPService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)

    async def set_rsvp(self, session: SessionUser, event: Event, state: Optional[RSVPState]) -> Optional[RSVPState]:
        """Upsert or delete the caller's RSVP in one flush"""
        if not session.can_rsvp:
            raise AuthorizationError("Only students and employees can RSVP")

        key = make_rsvp_key(session.user_id, event.id)
        existing = await self.store.first(select(RSVP).where(RSVP.rsvp_key == key))

        if state is None:
            if existing is not None:
                await self.store.delete(existing)
        elif existing is not None:
            existing.state = state
        else:
            self.store.add(RSVP(
                id=generate_uuid(),
                rsvp_key=key,
                user_id=session.user_id,
                event_id=event.id,
                state=state,
            ))
        await self.store.flush("RSVP was changed concurrently, please retry")
        return state

    async def counts(self, event_id: str) -> Dict[str, int]:
        return (await self.bulk_counts([event_id]))[event_id]

    async def bulk_counts(self, event_ids: Iterable[str]) -> Dict[str, Dict[str, int]]:
        """{event_id: {going, interested, checkedIn}} in two grouped queries"""
        ids = list(event_ids)
        result = {event_id: empty_counts() for event_id in ids}
        if not ids:
            return result

        rows = await self.store.rows(
            select(RSVP.event_id, RSVP.state, func.count(RSVP.id))
            .where(RSVP.event_id.in_(ids))
            .group_by(RSVP.event_id, RSVP.state)
        )
        for event_id, state, total in rows:
            result[event_id][state.value] = total

        rows = await self.store.rows(
            select(EventCheckIn.event_id, func.count(EventCheckIn.id))
            .where(EventCheckIn.event_id.in_(ids))
            .group_by(EventCheckIn.event_id)
        )
        for event_id, total in rows:
            result[event_id]["checkedIn"] = total
        return result

    async def states_for(self, user_id: Optional[str], event_ids: Iterable[str]) -> Dict[str, str]:
        """The user's RSVP state per event, for events they responded to"""
        ids = list(event_ids)
        if not user_id or not ids:
            return {}
        rows = await self.store.rows(
            select(RSVP.event_id, RSVP.state).where(RSVP.user_id == user_id, RSVP.event_id.in_(ids))
        )
        return {event_id: state.value for event_id, state in rows}

    async def my_events(self, session: SessionUser) -> List[Dict[str, Any]]:
        """Events the caller RSVP'd to, soonest first, with state and counts"""
        rows = await self.store.rows(
            select(Event, RSVP.state)
            .join(RSVP, RSVP.event_id == Event.id)
            .where(RSVP.user_id == session.user_id, Event.status != PostStatus.HIDDEN)
            .order_by(Event.start_at)
        )
        counts = await self.bulk_counts(event.id for event, _ in rows)
        return [
            serialize_post(event, rsvp_state=state.value, counts=counts[event.id])
            for event, state in rows
        ]
