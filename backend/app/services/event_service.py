"""
Event Service - institution-owned events and public event pages
"""

from typing import Any, Dict, Optional

from fastapi import UploadFile
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, EventNotFoundError, NotFoundError, ValidationError
from app.core.types import generate_uuid
from app.models import (
    Club,
    ClubStatus,
    Event,
    PostStatus,
    Visibility,
    LIVE_STATUSES,
)
from app.modules.auth.session import SessionUser
from app.schemas.content import PostDraft, PostEdit, serialize_post
from app.services.capabilities import Capabilities, is_super_admin, is_institution_admin_of
from app.services.post_service import apply_post_changes, swap_image
from app.services.rsvp_service import RSVPService
from app.services.storage_service import UploadStorage, UploadBatch
from app.services.store import EntityStore
from app.services.tags import upsert_tags
from app.services.workflow import Workflow, EntityKind, parse_status
from app.utils.pagination import paginate

# Institution approval publishes; the event passes through approved
EVENT_REVIEW_ACTIONS = {
    "approve": PostStatus.PUBLISHED,
    "reject": PostStatus.REJECTED,
}


def can_view_event(session: Optional[SessionUser], event: Event) -> bool:
    """
    Hidden events are gone for everyone. Live public events are open to all;
    other visibilities need a session in the event's institution. Events that
    are not live yet are visible to their institution only.
    """
    if event.status == PostStatus.HIDDEN:
        return False
    if session is not None and (is_super_admin(session.role) or is_institution_admin_of(session, event.institution_id)):
        return True
    if event.status not in LIVE_STATUSES:
        return False
    if event.visibility == Visibility.PUBLIC:
        return True
    return session is not None and session.institution_id == event.institution_id


class EventService:

    def __init__(self, db: AsyncSession, storage: Optional[UploadStorage] = None):
        self.db = db
        self.store = EntityStore(db)
        self.capabilities = Capabilities(db)
        self.workflow = Workflow(db)
        self.storage = storage

    # ==================== READ ====================

    async def _club_name(self, event: Event) -> Optional[str]:
        if not event.club_id:
            return None
        club = await self.store.get(Club, event.club_id)
        return club.name if club else None

    async def get_visible_event(self, session: Optional[SessionUser], event_id: str) -> Event:
        event = await self.store.get(Event, event_id)
        if event is None or not can_view_event(session, event):
            raise EventNotFoundError(event_id)
        return event

    async def event_detail(self, session: Optional[SessionUser], event_id: str) -> Dict[str, Any]:
        event = await self.get_visible_event(session, event_id)
        rsvps = RSVPService(self.db)
        counts = await rsvps.counts(event.id)
        states = await rsvps.states_for(session.user_id if session else None, [event.id])
        return serialize_post(event, counts=counts, rsvp_state=states.get(event.id),
                              club_name=await self._club_name(event))

    async def get_institution_event(self, institution_id: str, event_id: str) -> Event:
        event = await self.store.get(Event, event_id)
        if event is None or event.institution_id != institution_id:
            raise EventNotFoundError(event_id)
        return event

    async def institution_event_detail(self, institution_id: str, event_id: str) -> Dict[str, Any]:
        """Any event of the institution, hidden ones included, with RSVP counts"""
        event = await self.get_institution_event(institution_id, event_id)
        counts = await RSVPService(self.db).counts(event.id)
        return serialize_post(event, counts=counts, club_name=await self._club_name(event))

    async def list_institution_events(
        self,
        institution_id: str,
        status: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Dict[str, Any]:
        """Events of the institution, soonest first; hidden only when asked for"""
        conditions = [Event.institution_id == institution_id]
        if status:
            conditions.append(Event.status == parse_status(EntityKind.EVENT, status))
        else:
            conditions.append(Event.status != PostStatus.HIDDEN)
        if search:
            term = f"%{search.strip()}%"
            conditions.append(or_(Event.title.ilike(term), Event.venue.ilike(term)))

        query = select(Event).where(*conditions).order_by(Event.start_at.desc())
        return await paginate(self.db, query, page, page_size, serializer=serialize_post)

    # ==================== WRITE ====================

    async def create_institution_event(
        self,
        session: SessionUser,
        draft: PostDraft,
        club_id: Optional[str] = None,
        status: Optional[str] = None,
        image: Optional[UploadFile] = None,
    ) -> Event:
        """Institution event, optionally hosted by one of its approved clubs"""
        if not await self.capabilities.is_approved_institution(session.institution_id):
            raise AuthorizationError("Institution is not approved")

        if club_id:
            club = await self.store.get(Club, club_id)
            if club is None or club.institution_id != session.institution_id:
                raise NotFoundError("Club not found in this institution", code="CLUB_NOT_FOUND")
            if club.status != ClubStatus.APPROVED:
                raise ValidationError("Club is not approved", field="club_id")

        initial = parse_status(EntityKind.EVENT, status or PostStatus.PUBLISHED.value)

        async with UploadBatch(self.storage) as uploads:
            event = self.store.add(Event(
                id=generate_uuid(),
                institution_id=session.institution_id,
                club_id=club_id,
                author_id=session.user_id,
                title=draft.title,
                description=draft.description,
                start_at=draft.start_at,
                end_at=draft.end_at,
                venue=draft.venue,
                link=draft.link,
                visibility=draft.visibility,
            ))
            event.tags = await upsert_tags(self.store, draft.tags)
            event.image_url = await uploads.save(image, "events")
            await self.workflow.initial(event, EntityKind.EVENT, initial,
                                        actor_id=session.user_id, action="event.create")
            await self.store.flush()
        return event

    async def edit_institution_event(
        self,
        session: SessionUser,
        event: Event,
        changes: PostEdit,
        image: Optional[UploadFile] = None,
        remove_image: bool = False,
    ) -> Event:
        """Edit fields and image in place; the status is left as it is"""
        if event.status == PostStatus.HIDDEN:
            raise EventNotFoundError(event.id)

        await apply_post_changes(self.store, event, changes)

        async with UploadBatch(self.storage) as uploads:
            old_image = await swap_image(uploads, event, image, remove_image)
            await self.workflow.record(EntityKind.EVENT, event.id, actor_id=session.user_id, action="event.edit")
            await self.store.flush()

        if old_image:
            await self.storage.delete(old_image)
        return event

    async def review_event(self, session: SessionUser, event: Event, action: str) -> Event:
        """approve (-> published) | reject a pending event"""
        target = EVENT_REVIEW_ACTIONS.get(action)
        if target is None:
            raise ValidationError("Action must be 'approve' or 'reject'", field="action")
        if target == PostStatus.PUBLISHED:
            # pending -> approved -> published, both steps audited
            await self.workflow.transition(event, EntityKind.EVENT, PostStatus.APPROVED,
                                           actor_id=session.user_id, action="event.approve",
                                           require_from=[PostStatus.PENDING])
            await self.workflow.transition(event, EntityKind.EVENT, PostStatus.PUBLISHED,
                                           actor_id=session.user_id, action="event.publish")
        else:
            await self.workflow.transition(event, EntityKind.EVENT, target,
                                           actor_id=session.user_id, action=f"event.{action}",
                                           require_from=[PostStatus.PENDING])
        await self.store.flush()
        return event

    async def set_event_status(self, session: SessionUser, event: Event, status: str) -> Event:
        """Institution override: any status, regardless of the transition table"""
        await self.workflow.transition(event, EntityKind.EVENT, status,
                                       actor_id=session.user_id, action="event.set_status", force=True)
        await self.store.flush()
        return event

    async def soft_delete_event(self, session: SessionUser, event: Event) -> Event:
        image = event.image_url
        event.image_url = None
        await self.workflow.transition(event, EntityKind.EVENT, PostStatus.HIDDEN,
                                       actor_id=session.user_id, action="event.delete", force=True)
        await self.store.flush()
        if image:
            await self.storage.delete(image)
        return event
