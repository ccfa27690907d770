"""
Newsfeed Service

Recent live events (start within the last NEWSFEED_WINDOW_DAYS) and published
announcements, scoped by filter:

    institution  -> the caller's institution, visibility public|institution
    public       -> public posts from any institution
    all          -> union of the two

Events sort by start time, announcements by creation time, newest first.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models import Event, Announcement, Club, User, PostStatus, Visibility, LIVE_STATUSES
from app.modules.auth.session import SessionUser
from app.schemas.content import serialize_post
from app.services.rsvp_service import RSVPService
from app.services.store import EntityStore

FEED_FILTERS = ("all", "institution", "public")


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.NEWSFEED_DEFAULT_LIMIT
    return max(1, min(settings.NEWSFEED_MAX_LIMIT, limit))


class NewsfeedService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)
        self.rsvps = RSVPService(db)

    def _scope(self, model: Any, feed_filter: str, institution_id: Optional[str]):
        public = model.visibility == Visibility.PUBLIC
        own = None
        if institution_id:
            own = and_(
                model.institution_id == institution_id,
                model.visibility.in_([Visibility.PUBLIC, Visibility.INSTITUTION]),
            )

        if feed_filter == "public":
            return public
        if feed_filter == "institution":
            # No institution (super-admin): fall back to public posts
            return own if own is not None else public
        return or_(public, own) if own is not None else public

    async def feed(self, session: SessionUser, feed_filter: str = "all", limit: Optional[int] = None) -> List[Dict[str, Any]]:
        if feed_filter not in FEED_FILTERS:
            raise ValidationError(f"Filter must be one of: {', '.join(FEED_FILTERS)}", field="filter")
        limit = clamp_limit(limit)
        since = datetime.utcnow() - timedelta(days=settings.NEWSFEED_WINDOW_DAYS)

        events = await self.store.all(
            select(Event)
            .where(
                Event.status.in_(LIVE_STATUSES),
                Event.start_at >= since,
                self._scope(Event, feed_filter, session.institution_id),
            )
            .order_by(Event.start_at.desc())
            .limit(limit)
        )
        announcements = await self.store.all(
            select(Announcement)
            .where(
                Announcement.status == PostStatus.PUBLISHED,
                Announcement.created_at >= since,
                self._scope(Announcement, feed_filter, session.institution_id),
            )
            .order_by(Announcement.created_at.desc())
            .limit(limit)
        )

        counts = await self.rsvps.bulk_counts(e.id for e in events)
        states = await self.rsvps.states_for(session.user_id, [e.id for e in events])
        club_names = await self._club_names({p.club_id for p in [*events, *announcements] if p.club_id})
        authors = await self._author_names({a.author_id for a in announcements if a.author_id})

        items = [
            (event.start_at, serialize_post(
                event,
                counts=counts[event.id],
                rsvp_state=states.get(event.id),
                club_name=club_names.get(event.club_id),
            ))
            for event in events
        ]
        items.extend(
            (a.created_at, serialize_post(
                a,
                author=authors.get(a.author_id, ""),
                author_type="club" if a.club_id else "institution",
                club_name=club_names.get(a.club_id),
            ))
            for a in announcements
        )
        items.sort(key=lambda item: item[0], reverse=True)
        return [data for _, data in items[:limit]]

    async def _club_names(self, club_ids) -> Dict[str, str]:
        if not club_ids:
            return {}
        rows = await self.store.rows(select(Club.id, Club.name).where(Club.id.in_(list(club_ids))))
        return {club_id: name for club_id, name in rows}

    async def _author_names(self, user_ids) -> Dict[str, str]:
        if not user_ids:
            return {}
        rows = await self.store.rows(select(User.id, User.name).where(User.id.in_(list(user_ids))))
        return {user_id: name for user_id, name in rows}
