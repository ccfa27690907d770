"""
Post Service - club events and announcements

A club post's initial status follows the author's capability: advisor
posts are approved immediately, officer and member posts wait for review.
Edits reset the status the same way.
"""

from typing import Any, Dict, List, Optional, Type, Union

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.core.types import generate_uuid
from app.models import (
    Club,
    ClubStatus,
    Event,
    Announcement,
    PostStatus,
    PostType,
)
from app.modules.auth.session import SessionUser
from app.schemas.content import PostDraft, PostEdit, serialize_post
from app.services.capabilities import Capabilities, Action, Grant
from app.services.storage_service import UploadStorage, UploadBatch
from app.services.store import EntityStore
from app.services.tags import upsert_tags
from app.services.workflow import Workflow, EntityKind

Post = Union[Event, Announcement]

POST_MODELS: Dict[PostType, Type[Any]] = {
    PostType.EVENT: Event,
    PostType.ANNOUNCEMENT: Announcement,
}

POST_KINDS: Dict[PostType, EntityKind] = {
    PostType.EVENT: EntityKind.EVENT,
    PostType.ANNOUNCEMENT: EntityKind.ANNOUNCEMENT,
}

REVIEW_ACTIONS = {
    "approve": PostStatus.APPROVED,
    "reject": PostStatus.REJECTED,
}


def status_for_grant(grant: Grant) -> PostStatus:
    """Advisors publish without review; everyone else goes through it"""
    return PostStatus.APPROVED if grant == Grant.ADVISOR else PostStatus.PENDING


async def apply_post_changes(store: EntityStore, post: Post, changes: PostEdit) -> None:
    """Copy the fields present in ``changes`` onto the post"""
    if changes.title is not None:
        post.title = changes.title.strip()
    if changes.description is not None:
        post.description = changes.description.strip()
    if changes.visibility is not None:
        post.visibility = changes.visibility
    if changes.tags is not None:
        post.tags = await upsert_tags(store, changes.tags)

    if post.post_type == PostType.EVENT:
        if changes.venue is not None:
            post.venue = changes.venue.strip()
        if changes.link is not None:
            post.link = changes.link
        if changes.start_at is not None:
            post.start_at = changes.start_at
        if changes.end_at is not None:
            post.end_at = changes.end_at
        if post.end_at < post.start_at:
            raise ValidationError("End date must be on or after the start date", field="end_at")


async def swap_image(
    uploads: UploadBatch,
    post: Post,
    image: Optional[UploadFile],
    remove_image: bool,
) -> Optional[str]:
    """
    Save a replacement image or clear the current one.

    Returns the old image url, to be deleted once the write has committed.
    """
    if image is not None:
        old_image = post.image_url
        post.image_url = await uploads.save(image, "events" if post.post_type == PostType.EVENT else "posts")
        return old_image
    if remove_image:
        old_image = post.image_url
        post.image_url = None
        return old_image
    return None


class PostService:

    def __init__(self, db: AsyncSession, storage: Optional[UploadStorage] = None):
        self.db = db
        self.store = EntityStore(db)
        self.capabilities = Capabilities(db)
        self.workflow = Workflow(db)
        self.storage = storage

    async def get_club_post(self, club: Club, post_id: str) -> Post:
        """Event or announcement of this club"""
        for model in (Event, Announcement):
            post = await self.store.first(select(model).where(model.id == post_id, model.club_id == club.id))
            if post is not None:
                return post
        raise NotFoundError("Post not found", code="POST_NOT_FOUND")

    async def list_club_posts(self, session: SessionUser, club: Club) -> List[Dict[str, Any]]:
        """Events and announcements merged newest first; hidden posts are left out"""
        await self.capabilities.authorize(Action.VIEW_POSTS, session, club)

        posts: List[Post] = []
        for model in (Event, Announcement):
            posts.extend(await self.store.all(
                select(model).where(model.club_id == club.id, model.status != PostStatus.HIDDEN)
            ))
        posts.sort(key=lambda p: p.created_at, reverse=True)

        return [
            serialize_post(
                post,
                author_type="advisor" if club.advisor_id and post.author_id == club.advisor_id else "member",
            )
            for post in posts
        ]

    async def create_post(
        self,
        session: SessionUser,
        club: Club,
        draft: PostDraft,
        image: Optional[UploadFile] = None,
        require_tags_for_officers: bool = False,
    ) -> Post:
        grant = await self.capabilities.authorize(Action.CREATE_POST, session, club)
        if club.status == ClubStatus.SUSPENDED:
            raise AuthorizationError("Club is suspended")
        if (
            require_tags_for_officers
            and grant == Grant.OFFICER
            and draft.type == PostType.EVENT
            and not draft.tags
        ):
            raise ValidationError("At least one tag is required", field="tags")

        model = POST_MODELS[draft.type]
        fields: Dict[str, Any] = {
            "title": draft.title,
            "description": draft.description,
            "visibility": draft.visibility,
        }
        if draft.type == PostType.EVENT:
            fields.update(start_at=draft.start_at, end_at=draft.end_at, venue=draft.venue, link=draft.link)

        async with UploadBatch(self.storage) as uploads:
            post = self.store.add(model(
                id=generate_uuid(),
                institution_id=club.institution_id,
                club_id=club.id,
                author_id=session.user_id,
                **fields,
            ))
            post.tags = await upsert_tags(self.store, draft.tags)
            post.image_url = await uploads.save(image, "events" if draft.type == PostType.EVENT else "posts")
            await self.workflow.initial(post, POST_KINDS[draft.type], status_for_grant(grant),
                                        actor_id=session.user_id, action=f"{draft.type.value}.create")
            await self.store.flush()
        return post

    async def edit_post(
        self,
        session: SessionUser,
        club: Club,
        post: Post,
        changes: PostEdit,
        image: Optional[UploadFile] = None,
        remove_image: bool = False,
    ) -> Post:
        """
        Apply changes; the post goes back to approved (advisor) or pending.

        Hidden (soft-deleted) posts cannot be edited.
        """
        grant = await self.capabilities.authorize(Action.EDIT_POST, session, club)
        if grant == Grant.MEMBER and post.author_id != session.user_id:
            raise AuthorizationError("You can only edit your own posts")
        if post.status == PostStatus.HIDDEN:
            raise NotFoundError("Post not found", code="POST_NOT_FOUND")

        await apply_post_changes(self.store, post, changes)

        async with UploadBatch(self.storage) as uploads:
            old_image = await swap_image(uploads, post, image, remove_image)
            await self.workflow.transition(post, POST_KINDS[post.post_type], status_for_grant(grant),
                                           actor_id=session.user_id, action=f"{post.post_type.value}.edit")
            await self.store.flush()

        if old_image:
            await self.storage.delete(old_image)
        return post

    async def set_visibility(self, session: SessionUser, club: Club, post: Post, status: str) -> Post:
        """published | hidden, by the advisor or officer"""
        await self.capabilities.authorize(Action.SET_POST_VISIBILITY, session, club)
        if status not in (PostStatus.PUBLISHED.value, PostStatus.HIDDEN.value):
            raise ValidationError("Status must be 'published' or 'hidden'", field="status")
        await self.workflow.transition(post, POST_KINDS[post.post_type], status,
                                       actor_id=session.user_id, action=f"{post.post_type.value}.{status}")
        await self.store.flush()
        return post

    async def review(self, session: SessionUser, club: Club, post: Post, action: str) -> Post:
        """approve | reject a pending post"""
        await self.capabilities.authorize(Action.REVIEW_POST, session, club)
        target = REVIEW_ACTIONS.get(action)
        if target is None:
            raise ValidationError("Action must be 'approve' or 'reject'", field="action")
        await self.workflow.transition(post, POST_KINDS[post.post_type], target,
                                       actor_id=session.user_id, action=f"{post.post_type.value}.{action}",
                                       require_from=[PostStatus.PENDING])
        await self.store.flush()
        return post

    async def delete_post(self, session: SessionUser, club: Club, post: Post) -> Post:
        """Soft delete: the post is hidden and its image removed"""
        await self.capabilities.authorize(Action.DELETE_POST, session, club)
        image = post.image_url
        post.image_url = None
        await self.workflow.transition(post, POST_KINDS[post.post_type], PostStatus.HIDDEN,
                                       actor_id=session.user_id, action=f"{post.post_type.value}.delete")
        await self.store.flush()
        if image:
            await self.storage.delete(image)
        return post
