"""Tag upsert: tags are shared across posts and deduplicated by name"""
from typing import List, Sequence

from sqlalchemy import select

from app.core.types import generate_uuid
from app.models import Tag
from app.services.store import EntityStore


async def upsert_tags(store: EntityStore, names: Sequence[str]) -> List[Tag]:
    """Return Tag rows for ``names`` in the given order, creating missing ones"""
    if not names:
        return []
    existing = {
        tag.name: tag
        for tag in await store.all(select(Tag).where(Tag.name.in_(list(names))))
    }
    tags: List[Tag] = []
    for name in names:
        tag = existing.get(name)
        if tag is None:
            tag = store.add(Tag(id=generate_uuid(), name=name))
            existing[name] = tag
        tags.append(tag)
    return tags
