"""
Content Models
- Event: scheduled post, owned by an institution and optionally hosted by a club
- Announcement: unscheduled club post
- Tag: deduplicated by name
"""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Table
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, enum_column


class PostStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    APPROVED = "approved"
    PUBLISHED = "published"
    REJECTED = "rejected"
    HIDDEN = "hidden"


class Visibility(str, enum.Enum):
    PUBLIC = "public"
    INSTITUTION = "institution"
    RESTRICTED = "restricted"


class PostType(str, enum.Enum):
    EVENT = "event"
    ANNOUNCEMENT = "announcement"


# Statuses that are visible in feeds and on event pages
LIVE_STATUSES = (PostStatus.APPROVED, PostStatus.PUBLISHED)


event_tags = Table(
    "event_tags",
    Base.metadata,
    Column("event_id", GUID, ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", GUID, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)

announcement_tags = Table(
    "announcement_tags",
    Base.metadata,
    Column("announcement_id", GUID, ForeignKey("announcements.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", GUID, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Tag(Base):
    __tablename__ = "tags"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(100), unique=True, nullable=False)

    def __repr__(self):
        return f"<Tag {self.name}>"


class Event(Base):
    __tablename__ = "events"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    institution_id = Column(GUID, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)
    club_id = Column(GUID, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=True, index=True)
    author_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    start_at = Column(DateTime, nullable=False, index=True)
    end_at = Column(DateTime, nullable=False)
    venue = Column(String(255), nullable=False)
    link = Column(Text, nullable=True)
    image_url = Column(Text, nullable=True)

    visibility = Column(enum_column(Visibility), default=Visibility.INSTITUTION, nullable=False)
    status = Column(enum_column(PostStatus), default=PostStatus.PENDING, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tags = relationship("Tag", secondary=event_tags, lazy="selectin", order_by="Tag.name")

    post_type = PostType.EVENT

    def __repr__(self):
        return f"<Event {self.title} ({self.status})>"


class Announcement(Base):
    __tablename__ = "announcements"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    institution_id = Column(GUID, ForeignKey("institutions.id", ondelete="CASCADE"), nullable=False, index=True)
    club_id = Column(GUID, ForeignKey("clubs.id", ondelete="CASCADE"), nullable=True, index=True)
    author_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(Text, nullable=True)

    visibility = Column(enum_column(Visibility), default=Visibility.INSTITUTION, nullable=False)
    status = Column(enum_column(PostStatus), default=PostStatus.PENDING, nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tags = relationship("Tag", secondary=announcement_tags, lazy="selectin", order_by="Tag.name")

    post_type = PostType.ANNOUNCEMENT

    def __repr__(self):
        return f"<Announcement {self.title} ({self.status})>"
