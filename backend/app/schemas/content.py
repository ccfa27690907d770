from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

from app.models import PostStatus, PostType, Visibility, RSVPState
from app.schemas.common import blank_to_none, split_csv, to_naive_utc


def _tag_names(value: Any) -> List[str]:
    if value is None:
        return []
    return [getattr(tag, "name", tag) for tag in value]


class PostDraft(BaseModel):
    """
    Fields of a new event or announcement.

    Built from multipart form fields, so blanks become None and tags may be
    a comma separated string.
    """
    type: PostType = PostType.EVENT
    title: str
    description: str
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    venue: Optional[str] = None
    link: Optional[str] = None
    visibility: Visibility = Visibility.INSTITUTION
    tags: List[str] = Field(default_factory=list)

    @field_validator("start_at", "end_at", "venue", "link", mode="before")
    @classmethod
    def blanks(cls, v):
        return blank_to_none(v)

    @field_validator("visibility", "type", mode="before")
    @classmethod
    def default_blank_enum(cls, v, info):
        if blank_to_none(v) is None:
            return Visibility.INSTITUTION if info.field_name == "visibility" else PostType.EVENT
        return v

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        return split_csv(v)

    @field_validator("title", "description")
    @classmethod
    def required_text(cls, v: str, info) -> str:
        v = v.strip()
        if not v:
            raise ValueError(f"{info.field_name.capitalize()} is required")
        return v

    @field_validator("venue")
    @classmethod
    def strip_venue(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @field_validator("link")
    @classmethod
    def validate_link(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("Link must be an http(s) URL")
        return v

    @field_validator("start_at", "end_at")
    @classmethod
    def naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def check_schedule(self):
        if self.type != PostType.EVENT:
            return self
        if self.start_at is None:
            raise ValueError("Start date is required for events")
        if not self.venue:
            raise ValueError("Venue is required for events")
        if self.end_at is None:
            self.end_at = self.start_at
        if self.end_at < self.start_at:
            raise ValueError("End date must be on or after the start date")
        return self


class PostEdit(BaseModel):
    """Partial update of a post; None leaves the field unchanged"""
    title: Optional[str] = None
    description: Optional[str] = None
    start_at: Optional[datetime] = None
    end_at: Optional[datetime] = None
    venue: Optional[str] = None
    link: Optional[str] = None
    visibility: Optional[Visibility] = None
    tags: Optional[List[str]] = None

    @field_validator("title", "description", "start_at", "end_at", "venue", "link", "visibility", mode="before")
    @classmethod
    def blanks(cls, v):
        return blank_to_none(v)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        if v is None:
            return None
        return split_csv(v)

    @field_validator("link")
    @classmethod
    def validate_link(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("Link must be an http(s) URL")
        return v

    @field_validator("start_at", "end_at")
    @classmethod
    def naive_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class PostStatusRequest(BaseModel):
    status: Literal["published", "hidden"]


class EventStatusRequest(BaseModel):
    status: PostStatus


class RSVPRequest(BaseModel):
    state: Optional[str] = None


class RSVPCounts(BaseModel):
    going: int = 0
    interested: int = 0
    checkedIn: int = 0


class EventOut(BaseModel):
    id: str
    institution_id: str
    club_id: Optional[str] = None
    author_id: Optional[str] = None
    title: str
    description: str
    start_at: datetime
    end_at: datetime
    venue: str
    link: Optional[str] = None
    image_url: Optional[str] = None
    visibility: Visibility
    status: PostStatus
    tags: List[str] = Field(default_factory=list)
    created_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def tag_names(cls, v):
        return _tag_names(v)

    class Config:
        from_attributes = True


class AnnouncementOut(BaseModel):
    id: str
    institution_id: str
    club_id: Optional[str] = None
    author_id: Optional[str] = None
    title: str
    description: str
    image_url: Optional[str] = None
    visibility: Visibility
    status: PostStatus
    tags: List[str] = Field(default_factory=list)
    created_at: datetime

    @field_validator("tags", mode="before")
    @classmethod
    def tag_names(cls, v):
        return _tag_names(v)

    class Config:
        from_attributes = True


def serialize_post(post: Any, **extra: Any) -> Dict[str, Any]:
    """Event or announcement as JSON, tagged with its type"""
    schema = EventOut if post.post_type == PostType.EVENT else AnnouncementOut
    data = schema.model_validate(post).model_dump(mode="json")
    data["type"] = post.post_type.value
    data.update(extra)
    return data


def serialize_rsvp_state(state: Optional[RSVPState]) -> Optional[str]:
    return state.value if state is not None else None
