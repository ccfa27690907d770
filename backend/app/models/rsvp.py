from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid, enum_column


class RSVPState(str, enum.Enum):
    GOING = "going"
    INTERESTED = "interested"


def make_rsvp_key(user_id: str, event_id: str) -> str:
    return f"{user_id}-{event_id}"


class RSVP(Base):
    """One row per (user, event); deleted outright when the state is cleared"""
    __tablename__ = "rsvps"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_rsvp_user_event"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    rsvp_key = Column(String(80), unique=True, nullable=False)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    event_id = Column(GUID, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    state = Column(enum_column(RSVPState), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<RSVP {self.rsvp_key} ({self.state})>"


class EventCheckIn(Base):
    """
    Attendance record. Only read for the checkedIn count; no endpoint
    writes check-ins yet.
    """
    __tablename__ = "event_check_ins"
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_check_in_user_event"),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(GUID, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    checked_in_at = Column(DateTime, default=datetime.utcnow, nullable=False)
