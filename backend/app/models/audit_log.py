from sqlalchemy import Column, String, DateTime, ForeignKey, JSON
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class AuditLog(Base):
    """History of status transitions and other privileged actions"""
    __tablename__ = "audit_logs"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    actor_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    action = Column(String(100), nullable=False)  # e.g. 'club.approve', 'event.hide', 'user.delete'
    entity_type = Column(String(50), nullable=False)  # e.g. 'club', 'event', 'institution'
    entity_id = Column(GUID, nullable=True, index=True)

    from_status = Column(String(32), nullable=True)
    to_status = Column(String(32), nullable=True)
    details = Column(JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog {self.action} on {self.entity_type}:{self.entity_id}>"
