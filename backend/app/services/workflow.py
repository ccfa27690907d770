"""
Status-Transition Engine
========================

One transition table per entity kind. Every status change in the system
goes through ``Workflow.transition`` so that:
- illegal moves are rejected the same way everywhere (InvalidTransitionError)
- each applied change is logged and written to audit_logs in the request's
  transaction

    Institution:  pending ──► approved ◄──► rejected
    Club:         pending ──► approved ◄──► suspended
    Post:         draft ──► pending ──► approved ──► published
                                 └──► rejected      ▲   │
                                                     └─ hidden (soft delete)
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set, Type

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import InvalidTransitionError, ValidationError
from app.core.logging_config import logger
from app.models import (
    AuditLog,
    ClubStatus,
    PostStatus,
    UserStatus,
)


class EntityKind(str, Enum):
    INSTITUTION = "institution"
    CLUB = "club"
    EVENT = "event"
    ANNOUNCEMENT = "announcement"
    USER = "user"


INSTITUTION_TRANSITIONS: Dict[UserStatus, Set[UserStatus]] = {
    UserStatus.PENDING: {UserStatus.APPROVED, UserStatus.REJECTED},
    UserStatus.APPROVED: {UserStatus.REJECTED},
    UserStatus.ACTIVE: {UserStatus.REJECTED},
    UserStatus.REJECTED: {UserStatus.APPROVED},
}

CLUB_TRANSITIONS: Dict[ClubStatus, Set[ClubStatus]] = {
    ClubStatus.PENDING: {ClubStatus.APPROVED, ClubStatus.SUSPENDED},
    ClubStatus.APPROVED: {ClubStatus.SUSPENDED},
    ClubStatus.SUSPENDED: {ClubStatus.APPROVED},
}

# Only approved posts are published. Edits send a post back to pending
# (resubmission) or, for an advisor, straight to approved.
POST_TRANSITIONS: Dict[PostStatus, Set[PostStatus]] = {
    PostStatus.DRAFT: {PostStatus.PENDING, PostStatus.APPROVED, PostStatus.HIDDEN},
    PostStatus.PENDING: {PostStatus.APPROVED, PostStatus.REJECTED, PostStatus.HIDDEN},
    PostStatus.APPROVED: {PostStatus.PENDING, PostStatus.PUBLISHED, PostStatus.HIDDEN, PostStatus.REJECTED},
    PostStatus.PUBLISHED: {PostStatus.PENDING, PostStatus.HIDDEN, PostStatus.APPROVED},
    PostStatus.REJECTED: {PostStatus.PENDING, PostStatus.APPROVED, PostStatus.HIDDEN},
    PostStatus.HIDDEN: {PostStatus.PUBLISHED, PostStatus.APPROVED},
}

# Student/employee accounts: enable/disable only
USER_TRANSITIONS: Dict[UserStatus, Set[UserStatus]] = {
    UserStatus.ACTIVE: {UserStatus.DISABLED},
    UserStatus.DISABLED: {UserStatus.ACTIVE},
    UserStatus.PENDING: {UserStatus.ACTIVE, UserStatus.DISABLED},
}

TRANSITIONS: Dict[EntityKind, Dict[Any, Set[Any]]] = {
    EntityKind.INSTITUTION: INSTITUTION_TRANSITIONS,
    EntityKind.CLUB: CLUB_TRANSITIONS,
    EntityKind.EVENT: POST_TRANSITIONS,
    EntityKind.ANNOUNCEMENT: POST_TRANSITIONS,
    EntityKind.USER: USER_TRANSITIONS,
}

STATUS_ENUMS: Dict[EntityKind, Type[Enum]] = {
    EntityKind.INSTITUTION: UserStatus,
    EntityKind.CLUB: ClubStatus,
    EntityKind.EVENT: PostStatus,
    EntityKind.ANNOUNCEMENT: PostStatus,
    EntityKind.USER: UserStatus,
}


@dataclass
class StateTransition:
    """Record of an applied status change"""
    entity_type: str
    entity_id: str
    from_state: Optional[str]
    to_state: str
    action: str
    actor_id: Optional[str] = None
    forced: bool = False
    timestamp: datetime = field(default_factory=datetime.utcnow)

    @property
    def changed(self) -> bool:
        return self.from_state != self.to_state

    def to_dict(self) -> Dict[str, Any]:
        return {
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "from": self.from_state,
            "to": self.to_state,
            "action": self.action,
            "actor_id": self.actor_id,
            "forced": self.forced,
            "timestamp": self.timestamp.isoformat(),
        }


def parse_status(kind: EntityKind, value: Any) -> Enum:
    """Coerce a raw status value into the entity kind's status enum"""
    enum_cls = STATUS_ENUMS[kind]
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(s.value for s in enum_cls)
        raise ValidationError(f"Invalid status '{value}'. Must be one of: {allowed}", field="status")


def can_transition(kind: EntityKind, current: Any, target: Any) -> bool:
    table = TRANSITIONS[kind]
    return target in table.get(current, set())


class Workflow:
    """Applies status transitions with validation, logging and audit"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def transition(
        self,
        entity: Any,
        kind: EntityKind,
        target: Any,
        *,
        actor_id: Optional[str],
        action: str,
        require_from: Optional[Iterable[Any]] = None,
        force: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ) -> StateTransition:
        """
        Move ``entity.status`` to ``target``.

        Args:
            require_from: statuses the entity must currently be in
                (e.g. review actions only apply to pending posts)
            force: skip the transition table (institution override);
                require_from still applies

        Setting the status an entity already has is a no-op and is not
        audited.
        """
        target_status = parse_status(kind, target)
        current = entity.status
        current_value = current.value if isinstance(current, Enum) else current

        if require_from is not None and current not in set(require_from):
            raise InvalidTransitionError(kind.value, current_value, target_status.value)

        record = StateTransition(
            entity_type=kind.value,
            entity_id=str(entity.id),
            from_state=current_value,
            to_state=target_status.value,
            action=action,
            actor_id=actor_id,
            forced=force,
        )
        if not record.changed:
            return record

        if not force and not can_transition(kind, current, target_status):
            raise InvalidTransitionError(kind.value, current_value, target_status.value)

        entity.status = target_status
        self.db.add(AuditLog(
            actor_id=actor_id,
            action=action,
            entity_type=kind.value,
            entity_id=str(entity.id),
            from_status=current_value,
            to_status=target_status.value,
            details={**(details or {}), "forced": force} if force else details,
        ))
        logger.log_transition(kind.value, str(entity.id), current_value, target_status.value,
                              actor_id=actor_id, action=action, forced=force)
        return record

    async def initial(
        self,
        entity: Any,
        kind: EntityKind,
        status: Any,
        *,
        actor_id: Optional[str],
        action: str,
    ) -> StateTransition:
        """Assign the starting status of a newly created entity and audit it"""
        target_status = parse_status(kind, status)
        entity.status = target_status
        self.db.add(AuditLog(
            actor_id=actor_id,
            action=action,
            entity_type=kind.value,
            entity_id=str(entity.id),
            from_status=None,
            to_status=target_status.value,
        ))
        logger.log_transition(kind.value, str(entity.id), None, target_status.value,
                              actor_id=actor_id, action=action)
        return StateTransition(
            entity_type=kind.value,
            entity_id=str(entity.id),
            from_state=None,
            to_state=target_status.value,
            action=action,
            actor_id=actor_id,
        )

    async def record(
        self,
        kind: EntityKind,
        entity_id: str,
        *,
        actor_id: Optional[str],
        action: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Audit a privileged action that is not a status change (delete, assign)"""
        self.db.add(AuditLog(
            actor_id=actor_id,
            action=action,
            entity_type=kind.value,
            entity_id=str(entity_id),
            details=details,
        ))
        logger.info(f"[Workflow] {action} on {kind.value} {entity_id}",
                    extra={"event_type": "audit", "action": action, "actor_id": actor_id})
