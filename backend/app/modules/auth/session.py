from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.models import PlatformRole, EMPLOYEE_ROLES, MEMBER_ROLES


@dataclass(frozen=True)
class SessionUser:
    """Resolved identity of the caller"""
    user_id: str
    role: PlatformRole
    institution_id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    is_staff: bool = False  # employee flagged as institution staff

    @property
    def is_employee(self) -> bool:
        return self.role in EMPLOYEE_ROLES

    @property
    def can_rsvp(self) -> bool:
        return self.role in MEMBER_ROLES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "role": self.role.value,
            "institution_id": self.institution_id,
            "email": self.email,
            "name": self.name,
            "is_staff": self.is_staff,
        }


def parse_role(value: Any) -> PlatformRole:
    """Map a token's role claim to a PlatformRole; unknown roles become staff"""
    try:
        return PlatformRole(value)
    except ValueError:
        return PlatformRole.STAFF
