# Authentication module

from app.modules.auth.session import SessionUser, parse_role
from app.modules.auth.dependencies import (
    get_current_session,
    get_optional_session,
    load_session,
    require_roles,
    require_super_admin,
    require_institution,
    require_employee,
    require_student,
    require_member,
)

__all__ = [
    "SessionUser",
    "parse_role",
    "get_current_session",
    "get_optional_session",
    "load_session",
    "require_roles",
    "require_super_admin",
    "require_institution",
    "require_employee",
    "require_student",
    "require_member",
]
