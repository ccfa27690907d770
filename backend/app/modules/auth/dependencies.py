from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional
import uuid

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.logging_config import logger, set_user_id, set_institution_id
from app.core.security import decode_token
from app.models import (
    User,
    PlatformRole,
    UserStatus,
    InstitutionMembership,
    MembershipStatus,
    MEMBER_ROLES,
    APPROVED_INSTITUTION_STATUSES,
)
from app.modules.auth.session import SessionUser, parse_role

security = HTTPBearer(auto_error=False)


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header first, then the session cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def load_session(token: str, db: AsyncSession) -> SessionUser:
    """
    Resolve a session token to {user_id, role, institution_id}.

    Raises:
        AuthenticationError: token invalid/expired, user gone, or role changed
        AuthorizationError: account exists but may not act (disabled, rejected,
            institution not approved)
    """
    payload = decode_token(token)

    if payload.get("type") != "access":
        raise AuthenticationError("Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")

    try:
        uuid.UUID(user_id)
    except ValueError:
        raise AuthenticationError("Invalid user ID format")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise AuthenticationError("User not found")

    if parse_role(payload.get("role")) != user.platform_role:
        raise AuthenticationError("Session is out of date, please sign in again")

    institution_id: Optional[str] = None
    is_staff = False

    if user.platform_role == PlatformRole.INSTITUTION:
        if user.status not in APPROVED_INSTITUTION_STATUSES:
            raise AuthorizationError("Institution account is not approved")
        institution_id = user.id

    elif user.platform_role in MEMBER_ROLES:
        if user.status != UserStatus.ACTIVE:
            raise AuthorizationError("Account is not active")
        result = await db.execute(
            select(InstitutionMembership).where(InstitutionMembership.user_id == user.id)
        )
        membership = result.scalar_one_or_none()
        if membership is not None:
            if membership.status == MembershipStatus.REJECTED:
                raise AuthorizationError("Institution membership was rejected")
            institution_id = membership.institution_id
            is_staff = bool(membership.is_staff)

    elif user.status != UserStatus.ACTIVE:
        raise AuthorizationError("Account is not active")

    return SessionUser(
        user_id=user.id,
        role=user.platform_role,
        institution_id=institution_id,
        email=user.email,
        name=user.name,
        is_staff=is_staff,
    )


async def get_optional_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[SessionUser]:
    """Session if the caller presents a valid one, otherwise None"""
    token = extract_token(request, credentials)
    if not token:
        return None
    try:
        session = await load_session(token, db)
    except (AuthenticationError, AuthorizationError) as e:
        logger.debug(f"[Auth] Ignoring unusable optional session: {e.message}")
        return None
    _bind_request_context(request, session)
    return session


async def get_current_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> SessionUser:
    """Session of the caller; 401 when there is none"""
    token = extract_token(request, credentials)
    if not token:
        raise AuthenticationError("Unauthorized")
    session = await load_session(token, db)
    _bind_request_context(request, session)
    return session


def _bind_request_context(request: Request, session: SessionUser) -> None:
    request.state.user_id = session.user_id
    set_user_id(session.user_id)
    if session.institution_id:
        set_institution_id(session.institution_id)


def require_roles(*roles: PlatformRole):
    """
    Dependency factory declaring the roles allowed on a route.

    Usage:
        @router.get("/clubs")
        async def list_clubs(session: SessionUser = Depends(require_roles(PlatformRole.STUDENT))):
            ...
    """
    allowed = frozenset(roles)

    async def dependency(session: SessionUser = Depends(get_current_session)) -> SessionUser:
        if session.role not in allowed:
            raise AuthorizationError("Forbidden")
        return session

    return dependency


require_super_admin = require_roles(PlatformRole.SUPER_ADMIN)
require_institution = require_roles(PlatformRole.INSTITUTION)
require_employee = require_roles(PlatformRole.EMPLOYEE, PlatformRole.STAFF)
require_student = require_roles(PlatformRole.STUDENT)
require_member = require_roles(PlatformRole.STUDENT, PlatformRole.EMPLOYEE, PlatformRole.STAFF)
