"""
Auth Service - credential checks and session token issuing
"""

from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import AuthenticationError, AuthorizationError
from app.core.logging_config import logger
from app.core.security import verify_password, get_password_hash, create_access_token
from app.core.types import generate_uuid
from app.models import (
    User,
    UsedEmail,
    PlatformRole,
    UserStatus,
    MEMBER_ROLES,
    APPROVED_INSTITUTION_STATUSES,
    InstitutionMembership,
    MembershipStatus,
)
from app.services.store import EntityStore
from app.services.validators import normalize_email, normalize_phone


def issue_token(user: User) -> str:
    return create_access_token({
        "sub": str(user.id),
        "email": user.email,
        "role": user.platform_role.value,
    })


class AuthService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.store = EntityStore(db)

    async def authenticate(self, email: str, password: str, client_ip: Optional[str] = None) -> Tuple[User, str]:
        """
        Check credentials and return the user with a fresh session token.

        Raises:
            AuthenticationError: unknown account or wrong password
            AuthorizationError: account exists but may not sign in
        """
        email = normalize_email(email)
        user = await self.store.first(select(User).where(func.lower(User.email) == email))

        if user is None or not verify_password(password, user.hashed_password):
            logger.log_auth_event(event="login", success=False, user_email=email,
                                  reason="Invalid credentials", client_ip=client_ip)
            raise AuthenticationError("Invalid email or password")

        reason = await self._sign_in_blocker(user)
        if reason:
            logger.log_auth_event(event="login", success=False, user_email=email,
                                  reason=reason, client_ip=client_ip)
            raise AuthorizationError(reason)

        user.last_login = datetime.utcnow()
        logger.log_auth_event(event="login", success=True, user_email=email,
                              role=user.platform_role.value, client_ip=client_ip)
        return user, issue_token(user)

    async def _sign_in_blocker(self, user: User) -> Optional[str]:
        """Why the account may not sign in, or None"""
        if user.platform_role == PlatformRole.INSTITUTION:
            if user.status == UserStatus.PENDING:
                return "Institution account is pending approval"
            if user.status not in APPROVED_INSTITUTION_STATUSES:
                return "Institution account is not approved"
            return None

        if user.status != UserStatus.ACTIVE:
            return "Account is disabled"

        if user.platform_role in MEMBER_ROLES:
            membership = await self.store.first(
                select(InstitutionMembership).where(InstitutionMembership.user_id == user.id)
            )
            if membership is not None and membership.status == MembershipStatus.REJECTED:
                return "Institution membership was rejected"
        return None


async def ensure_super_admin(db: AsyncSession) -> Optional[User]:
    """
    Create the protected super-admin from SUPER_ADMIN_* settings.

    Skipped when the settings are incomplete or the email is already in use
    (including emails of deleted accounts).
    """
    if not settings.super_admin_configured():
        logger.info("[Bootstrap] SUPER_ADMIN_* not configured, skipping super admin bootstrap")
        return None

    store = EntityStore(db)
    email = normalize_email(settings.SUPER_ADMIN_EMAIL)

    existing = await store.first(select(User).where(func.lower(User.email) == email))
    if existing is not None:
        if existing.platform_role == PlatformRole.SUPER_ADMIN and not existing.is_protected:
            existing.is_protected = True
            await store.flush()
        logger.info(f"[Bootstrap] Super admin {email} already exists")
        return existing
    if await store.exists(select(UsedEmail).where(UsedEmail.email == email)):
        logger.warning(f"[Bootstrap] Email {email} was used by a deleted account, skipping super admin bootstrap")
        return None

    hashed = settings.SUPER_ADMIN_PASSWORD_HASH or get_password_hash(settings.SUPER_ADMIN_PASSWORD)
    user = store.add(User(
        id=generate_uuid(),
        name=settings.SUPER_ADMIN_NAME,
        email=email,
        phone=normalize_phone(settings.SUPER_ADMIN_PHONE) or None,
        hashed_password=hashed,
        platform_role=PlatformRole.SUPER_ADMIN,
        status=UserStatus.ACTIVE,
        is_protected=True,
    ))
    store.add(UsedEmail(email=email))
    await store.flush("Super admin email already in use")
    logger.info(f"[Bootstrap] Created protected super admin {email}")
    return user
