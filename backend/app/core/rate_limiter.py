"""
Rate Limiting for CampusConnect API
===================================
slowapi limiter keyed by session user, falling back to client IP.

Storage is Redis when REDIS_URL is configured, in-process memory otherwise.
Auth endpoints carry stricter limits against credential stuffing:
- /auth/login: 5 req/min
- /register/*: 3 req/min
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse

from app.core.config import settings
from app.core.logging_config import logger


LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "3/minute"


def get_user_identifier(request: Request) -> str:
    """
    Rate limit key.

    Authenticated requests are keyed by user id (set on request.state by the
    session resolver), anonymous ones by client IP.
    """
    user_id = getattr(request.state, 'user_id', None)
    if user_id:
        return f"user:{user_id}"
    return f"ip:{get_remote_address(request)}"


limiter = Limiter(
    key_func=get_user_identifier,
    default_limits=[f"{settings.RATE_LIMIT_PER_MINUTE}/minute"],
    storage_uri=settings.REDIS_URL or "memory://",
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render a RateLimitExceeded in the standard error envelope"""
    logger.warning(
        f"[RateLimit] Exceeded for {get_user_identifier(request)}: {exc.detail}"
    )
    return JSONResponse(
        status_code=429,
        content={
            "ok": False,
            "error": "Too many requests. Please slow down.",
            "code": "RATE_LIMITED",
            "details": {"limit": str(exc.detail)},
        },
        headers={"Retry-After": "60"},
    )
