"""
CampusConnect - HTTP Middleware
Request correlation, access logging and response hardening
"""

import time
from typing import Callable, Set
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.config import settings
from app.core.logging_config import (
    logger,
    set_request_id,
    set_user_id,
    set_institution_id,
    generate_request_id,
)


# Health probes, API docs and uploaded images are not access-logged
QUIET_PATHS: Set[str] = {
    f"{settings.API_PREFIX}/health",
    "/",
    "/favicon.ico",
    "/docs",
    "/redoc",
    "/openapi.json",
}

SLOW_REQUEST_MS = 1000


def is_quiet(path: str) -> bool:
    if path in QUIET_PATHS:
        return True
    return path.startswith(settings.UPLOAD_URL_PREFIX + "/")


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Correlates and logs every API call.

    The request id is taken from X-Request-ID when the caller sends one.
    Records logged while the handler runs also carry the user and
    institution ids bound by the session dependency.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        method = request.method
        path = request.url.path
        quiet = is_quiet(path)
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.log_error_with_context(
                exc,
                context=f"{method} {path}",
                duration_ms=(time.perf_counter() - started) * 1000,
                client_ip=client_ip(request),
            )
            raise
        else:
            duration_ms = (time.perf_counter() - started) * 1000
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

            if not quiet:
                logger.log_request(
                    method,
                    path,
                    response.status_code,
                    duration_ms,
                    client_ip=client_ip(request),
                )
                if duration_ms > SLOW_REQUEST_MS:
                    logger.warning(
                        f"Slow request: {method} {path} took {duration_ms:.2f}ms",
                        extra={"event_type": "slow_request", "duration_ms": duration_ms}
                    )
            return response
        finally:
            set_request_id("")
            set_user_id("")
            set_institution_id("")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Standard hardening headers; HSTS only outside development"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
