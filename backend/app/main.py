from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from typing import Any, Dict, List
from pydantic import ValidationError as PydanticValidationError
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.config import settings
from app.core.database import AsyncSessionLocal, init_db, close_db
from app.core.exceptions import CampusError, error_response
from app.core.logging_config import logger
from app.core.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.api.v1.router import api_router
from app.services.auth_service import ensure_super_admin

INSECURE_SECRETS = {"change-me-in-production", "change-me-in-production-jwt", "CHANGE_ME", ""}


def validate_critical_config():
    """Fail fast in production when secrets still hold their defaults"""
    errors = []
    warnings = []

    if not settings.DATABASE_URL:
        errors.append("DATABASE_URL is not set")

    if settings.is_production():
        if settings.SECRET_KEY in INSECURE_SECRETS:
            errors.append("SECRET_KEY is not set or using default value")
        if settings.JWT_SECRET_KEY in INSECURE_SECRETS:
            errors.append("JWT_SECRET_KEY is not set or using default value")
        if not settings.SESSION_COOKIE_SECURE:
            warnings.append("SESSION_COOKIE_SECURE is off - session cookies sent over plain HTTP")

    if not settings.REDIS_URL:
        warnings.append("REDIS_URL not set - rate limits are kept in process memory")

    if not settings.super_admin_configured():
        warnings.append("SUPER_ADMIN_EMAIL / SUPER_ADMIN_PASSWORD not set - no super admin is bootstrapped")

    if errors:
        for err in errors:
            logger.critical(f"[Startup] CRITICAL: {err}")
        raise RuntimeError(f"Missing critical configuration: {', '.join(errors)}")

    for warn in warnings:
        logger.warning(f"[Startup] WARNING: {warn}")


async def bootstrap_super_admin():
    async with AsyncSessionLocal() as db:
        try:
            admin = await ensure_super_admin(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
    if admin is not None:
        logger.info(f"[Startup] Super admin ready: {admin.email}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} {settings.APP_VERSION}...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info("=" * 60)

    validate_critical_config()
    await init_db()
    logger.info("[Startup] Database tables ready")
    await bootstrap_super_admin()

    yield

    logger.info(f"Shutting down {settings.APP_NAME}...")
    await close_db()


app = FastAPI(
    title=settings.APP_NAME,
    description="Campus engagement platform: institutions, clubs, events, announcements and RSVPs",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Add middleware (order matters - last added runs first)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# ==================== EXCEPTION HANDLERS ====================

def _validation_body(errors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """First validation error as the standard error envelope"""
    first = errors[0] if errors else {}
    message = str(first.get("msg", "Invalid request"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    body: Dict[str, Any] = {"ok": False, "error": message, "code": "VALIDATION_ERROR"}
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    if loc:
        body["details"] = {"field": loc[-1]}
    return body


@app.exception_handler(CampusError)
async def campus_error_handler(request: Request, exc: CampusError):
    if exc.status_code >= 500:
        logger.error(f"[Error] {exc.code}: {exc.message}", exc_info=True)
    return JSONResponse(status_code=exc.status_code, content=error_response(exc))


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=_validation_body(exc.errors()))


@app.exception_handler(PydanticValidationError)
async def model_validation_handler(request: Request, exc: PydanticValidationError):
    # Models built inside handlers (multipart forms)
    return JSONResponse(status_code=400, content=_validation_body(exc.errors()))


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"ok": False, "error": str(exc.detail), "code": "HTTP_ERROR"},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "ok": False,
            "error": str(exc) if settings.DEBUG else "Internal server error",
            "code": "INTERNAL_ERROR",
        }
    )


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    return {
        "ok": True,
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": f"{settings.API_PREFIX}/health",
    }


settings.UPLOAD_PATH.mkdir(parents=True, exist_ok=True)
app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=str(settings.UPLOAD_PATH)), name="uploads")

app.include_router(api_router, prefix=settings.API_PREFIX)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )
