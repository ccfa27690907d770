"""
Health Check Endpoints

- /health        - Liveness (app is running)
- /health/ready  - Readiness (database, limiter storage and upload dir usable)
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from datetime import datetime
from typing import Dict, Any
import os
import time

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.core.config import settings
from app.core.logging_config import logger


router = APIRouter(prefix="/health", tags=["Health"])


async def check_database() -> Dict[str, Any]:
    """Check database connectivity and that the schema exists"""
    from app.core.database import get_session_local

    start = time.time()
    try:
        async with get_session_local()() as session:
            await session.execute(text("SELECT 1"))
            await session.execute(text("SELECT COUNT(*) FROM users"))
        return {"status": "healthy", "latency_ms": round((time.time() - start) * 1000, 2)}
    except SQLAlchemyError as e:
        logger.error(f"[HealthCheck] Database check failed: {e}")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.time() - start) * 1000, 2),
            "error": str(e),
        }


async def check_redis() -> Dict[str, Any]:
    """Check the rate limiter's Redis storage, when one is configured"""
    if not settings.REDIS_URL:
        return {"status": "healthy", "storage": "memory"}

    import redis.asyncio as redis
    from redis.exceptions import RedisError

    start = time.time()
    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        await client.ping()
        return {"status": "healthy", "storage": "redis", "latency_ms": round((time.time() - start) * 1000, 2)}
    except (RedisError, OSError) as e:
        logger.warning(f"[HealthCheck] Redis check failed: {e}")
        return {"status": "degraded", "storage": "redis", "error": str(e)}
    finally:
        await client.aclose()


def check_uploads() -> Dict[str, Any]:
    path = settings.UPLOAD_PATH
    writable = path.is_dir() and os.access(path, os.W_OK)
    return {"status": "healthy" if writable else "degraded", "path": str(path), "writable": writable}


@router.get("")
async def health():
    return {
        "ok": True,
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "timestamp": datetime.utcnow().isoformat(),
    }


@router.get("/ready")
async def readiness():
    checks = {
        "database": await check_database(),
        "rate_limiter": await check_redis(),
        "uploads": check_uploads(),
    }
    healthy = checks["database"]["status"] == "healthy"
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={"ok": healthy, "status": "ready" if healthy else "not_ready", "checks": checks},
    )
