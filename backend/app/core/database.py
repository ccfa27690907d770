from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from typing import Any, AsyncGenerator, Dict, Optional

from app.core.config import settings

Base = declarative_base()

# Created on first use so tests can swap DATABASE_URL before anything connects
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def get_database_url() -> str:
    """DATABASE_URL with the async driver filled in for plain postgres URLs"""
    db_url = settings.DATABASE_URL
    if db_url.startswith("postgresql://"):
        db_url = db_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return db_url


def engine_options(db_url: str) -> Dict[str, Any]:
    """
    Pool settings per backend.

    SQLite (local runs and tests) and development Postgres use NullPool.
    Production Postgres keeps a pre-pinged QueuePool sized from settings.
    """
    options: Dict[str, Any] = {"echo": settings.DB_ECHO}
    if db_url.startswith("sqlite"):
        options.update(connect_args={"check_same_thread": False}, poolclass=NullPool)
    elif settings.DEBUG or settings.ENVIRONMENT == "development":
        options.update(poolclass=NullPool)
    else:
        options.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_recycle=1800,
            pool_pre_ping=True,
        )
    return options


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        db_url = get_database_url()
        _engine = create_async_engine(db_url, **engine_options(db_url))
    return _engine


def get_session_local() -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the shared engine"""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )
    return _session_factory


def AsyncSessionLocal() -> AsyncSession:
    """Standalone session for work outside a request (super-admin bootstrap)"""
    return get_session_local()()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session: one transaction per request.

    Registration rows, RSVP upserts, status changes and their audit entries
    are committed together, or rolled back together when the handler raises.
    """
    async with get_session_local()() as session:
        try:
            yield session
            if session.in_transaction():
                await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db():
    """Create any missing tables"""
    import app.models  # noqa: F401  registers every table on Base.metadata

    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db():
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None
