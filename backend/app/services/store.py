"""
Entity Store
============

Thin typed command/query interface over the request's AsyncSession.

Services read and write through this instead of building statements and
committing by hand: the request dependency owns the transaction, and
``flush()`` turns a unique-constraint violation into ConflictError so
uniqueness is decided by the database in the same round trip as the write.
"""

from typing import Any, List, Optional, Type, TypeVar

from sqlalchemy import select, func, exists as sql_exists
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from app.core.exceptions import ConflictError, ResourceNotFoundError, UnknownError
from app.core.logging_config import logger

M = TypeVar("M")


class EntityStore:
    """Query/command helpers bound to one session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ==================== Queries ====================

    async def get(self, model: Type[M], entity_id: Optional[str]) -> Optional[M]:
        if not entity_id:
            return None
        return await self.db.get(model, str(entity_id))

    async def get_or_404(self, model: Type[M], entity_id: Optional[str], label: Optional[str] = None) -> M:
        entity = await self.get(model, entity_id)
        if entity is None:
            raise ResourceNotFoundError(label or model.__name__, str(entity_id))
        return entity

    async def first(self, stmt: Select) -> Any:
        result = await self.db.execute(stmt.limit(1))
        return result.scalars().first()

    async def all(self, stmt: Select) -> List[Any]:
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def rows(self, stmt: Select) -> List[Any]:
        result = await self.db.execute(stmt)
        return list(result.all())

    async def exists(self, stmt: Select) -> bool:
        result = await self.db.execute(select(sql_exists(stmt)))
        return bool(result.scalar())

    async def count(self, stmt: Select) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        )
        return result.scalar() or 0

    # ==================== Commands ====================

    def add(self, entity: Any) -> Any:
        self.db.add(entity)
        return entity

    async def delete(self, entity: Any) -> None:
        await self.db.delete(entity)

    async def execute(self, stmt: Any) -> Any:
        return await self.db.execute(stmt)

    async def flush(self, conflict_message: str = "Resource already exists") -> None:
        """
        Push pending writes to the database.

        Raises:
            ConflictError: a unique constraint rejected the write
            UnknownError: any other store failure
        """
        try:
            await self.db.flush()
        except IntegrityError as e:
            logger.warning(f"[Store] Integrity violation: {e.orig}")
            raise ConflictError(conflict_message)
        except SQLAlchemyError as e:
            logger.log_error_with_context(e, context="store.flush")
            raise UnknownError("Database error")

    async def refresh(self, entity: Any) -> Any:
        await self.db.refresh(entity)
        return entity
