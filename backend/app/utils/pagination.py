"""
Pagination helpers for list endpoints.
"""
from typing import Any, Callable, Dict, List, Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

MAX_PAGE_SIZE = 100


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: int = 10,
    serializer: Optional[Callable[[Any], Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Apply offset pagination to a SELECT of ORM entities.

    Returns items (optionally serialized), total, page, page_size,
    total_pages, has_next and has_previous.
    """
    page = max(1, page)
    page_size = max(1, min(MAX_PAGE_SIZE, page_size))

    count_stmt = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar() or 0

    result = await db.execute(query.offset((page - 1) * page_size).limit(page_size))
    items: List[Any] = list(result.scalars().all())
    if serializer is not None:
        items = [serializer(item) for item in items]

    return create_paginated_response(items, total, page, page_size)


def create_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    page_size: int
) -> Dict[str, Any]:
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1
    }
