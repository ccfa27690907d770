"""
Admin Audit Logs endpoints.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from datetime import datetime
from typing import Optional

from app.core.database import get_db
from app.core.exceptions import ValidationError
from app.models import User, AuditLog
from app.modules.auth.dependencies import require_super_admin
from app.modules.auth.session import SessionUser
from app.services.store import EntityStore
from app.utils.pagination import create_paginated_response

router = APIRouter()


def _parse_date(value: Optional[str], field: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"Invalid date '{value}'", field=field)


@router.get("")
async def list_audit_logs(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    action: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    actor_id: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    search: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    session: SessionUser = Depends(require_super_admin)
):
    """Status transitions and privileged actions, newest first"""
    conditions = []
    if action:
        conditions.append(AuditLog.action == action)
    if entity_type:
        conditions.append(AuditLog.entity_type == entity_type)
    if entity_id:
        conditions.append(AuditLog.entity_id == entity_id)
    if actor_id:
        conditions.append(AuditLog.actor_id == actor_id)
    start = _parse_date(start_date, "start_date")
    if start:
        conditions.append(AuditLog.created_at >= start)
    end = _parse_date(end_date, "end_date")
    if end:
        conditions.append(AuditLog.created_at <= end)
    if search:
        search_term = f"%{search}%"
        conditions.append(or_(
            AuditLog.action.ilike(search_term),
            AuditLog.entity_type.ilike(search_term)
        ))

    store = EntityStore(db)
    query = (
        select(AuditLog, User.email)
        .outerjoin(User, AuditLog.actor_id == User.id)
        .where(*conditions)
        .order_by(AuditLog.created_at.desc())
    )
    total = await store.count(select(AuditLog.id).where(*conditions))
    rows = await store.rows(query.offset((page - 1) * page_size).limit(page_size))

    items = [
        {
            "id": log.id,
            "actor_id": log.actor_id,
            "actor_email": actor_email,
            "action": log.action,
            "entity_type": log.entity_type,
            "entity_id": log.entity_id,
            "from_status": log.from_status,
            "to_status": log.to_status,
            "details": log.details,
            "created_at": log.created_at.isoformat(),
        }
        for log, actor_email in rows
    ]
    return {"ok": True, **create_paginated_response(items, total, page, page_size)}
