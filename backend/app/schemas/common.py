from datetime import datetime, timezone
from typing import Any, List, Literal, Optional

from pydantic import BaseModel


def blank_to_none(value: Any) -> Any:
    """Form fields arrive as "" when left empty"""
    if isinstance(value, str) and not value.strip():
        return None
    return value


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC"""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def split_csv(value: Any) -> List[str]:
    """Comma separated tags -> unique, lower-cased names in input order"""
    if value is None:
        return []
    parts = value.split(",") if isinstance(value, str) else list(value)
    names: List[str] = []
    for part in parts:
        name = str(part).strip().lower()
        if name and name not in names:
            names.append(name)
    return names


class ReviewRequest(BaseModel):
    action: Literal["approve", "reject"]


class ClubStatusRequest(BaseModel):
    action: Literal["approve", "suspend"]


class AccountStatusRequest(BaseModel):
    status: Literal["active", "disabled"]
