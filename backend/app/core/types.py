"""Column types shared by the models"""
import enum
import uuid
from datetime import datetime
from typing import Type

from sqlalchemy import TypeDecorator, String
from sqlalchemy import Enum as SQLEnum


def generate_uuid() -> str:
    """Identifier assigned to every entity at creation"""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.utcnow()


class GUID(TypeDecorator):
    """UUID stored as VARCHAR(36) on every backend"""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


def enum_column(enum_cls: Type[enum.Enum]) -> SQLEnum:
    """
    Store a str Enum by its value ("pending", not "PENDING") as a VARCHAR
    with a CHECK constraint, so statuses read the same in SQL and JSON.
    """
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
        validate_strings=True,
    )
