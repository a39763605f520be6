"""
Database Base Definition
========================

Defines the SQLAlchemy Declarative Base and small column helpers shared
by all ORM models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Type

from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import declarative_base

# Base class for all database models
Base = declarative_base()


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Attach UTC to naive datetimes read back from SQLite.

    PostgreSQL returns aware values already; those pass through untouched.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def enum_column(enum_cls: Type[Enum], length: int = 50) -> SAEnum:
    """
    Column type storing a str Enum by its value (not its member name).

    Rows load back as enum members, so comparisons and dict lookups keyed by
    members behave the same on PostgreSQL and SQLite.
    """
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=length,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
