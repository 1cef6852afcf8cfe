"""
SQLAlchemy Base Model
Source: https://docs.sqlalchemy.org/en/20/orm/declarative_styles.html
Verified: 2026-10-16
"""

from datetime import datetime
from enum import Enum as PyEnum
from typing import Type
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Enum, func
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimeStampedModel:
    """
    Mixin for models with created_at and updated_at timestamps.

    updated_at doubles as the optimistic concurrency token for claim
    updates (compare-and-set in the claims repository).
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDModel:
    """Mixin for models with UUID primary key."""

    id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        primary_key=True,
        default=uuid4,
    )


def value_enum(enum_cls: Type[PyEnum], name: str) -> Enum:
    """Store an enum by its lowercase value as a checked VARCHAR."""
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda members: [member.value for member in members],
        validate_strings=True,
    )
