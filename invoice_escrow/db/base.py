"""
Module: invoice_escrow.db.base
Responsibility: Declarative base classes for all SQLAlchemy ORM models.  Provides
    the type annotation map for consistent column types, the UTC timestamp
    type, and the TrackedBase mixin for audit timestamps.
Architecture position: Escrow > DB.  This is the lowest-level import target
    within the package.  ALL model files import from here.  This module MUST NOT
    import from models/, services/, selectors/, domain/, or outer layers.

Invariants enforced:
    - Integer amounts: currency values are integer minor units mapped to
      BigInteger.  NEVER use float for monetary amounts.
    - Timezone-aware timestamps: UTCDateTime always hands back aware UTC
      datetimes, including on SQLite which stores them naive.
    - Audit timestamps: TrackedBase provides created_at and updated_at.

Failure modes:
    - ValueError from UTCDateTime.process_bind_param when handed a naive
      datetime (callers validate first; this is the last line).
"""

from datetime import datetime, timezone
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp normalized to UTC.

    Contract:
        Accepts only aware datetimes.  Values are converted to UTC before
        storage and returned as aware UTC datetimes on load, whatever the
        backend's native timezone support.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert to UTC when storing."""
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("UTCDateTime requires a timezone-aware datetime")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        """Attach UTC when the backend returned a naive value."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - int maps to BigInteger -- safe for amounts in minor units and
          monotonic sequences.
        - datetime maps to UTCDateTime -- always timezone-aware.
    """

    type_annotation_map: ClassVar[dict] = {
        int: BigInteger,
        datetime: UTCDateTime(),
    }


class TrackedBase(Base):
    """
    Abstract base with audit timestamps.

    Contract:
        Services set created_at/updated_at from the injected Clock; the
        server default only covers rows written outside a service.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )
