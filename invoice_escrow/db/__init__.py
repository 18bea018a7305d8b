"""Database layer - engine, base classes, types."""

from invoice_escrow.db.base import Base, TrackedBase, UTCDateTime
from invoice_escrow.db.engine import (
    create_tables,
    get_engine,
    get_session,
    session_scope,
)

__all__ = [
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UTCDateTime",
]
