"""
Module: invoice_escrow.models.sequence
Responsibility: Named counter rows backing SequenceService.
Architecture position: Escrow > Models.  May import from db/base.py only.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from invoice_escrow.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    Row-level locking ensures monotonicity under concurrency.
    """

    __tablename__ = "sequence_counters"

    # Sequence name (e.g., "invoice_id", "invoice_event")
    name: Mapped[str] = mapped_column(String(50), primary_key=True)

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )
