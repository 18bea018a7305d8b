"""
Module: invoice_escrow.models.invoice_event
Responsibility: ORM persistence for the append-only log of emitted invoice
    notifications (InvoiceCreated, PaymentEscrowed, DeliveryConfirmed,
    FundsReleased, RightTransferred, RightApproved).
Architecture position: Escrow > Models.  May import from db/base.py only.

Invariants enforced:
    - seq is strictly increasing, allocated by SequenceService.
    - Rows are only ever inserted.  A failed operation's events vanish with
      its savepoint, so the log only contains facts that committed.

Audit relevance:
    This is the table off-chain indexers read.  Delivery of notifications to
    them is outside the ledger.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, BigInteger, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from invoice_escrow.db.base import Base, UTCDateTime


class InvoiceEventRecord(Base):
    """Persisted notification."""

    __tablename__ = "invoice_events"

    __table_args__ = (
        Index("idx_invoice_event_invoice", "invoice_id"),
        Index("idx_invoice_event_name", "event_name"),
    )

    seq: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=False,
    )

    # Plain column, no FK to invoices
    invoice_id: Mapped[int] = mapped_column(BigInteger, nullable=False)

    event_name: Mapped[str] = mapped_column(String(50), nullable=False)

    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<InvoiceEventRecord #{self.seq} {self.event_name} invoice={self.invoice_id}>"
