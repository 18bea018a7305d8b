"""
Module: invoice_escrow.models.right_to_collect
Responsibility: ORM persistence for the right-to-collect relation
    (invoice id -> current holder) and its transfer history.
Architecture position: Escrow > Models.  May import from db/base.py only.

Invariants enforced:
    - Exactly one RightToCollect row per invoice (invoice_id is the PK),
      inserted in the same transaction as the invoice.
    - RightTransfer rows are append-only; mint is recorded with
      from_holder = NULL.

Failure modes:
    - IntegrityError on a second row for the same invoice (the registry
      rejects this earlier with StateError "already minted").
"""

from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from invoice_escrow.db.base import Base, UTCDateTime


class RightToCollect(Base):
    """
    Transferable capability naming who receives released funds.

    Contract:
        Written only by RightToCollectRegistry.  ``approved`` is a single
        operator allowed to transfer on the holder's behalf; it is cleared on
        every transfer.
    """

    __tablename__ = "rights_to_collect"

    __table_args__ = (Index("idx_right_holder", "holder"),)

    invoice_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("invoices.id"),
        primary_key=True,
        autoincrement=False,
    )

    holder: Mapped[str] = mapped_column(String(255), nullable=False)

    approved: Mapped[str | None] = mapped_column(String(255), nullable=True)

    minted_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    def __repr__(self) -> str:
        return f"<RightToCollect invoice={self.invoice_id} holder={self.holder}>"


class RightTransfer(Base):
    """One row per change of holder, in allocation order (seq)."""

    __tablename__ = "right_transfers"

    __table_args__ = (Index("idx_right_transfer_invoice", "invoice_id"),)

    seq: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=False,
    )

    invoice_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("invoices.id"),
        nullable=False,
    )

    from_holder: Mapped[str | None] = mapped_column(String(255), nullable=True)

    to_holder: Mapped[str] = mapped_column(String(255), nullable=False)

    occurred_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
