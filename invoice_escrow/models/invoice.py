"""
Module: invoice_escrow.models.invoice
Responsibility: ORM persistence for escrowed invoices.
Architecture position: Escrow > Models.  May import from db/base.py and the
    pure domain layer only.  MUST NOT import from services/ or selectors/.

Invariants enforced (by InvoiceLedger, checked by invariants.py):
    - id is dense, sequential from 1, allocated by SequenceService.
    - buyer, original_supplier, amount, due_date, reference never change.
    - escrowed in {0, amount}; paid implies escrowed == 0 and delivered.
    - delivered and paid only ever go False -> True.

Audit relevance:
    The current right-to-collect holder is NOT stored here.  It lives in
    rights_to_collect and is resolved through the registry every time it is
    needed, so authorization always reflects the latest transfer.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from invoice_escrow.db.base import TrackedBase, UTCDateTime
from invoice_escrow.domain.dtos import InvoiceView
from invoice_escrow.domain.status import InvoiceStatus, derive_status


class Invoice(TrackedBase):
    """
    Escrowed invoice record.

    Contract:
        Created once by InvoiceLedger.create_invoice, mutated in place only by
        the ledger's lifecycle operations, never deleted.

    Guarantees:
        - amount > 0 (ck_invoice_amount_positive).
        - escrowed is 0 or amount (ck_invoice_escrow_all_or_nothing).
    """

    __tablename__ = "invoices"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoice_amount_positive"),
        CheckConstraint(
            "escrowed = 0 OR escrowed = amount",
            name="ck_invoice_escrow_all_or_nothing",
        ),
        Index("idx_invoice_buyer", "buyer"),
        Index("idx_invoice_supplier", "original_supplier"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=False,
    )

    buyer: Mapped[str] = mapped_column(String(255), nullable=False)

    # Informational once the right-to-collect has been transferred
    original_supplier: Mapped[str] = mapped_column(String(255), nullable=False)

    # Integer minor units
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)

    due_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    reference: Mapped[str] = mapped_column(String(255), nullable=False)

    escrowed: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    delivered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Submitter of create_invoice, when the environment supplies one
    created_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    @property
    def status(self) -> InvoiceStatus:
        return derive_status(
            escrowed=self.escrowed, delivered=self.delivered, paid=self.paid
        )

    def to_view(self) -> InvoiceView:
        """Read-only snapshot for callers outside the ledger."""
        return InvoiceView(
            id=self.id,
            buyer=self.buyer,
            supplier=self.original_supplier,
            amount=self.amount,
            due_date=self.due_date,
            reference=self.reference,
            delivered=self.delivered,
            paid=self.paid,
            escrowed=self.escrowed,
            status=self.status,
        )

    def __repr__(self) -> str:
        return f"<Invoice {self.id}: {self.reference} ({self.status.value})>"
