"""
Module: invoice_escrow.selectors.invoice_selector
Responsibility: Read-only queries over invoices, rights, and the event log,
    for reconciliation and reporting.
Architecture position: Escrow > Selectors.

Invariants enforced:
    - Holder-based queries join rights_to_collect at query time; the invoice
      row never carries a cached holder.
    - Lifecycle status filters are translated to predicates over the stored
      flags, matching domain.status.derive_status exactly.
"""

from sqlalchemy import and_, func, select
from sqlalchemy.sql import ColumnElement

from invoice_escrow.domain.dtos import EventLogEntry, InvoiceView
from invoice_escrow.domain.status import InvoiceStatus
from invoice_escrow.models.invoice import Invoice
from invoice_escrow.models.invoice_event import InvoiceEventRecord
from invoice_escrow.models.right_to_collect import RightToCollect
from invoice_escrow.selectors.base import BaseSelector


def _status_predicate(status: InvoiceStatus) -> ColumnElement[bool]:
    not_paid = Invoice.paid.is_(False)
    if status is InvoiceStatus.PAID:
        return Invoice.paid.is_(True)
    if status is InvoiceStatus.RELEASABLE:
        return and_(not_paid, Invoice.escrowed > 0, Invoice.delivered.is_(True))
    if status is InvoiceStatus.ESCROWED:
        return and_(not_paid, Invoice.escrowed > 0, Invoice.delivered.is_(False))
    if status is InvoiceStatus.DELIVERED:
        return and_(not_paid, Invoice.escrowed == 0, Invoice.delivered.is_(True))
    return and_(not_paid, Invoice.escrowed == 0, Invoice.delivered.is_(False))


class InvoiceSelector(BaseSelector):
    """Read-side queries for the escrow ledger."""

    def get(self, invoice_id: int) -> InvoiceView | None:
        invoice = self.session.get(Invoice, invoice_id)
        return invoice.to_view() if invoice else None

    def list_invoices(
        self,
        *,
        buyer: str | None = None,
        holder: str | None = None,
        status: InvoiceStatus | None = None,
    ) -> list[InvoiceView]:
        """
        List invoices in id order, optionally filtered.

        Args:
            buyer: Only invoices owed by this buyer.
            holder: Only invoices whose right is currently held by this address.
            status: Only invoices in this lifecycle status.
        """
        stmt = select(Invoice)
        if holder is not None:
            stmt = stmt.join(RightToCollect, RightToCollect.invoice_id == Invoice.id).where(
                RightToCollect.holder == holder
            )
        if buyer is not None:
            stmt = stmt.where(Invoice.buyer == buyer)
        if status is not None:
            stmt = stmt.where(_status_predicate(status))
        stmt = stmt.order_by(Invoice.id)

        return [i.to_view() for i in self.session.execute(stmt).scalars()]

    def count(self) -> int:
        return self.session.execute(select(func.count()).select_from(Invoice)).scalar_one()

    def total_escrowed(self, *, buyer: str | None = None) -> int:
        """Sum of escrowed amounts, optionally for one buyer."""
        stmt = select(func.coalesce(func.sum(Invoice.escrowed), 0))
        if buyer is not None:
            stmt = stmt.where(Invoice.buyer == buyer)
        return int(self.session.execute(stmt).scalar_one())

    def events(
        self,
        invoice_id: int | None = None,
        *,
        event_name: str | None = None,
        after_seq: int = 0,
    ) -> list[EventLogEntry]:
        """
        Event log entries in emission order.

        ``after_seq`` lets an indexer resume from the last sequence it saw.
        """
        stmt = select(InvoiceEventRecord).where(InvoiceEventRecord.seq > after_seq)
        if invoice_id is not None:
            stmt = stmt.where(InvoiceEventRecord.invoice_id == invoice_id)
        if event_name is not None:
            stmt = stmt.where(InvoiceEventRecord.event_name == event_name)
        stmt = stmt.order_by(InvoiceEventRecord.seq)

        return [
            EventLogEntry(
                seq=r.seq,
                invoice_id=r.invoice_id,
                event_name=r.event_name,
                payload=dict(r.payload),
                occurred_at=r.occurred_at,
            )
            for r in self.session.execute(stmt).scalars()
        ]
