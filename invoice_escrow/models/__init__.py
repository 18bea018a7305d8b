"""Domain models for the invoice escrow ledger."""

from invoice_escrow.models.invoice import Invoice
from invoice_escrow.models.invoice_event import InvoiceEventRecord
from invoice_escrow.models.right_to_collect import RightToCollect, RightTransfer
from invoice_escrow.models.sequence import SequenceCounter

__all__ = [
    "Invoice",
    "InvoiceEventRecord",
    "RightToCollect",
    "RightTransfer",
    "SequenceCounter",
]
