"""Services for the invoice escrow ledger (write side)."""

from invoice_escrow.services.event_recorder import EventRecorder
from invoice_escrow.services.invoice_ledger import InvoiceLedger
from invoice_escrow.services.payment_rail import (
    InMemoryPaymentRail,
    PaymentRail,
    PaymentRailError,
    RailTransfer,
)
from invoice_escrow.services.right_to_collect_registry import RightToCollectRegistry
from invoice_escrow.services.sequence_service import SequenceService

__all__ = [
    "EventRecorder",
    "InMemoryPaymentRail",
    "InvoiceLedger",
    "PaymentRail",
    "PaymentRailError",
    "RailTransfer",
    "RightToCollectRegistry",
    "SequenceService",
]
