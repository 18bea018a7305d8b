"""
Pure domain layer.

Data transfer objects and rules with NO dependencies on the ORM, the
database, or I/O (SystemClock excepted).
"""

from invoice_escrow.domain.clock import Clock, DeterministicClock, SystemClock
from invoice_escrow.domain.dtos import EventLogEntry, InvoiceView, RightTransferInfo
from invoice_escrow.domain.events import (
    DeliveryConfirmed,
    FundsReleased,
    InvoiceCreated,
    InvoiceEvent,
    PaymentEscrowed,
    RightApproved,
    RightTransferred,
)
from invoice_escrow.domain.status import (
    VALID_TRANSITIONS,
    InvoiceStatus,
    derive_status,
    is_valid_transition,
)
from invoice_escrow.domain.values import (
    MAX_STORABLE_AMOUNT,
    normalize_address,
    validate_amount,
    validate_due_date,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "EventLogEntry",
    "InvoiceView",
    "RightTransferInfo",
    "InvoiceEvent",
    "InvoiceCreated",
    "PaymentEscrowed",
    "DeliveryConfirmed",
    "FundsReleased",
    "RightTransferred",
    "RightApproved",
    "InvoiceStatus",
    "VALID_TRANSITIONS",
    "derive_status",
    "is_valid_transition",
    "MAX_STORABLE_AMOUNT",
    "normalize_address",
    "validate_amount",
    "validate_due_date",
]
