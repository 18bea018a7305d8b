"""
Invoice notifications.

Immutable facts emitted by the ledger and the registry.  Each event knows its
wire name and how to render its payload as JSON-safe primitives; the
EventRecorder persists them in the append-only event log.
"""

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, ClassVar


@dataclass(frozen=True)
class InvoiceEvent:
    """Base class for all invoice notifications."""

    event_name: ClassVar[str] = "InvoiceEvent"

    invoice_id: int

    def payload(self) -> dict[str, Any]:
        """Event fields as JSON-safe primitives."""
        out: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            out[f.name] = value.isoformat() if isinstance(value, datetime) else value
        return out


@dataclass(frozen=True)
class InvoiceCreated(InvoiceEvent):
    event_name: ClassVar[str] = "InvoiceCreated"

    buyer: str
    supplier: str
    amount: int
    due_date: datetime
    reference: str


@dataclass(frozen=True)
class PaymentEscrowed(InvoiceEvent):
    event_name: ClassVar[str] = "PaymentEscrowed"

    amount: int


@dataclass(frozen=True)
class DeliveryConfirmed(InvoiceEvent):
    event_name: ClassVar[str] = "DeliveryConfirmed"


@dataclass(frozen=True)
class FundsReleased(InvoiceEvent):
    event_name: ClassVar[str] = "FundsReleased"

    amount: int
    recipient: str


@dataclass(frozen=True)
class RightTransferred(InvoiceEvent):
    """Right-to-collect moved between holders. Mint has ``from_holder=None``."""

    event_name: ClassVar[str] = "RightTransferred"

    from_holder: str | None
    to_holder: str


@dataclass(frozen=True)
class RightApproved(InvoiceEvent):
    """Holder approved (or, with ``operator=None``, cleared) a transfer operator."""

    event_name: ClassVar[str] = "RightApproved"

    holder: str
    operator: str | None
