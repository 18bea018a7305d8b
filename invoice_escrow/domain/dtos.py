"""
Read-side data transfer objects.

Services and selectors return these frozen dataclasses, never ORM instances,
so callers cannot mutate ledger state behind the ledger's back.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from invoice_escrow.domain.status import InvoiceStatus


@dataclass(frozen=True)
class InvoiceView:
    """Read-only snapshot of an invoice.

    ``supplier`` is the original supplier; the party currently entitled to
    payment is the right-to-collect holder.
    """

    id: int
    buyer: str
    supplier: str
    amount: int
    due_date: datetime
    reference: str
    delivered: bool
    paid: bool
    escrowed: int
    status: InvoiceStatus


@dataclass(frozen=True)
class RightTransferInfo:
    seq: int
    invoice_id: int
    from_holder: str | None
    to_holder: str
    occurred_at: datetime


@dataclass(frozen=True)
class EventLogEntry:
    seq: int
    invoice_id: int
    event_name: str
    payload: dict[str, Any]
    occurred_at: datetime
