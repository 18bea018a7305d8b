"""
Invoice lifecycle status.

The status is derived from the stored flags (escrowed, delivered, paid) and is
never persisted, so it cannot drift from them.

    CREATED --escrow--> ESCROWED --confirm--> RELEASABLE --release--> PAID
       |                                          ^
       +--confirm--> DELIVERED ------escrow-------+

No edge returns to an earlier status.  PAID is terminal.
"""

from enum import Enum


class InvoiceStatus(str, Enum):
    """Position of an invoice in its lifecycle."""

    CREATED = "created"
    ESCROWED = "escrowed"
    DELIVERED = "delivered"  # delivery attested, funds not yet escrowed
    RELEASABLE = "releasable"  # escrowed and delivered
    PAID = "paid"


VALID_TRANSITIONS: dict[InvoiceStatus, frozenset[InvoiceStatus]] = {
    InvoiceStatus.CREATED: frozenset({InvoiceStatus.ESCROWED, InvoiceStatus.DELIVERED}),
    InvoiceStatus.ESCROWED: frozenset({InvoiceStatus.RELEASABLE}),
    InvoiceStatus.DELIVERED: frozenset({InvoiceStatus.RELEASABLE}),
    InvoiceStatus.RELEASABLE: frozenset({InvoiceStatus.PAID}),
    InvoiceStatus.PAID: frozenset(),
}


def derive_status(*, escrowed: int, delivered: bool, paid: bool) -> InvoiceStatus:
    if paid:
        return InvoiceStatus.PAID
    if escrowed and delivered:
        return InvoiceStatus.RELEASABLE
    if escrowed:
        return InvoiceStatus.ESCROWED
    if delivered:
        return InvoiceStatus.DELIVERED
    return InvoiceStatus.CREATED


def is_valid_transition(current: InvoiceStatus, target: InvoiceStatus) -> bool:
    """Check whether ``current -> target`` is an allowed lifecycle edge."""
    return target in VALID_TRANSITIONS[current]
