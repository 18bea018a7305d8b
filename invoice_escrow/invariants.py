"""
Escrow Invariants Contract.

These invariants are structural law for every invoice, after every
operation.  InvoiceLedger runs ``check_transition`` and
``check_invoice_invariants`` before each lifecycle operation commits its
savepoint; a violation aborts the operation like any other error.
"""

from enum import Enum, unique

from invoice_escrow.domain.status import InvoiceStatus, is_valid_transition
from invoice_escrow.exceptions import InvariantViolationError
from invoice_escrow.models.invoice import Invoice


@unique
class EscrowInvariant(str, Enum):
    """Non-configurable invariants enforced by the ledger."""

    ESCROW_ALL_OR_NOTHING = "escrow_all_or_nothing"
    """escrowed is either 0 or exactly amount. Also a DB check constraint."""

    PAID_IMPLIES_EMPTY = "paid_implies_empty"
    """A paid invoice holds no escrow."""

    PAID_IMPLIES_DELIVERED = "paid_implies_delivered"
    """Funds are never released without a delivery attestation."""

    SINGLE_HOLDER = "single_holder"
    """Exactly one right-to-collect holder exists per invoice."""

    DENSE_IDS = "dense_ids"
    """Invoice ids are 1..N with no gaps. Enforced by SequenceService."""

    LIFECYCLE_FORWARD_ONLY = "lifecycle_forward_only"
    """Each operation moves one edge of VALID_TRANSITIONS; PAID is terminal."""


ALL_ESCROW_INVARIANTS: frozenset[EscrowInvariant] = frozenset(EscrowInvariant)


def check_invoice_invariants(invoice: Invoice, holder: str | None) -> None:
    """
    Verify the per-invoice invariants.

    Args:
        invoice: The invoice after mutation (flushed or not).
        holder: Current right-to-collect holder as resolved by the registry.

    Raises:
        InvariantViolationError: naming the first invariant that fails.
    """
    if invoice.escrowed not in (0, invoice.amount):
        raise InvariantViolationError(
            EscrowInvariant.ESCROW_ALL_OR_NOTHING.value,
            invoice.id,
            f"escrowed={invoice.escrowed} amount={invoice.amount}",
        )
    if invoice.paid and invoice.escrowed != 0:
        raise InvariantViolationError(
            EscrowInvariant.PAID_IMPLIES_EMPTY.value,
            invoice.id,
            f"escrowed={invoice.escrowed}",
        )
    if invoice.paid and not invoice.delivered:
        raise InvariantViolationError(
            EscrowInvariant.PAID_IMPLIES_DELIVERED.value,
            invoice.id,
            "paid without delivery",
        )
    if not holder:
        raise InvariantViolationError(
            EscrowInvariant.SINGLE_HOLDER.value,
            invoice.id,
            "no right-to-collect holder",
        )


def check_transition(invoice: Invoice, before: InvoiceStatus) -> None:
    """
    Verify that ``invoice`` moved from ``before`` along a lifecycle edge.

    Raises:
        InvariantViolationError: LIFECYCLE_FORWARD_ONLY, for a skipped,
            backward or empty move.
    """
    after = invoice.status
    if not is_valid_transition(before, after):
        raise InvariantViolationError(
            EscrowInvariant.LIFECYCLE_FORWARD_ONLY.value,
            invoice.id,
            f"{before.value} -> {after.value}",
        )
