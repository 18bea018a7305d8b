"""
InvoiceLedger -- the invoice escrow state machine.

Responsibility:
    Single entry point for every invoice action: creation, fund escrow,
    delivery attestation, and fund release.  Owns invoice records and the
    escrowed balances; consults the RightToCollectRegistry for "who is the
    current holder" and moves value only on release, through the PaymentRail.

Architecture position:
    Escrow > Services.  The only writer of the invoices table.

Lifecycle (see domain/status.py):
    CREATED -> ESCROWED -> RELEASABLE -> PAID
    CREATED -> DELIVERED -> RELEASABLE
    Delivery confirmation does not need escrow; release needs both.

Invariants enforced:
    - Every operation runs in its own SAVEPOINT: it commits whole or leaves
      no trace (invoice rows, minted rights, sequence values, events).
    - escrowed in {0, amount}; paid implies escrowed == 0 and delivered
      (checked by invariants.check_invoice_invariants before each commit).
    - Every successful operation moves the invoice along exactly one edge
      of VALID_TRANSITIONS (invariants.check_transition).
    - Callers are matched against stored addresses after the same
      whitespace normalization the addresses received at creation.
    - Effects before interactions: release_funds flushes paid=True and
      escrowed=0 before it calls the rail, so a recipient that calls back
      into release_funds sees a paid invoice and is rejected.
    - The holder is never cached on the invoice; it is resolved from the
      registry at the moment of each check.

Failure modes:
    - AuthorizationError "only buyer" / "only current holder"
    - InvalidValueError "wrong amount" and creation argument errors
    - StateError "not delivered" / "already escrowed" / "already paid" /
      "nothing to release" / "already delivered"
    - NotFoundError "invoice not found"
    - TransferFailedError "transfer failed": the rail refused the payout;
      the release is rolled back and the invoice stays escrowed.

Due dates are informational.  Nothing expires, accrues, or cancels on its own.
"""

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from invoice_escrow.domain.clock import Clock, SystemClock
from invoice_escrow.domain.dtos import InvoiceView
from invoice_escrow.domain.events import (
    DeliveryConfirmed,
    FundsReleased,
    InvoiceCreated,
    PaymentEscrowed,
)
from invoice_escrow.domain.status import InvoiceStatus
from invoice_escrow.domain.values import (
    MAX_STORABLE_AMOUNT,
    normalize_address,
    same_address,
    validate_amount,
    validate_due_date,
)
from invoice_escrow.exceptions import (
    AuthorizationError,
    InvalidValueError,
    NotFoundError,
    Reason,
    StateError,
    TransferFailedError,
)
from invoice_escrow.invariants import check_invoice_invariants, check_transition
from invoice_escrow.logging_config import LogContext, get_logger
from invoice_escrow.models.invoice import Invoice
from invoice_escrow.services.base import BaseService
from invoice_escrow.services.event_recorder import EventRecorder
from invoice_escrow.services.payment_rail import PaymentRail, PaymentRailError
from invoice_escrow.services.right_to_collect_registry import RightToCollectRegistry
from invoice_escrow.services.sequence_service import SequenceService

logger = get_logger("services.ledger")

DEFAULT_MAX_REFERENCE_LENGTH = 128


class InvoiceLedger(BaseService):
    """
    Escrow ledger for invoices.

    Contract:
        Callers pass the authenticated address of whoever submitted the
        action as ``caller``.  The ledger flushes but never commits; wrap a
        batch of operations in ``session_scope()`` (or commit yourself).

    Usage:
        ledger = InvoiceLedger(session, rail)
        invoice_id = ledger.create_invoice(buyer, supplier, 5 * 10**16, due, "INV-003")
        ledger.escrow_payment(invoice_id, 5 * 10**16, caller=buyer)
        ledger.confirm_delivery(invoice_id, caller=supplier)
        ledger.release_funds(invoice_id, caller=anyone)
    """

    def __init__(
        self,
        session: Session,
        payment_rail: PaymentRail,
        clock: Clock | None = None,
        registry: RightToCollectRegistry | None = None,
        sequences: SequenceService | None = None,
        recorder: EventRecorder | None = None,
        *,
        max_reference_length: int = DEFAULT_MAX_REFERENCE_LENGTH,
        max_amount: int = MAX_STORABLE_AMOUNT,
    ):
        super().__init__(session)
        self._rail = payment_rail
        self._clock = clock or SystemClock()
        self._sequences = sequences or SequenceService(session)
        self._recorder = recorder or EventRecorder(session, self._clock, self._sequences)
        self._registry = registry or RightToCollectRegistry(
            session, self._clock, self._sequences, self._recorder
        )
        self._max_reference_length = max_reference_length
        self._max_amount = max_amount

    @property
    def registry(self) -> RightToCollectRegistry:
        return self._registry

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self.session.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError(Reason.INVOICE_NOT_FOUND, invoice_id)
        return invoice

    def _commit_changes(self, invoice: Invoice, before: InvoiceStatus | None) -> None:
        """
        Stamp, flush, and verify invariants against the live holder.

        ``before`` is the status the operation started from (None on
        creation); the move to the new status must be a lifecycle edge.
        """
        invoice.updated_at = self._clock.now()
        self.session.flush()
        if before is not None:
            check_transition(invoice, before)
        check_invoice_invariants(invoice, self._registry.current_holder(invoice.id))

    # ------------------------------------------------------------------
    # Lifecycle operations
    # ------------------------------------------------------------------

    def create_invoice(
        self,
        buyer: str,
        supplier: str,
        amount: int,
        due_date: datetime,
        reference: str,
        *,
        caller: str | None = None,
    ) -> int:
        """
        Register a new invoice and mint its right-to-collect to ``supplier``.

        Preconditions:
            - ``buyer`` and ``supplier`` are distinct, non-blank addresses.
            - 0 < ``amount`` <= the configured maximum.
            - ``due_date`` is timezone-aware.
            - ``reference`` fits the configured maximum length.

        Postconditions:
            - Returns the next sequential id (first invoice is 1).
            - escrowed == 0, delivered is False, paid is False.
            - InvoiceCreated emitted.  No value moves.
        """
        with LogContext.bind(actor=caller), self.atomic("create_invoice"):
            buyer = normalize_address(buyer)
            supplier = normalize_address(supplier)
            if buyer == supplier:
                raise InvalidValueError(Reason.SAME_PARTY)
            amount = validate_amount(amount, self._max_amount)
            due_date = validate_due_date(due_date)
            if not isinstance(reference, str) or len(reference) > self._max_reference_length:
                raise InvalidValueError(Reason.REFERENCE_TOO_LONG)

            invoice_id = self._sequences.next_value(SequenceService.INVOICE_ID)
            now = self._clock.now()
            invoice = Invoice(
                id=invoice_id,
                buyer=buyer,
                original_supplier=supplier,
                amount=amount,
                due_date=due_date,
                reference=reference,
                escrowed=0,
                delivered=False,
                paid=False,
                created_by=caller,
                created_at=now,
                updated_at=now,
            )
            self.session.add(invoice)
            self.session.flush()

            self._registry._mint(invoice_id, supplier)
            self._recorder.record(
                InvoiceCreated(
                    invoice_id=invoice_id,
                    buyer=buyer,
                    supplier=supplier,
                    amount=amount,
                    due_date=due_date,
                    reference=reference,
                )
            )
            self._commit_changes(invoice, before=None)

        logger.info(
            "invoice_created",
            extra={
                "invoice_id": invoice_id,
                "buyer": buyer,
                "supplier": supplier,
                "amount": amount,
                "reference": reference,
            },
        )
        return invoice_id

    def escrow_payment(self, invoice_id: int, value: int, *, caller: str) -> None:
        """
        Lock the buyer's payment in escrow.

        ``value`` is the amount attached to the buyer's submission; it must
        equal the invoice amount exactly.  The ledger holds it until release.
        """
        with LogContext.bind(actor=caller, invoice_id=invoice_id), self.atomic(
            "escrow_payment", invoice_id=invoice_id
        ):
            invoice = self._get_invoice(invoice_id)
            before = invoice.status
            if not same_address(caller, invoice.buyer):
                raise AuthorizationError(Reason.ONLY_BUYER, invoice_id, caller)
            if isinstance(value, bool) or value != invoice.amount:
                raise InvalidValueError(Reason.WRONG_AMOUNT, invoice_id)
            if invoice.paid:
                raise StateError(Reason.ALREADY_PAID, invoice_id)
            if invoice.escrowed != 0:
                raise StateError(Reason.ALREADY_ESCROWED, invoice_id)

            invoice.escrowed = invoice.amount
            self._commit_changes(invoice, before)
            self._recorder.record(PaymentEscrowed(invoice_id=invoice_id, amount=invoice.amount))

        logger.info(
            "payment_escrowed",
            extra={"invoice_id": invoice_id, "amount": invoice.amount},
        )

    def confirm_delivery(self, invoice_id: int, *, caller: str) -> None:
        """
        Attest that contractual delivery happened.

        Only the current right-to-collect holder may attest.  Irreversible.
        Escrow is not required beforehand.
        """
        with LogContext.bind(actor=caller, invoice_id=invoice_id), self.atomic(
            "confirm_delivery", invoice_id=invoice_id
        ):
            invoice = self._get_invoice(invoice_id)
            before = invoice.status
            if not same_address(caller, self._registry.current_holder(invoice_id)):
                raise AuthorizationError(Reason.ONLY_CURRENT_HOLDER, invoice_id, caller)
            if invoice.delivered:
                raise StateError(Reason.ALREADY_DELIVERED, invoice_id)

            invoice.delivered = True
            self._commit_changes(invoice, before)
            self._recorder.record(DeliveryConfirmed(invoice_id=invoice_id))

        logger.info("delivery_confirmed", extra={"invoice_id": invoice_id})

    def release_funds(self, invoice_id: int, *, caller: str | None = None) -> None:
        """
        Pay the escrowed amount to the current right-to-collect holder.

        Anyone may trigger a release once delivery is confirmed and funds are
        escrowed.  State is committed to the session before the payout:

            (a) paid = True
            (b) escrowed = 0
            (c) resolve the current holder
            (d) transfer exactly ``amount`` to the holder

        If (d) fails the savepoint rolls back (a)-(c) and TransferFailedError
        is raised.  A second release of the same invoice fails "already paid".
        """
        with LogContext.bind(actor=caller, invoice_id=invoice_id), self.atomic(
            "release_funds", invoice_id=invoice_id
        ):
            invoice = self._get_invoice(invoice_id)
            before = invoice.status
            if invoice.paid:
                raise StateError(Reason.ALREADY_PAID, invoice_id)
            if not invoice.delivered:
                raise StateError(Reason.NOT_DELIVERED, invoice_id)
            if invoice.escrowed != invoice.amount:
                raise StateError(Reason.NOTHING_TO_RELEASE, invoice_id)

            amount = invoice.amount
            invoice.paid = True
            invoice.escrowed = 0
            self._commit_changes(invoice, before)

            recipient = self._registry.current_holder(invoice_id)
            self._recorder.record(
                FundsReleased(invoice_id=invoice_id, amount=amount, recipient=recipient)
            )

            # Interaction last: nothing may be written after the payout.
            try:
                self._rail.transfer(recipient, amount)
            except PaymentRailError as exc:
                logger.error(
                    "transfer_failed",
                    extra={
                        "invoice_id": invoice_id,
                        "recipient": recipient,
                        "amount": amount,
                        "detail": exc.detail,
                    },
                )
                raise TransferFailedError(invoice_id, recipient, amount, exc.detail) from exc

        logger.info(
            "funds_released",
            extra={"invoice_id": invoice_id, "amount": amount, "recipient": recipient},
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_invoice(self, invoice_id: int) -> InvoiceView:
        """Read-only snapshot of ``invoice_id``."""
        return self._get_invoice(invoice_id).to_view()

    def current_holder(self, invoice_id: int) -> str:
        """Address currently entitled to collect on ``invoice_id``."""
        return self._registry.current_holder(invoice_id)

    def held_balance(self) -> int:
        """Total value currently held in escrow across all invoices."""
        total = self.session.execute(
            select(func.coalesce(func.sum(Invoice.escrowed), 0))
        ).scalar_one()
        return int(total)
