"""
RightToCollectRegistry -- who is entitled to an invoice's released funds.

Responsibility:
    Maintains the ``invoice_id -> holder`` relation.  Mints one right per
    invoice when InvoiceLedger creates it, resolves the current holder for
    the ledger's authorization checks and payouts, and transfers rights
    between parties with single-operator approval (ERC-721 style).

Architecture position:
    Escrow > Services.  Owns only the rights_to_collect and right_transfers
    tables.  Never moves value; reads the invoices table only to check that
    an invoice exists before minting its right.

Invariants enforced:
    - Exactly one holder per existing invoice.  There is no public mint:
      only InvoiceLedger.create_invoice calls ``_mint``, and it refuses ids
      without an invoice row and ids already minted.
    - Only the current holder or its approved operator may transfer.
    - Approval is cleared on every transfer.
    - Every change of holder (mint included) is appended to history and
      emitted as RightTransferred.
    - Callers are compared after the same whitespace normalization applied
      to stored addresses.

Failure modes:
    - NotFoundError "right not found": no right minted for the invoice.
    - NotFoundError "invoice not found": mint for an id with no invoice.
    - AuthorizationError "only current holder": caller may not act on it.
    - StateError "already minted": mint called twice for one invoice.
    - InvalidValueError "invalid address": blank holder/operator.
"""

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from invoice_escrow.domain.clock import Clock, SystemClock
from invoice_escrow.domain.dtos import RightTransferInfo
from invoice_escrow.domain.events import RightApproved, RightTransferred
from invoice_escrow.domain.values import normalize_address, same_address
from invoice_escrow.exceptions import (
    AuthorizationError,
    NotFoundError,
    Reason,
    StateError,
)
from invoice_escrow.logging_config import get_logger
from invoice_escrow.models.invoice import Invoice
from invoice_escrow.models.right_to_collect import RightToCollect, RightTransfer
from invoice_escrow.services.base import BaseService
from invoice_escrow.services.event_recorder import EventRecorder
from invoice_escrow.services.sequence_service import SequenceService

logger = get_logger("services.registry")


class RightToCollectRegistry(BaseService):
    """
    Registry of right-to-collect tokens.

    Contract:
        ``current_holder`` is the single source of truth for "who may attest
        delivery" and "who gets paid".  Callers must not cache its answer.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        sequences: SequenceService | None = None,
        recorder: EventRecorder | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = sequences or SequenceService(session)
        self._recorder = recorder or EventRecorder(session, self._clock, self._sequences)

    def _get_right(self, invoice_id: int) -> RightToCollect:
        right = self.session.get(RightToCollect, invoice_id)
        if right is None:
            raise NotFoundError(Reason.RIGHT_NOT_FOUND, invoice_id)
        return right

    def _append_history(self, invoice_id: int, from_holder: str | None, to_holder: str) -> None:
        self.session.add(
            RightTransfer(
                seq=self._sequences.next_value(SequenceService.RIGHT_TRANSFER),
                invoice_id=invoice_id,
                from_holder=from_holder,
                to_holder=to_holder,
                occurred_at=self._clock.now(),
            )
        )
        self._recorder.record(
            RightTransferred(
                invoice_id=invoice_id, from_holder=from_holder, to_holder=to_holder
            )
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _mint(self, invoice_id: int, holder: str) -> None:
        """
        Create the right for ``invoice_id`` held by ``holder``.

        Internal to InvoiceLedger.create_invoice, which calls it inside its
        savepoint after flushing the invoice row.
        """
        holder = normalize_address(holder, invoice_id)
        with self.atomic("mint", invoice_id=invoice_id):
            if self.session.get(Invoice, invoice_id) is None:
                raise NotFoundError(Reason.INVOICE_NOT_FOUND, invoice_id)
            if self.session.get(RightToCollect, invoice_id) is not None:
                raise StateError(Reason.ALREADY_MINTED, invoice_id)

            now = self._clock.now()
            self.session.add(
                RightToCollect(
                    invoice_id=invoice_id,
                    holder=holder,
                    approved=None,
                    minted_at=now,
                    updated_at=now,
                )
            )
            self.session.flush()
            self._append_history(invoice_id, None, holder)

        logger.info("right_minted", extra={"invoice_id": invoice_id, "holder": holder})

    def transfer(self, invoice_id: int, new_holder: str, *, caller: str) -> None:
        """
        Reassign the right to ``new_holder``.

        Preconditions:
            ``caller`` is the current holder or its approved operator.
        """
        with self.atomic("transfer_right", invoice_id=invoice_id, actor=caller):
            new_holder = normalize_address(new_holder, invoice_id)
            right = self._get_right(invoice_id)
            allowed = [right.holder] if right.approved is None else [right.holder, right.approved]
            if not any(same_address(caller, address) for address in allowed):
                raise AuthorizationError(Reason.ONLY_CURRENT_HOLDER, invoice_id, caller)

            previous = right.holder
            right.holder = new_holder
            right.approved = None
            right.updated_at = self._clock.now()
            self.session.flush()
            self._append_history(invoice_id, previous, new_holder)

        logger.info(
            "right_transferred",
            extra={"invoice_id": invoice_id, "from_holder": previous, "to_holder": new_holder},
        )

    def approve(self, invoice_id: int, operator: str | None, *, caller: str) -> None:
        """Let ``operator`` transfer the right once; ``None`` clears the approval."""
        with self.atomic("approve_right", invoice_id=invoice_id, actor=caller):
            if operator is not None:
                operator = normalize_address(operator, invoice_id)
            right = self._get_right(invoice_id)
            if not same_address(caller, right.holder):
                raise AuthorizationError(Reason.ONLY_CURRENT_HOLDER, invoice_id, caller)

            right.approved = operator
            right.updated_at = self._clock.now()
            self.session.flush()
            self._recorder.record(
                RightApproved(invoice_id=invoice_id, holder=right.holder, operator=operator)
            )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def current_holder(self, invoice_id: int) -> str:
        """Return the address currently entitled to collect on ``invoice_id``."""
        return self._get_right(invoice_id).holder

    def approved_operator(self, invoice_id: int) -> str | None:
        return self._get_right(invoice_id).approved

    def balance_of(self, holder: str) -> int:
        """Number of rights ``holder`` currently holds."""
        return self.session.execute(
            select(func.count()).select_from(RightToCollect).where(RightToCollect.holder == holder)
        ).scalar_one()

    def holdings_of(self, holder: str) -> list[int]:
        """Invoice ids whose right ``holder`` currently holds, ascending."""
        return list(
            self.session.execute(
                select(RightToCollect.invoice_id)
                .where(RightToCollect.holder == holder)
                .order_by(RightToCollect.invoice_id)
            ).scalars()
        )

    def history(self, invoice_id: int) -> list[RightTransferInfo]:
        """All holder changes for ``invoice_id``, mint first."""
        self._get_right(invoice_id)
        rows = self.session.execute(
            select(RightTransfer)
            .where(RightTransfer.invoice_id == invoice_id)
            .order_by(RightTransfer.seq)
        ).scalars()
        return [
            RightTransferInfo(
                seq=r.seq,
                invoice_id=r.invoice_id,
                from_holder=r.from_holder,
                to_holder=r.to_holder,
                occurred_at=r.occurred_at,
            )
            for r in rows
        ]
