"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly monotonically increasing sequence numbers for invoice
    ids, right transfers, and the event log.  Uses a dedicated counter table
    with row-level locking (``SELECT ... FOR UPDATE``) to guarantee
    uniqueness and ordering.

Architecture position:
    Escrow > Services -- imperative shell infrastructure.
    Called by InvoiceLedger (invoice ids), RightToCollectRegistry (transfer
    history), and EventRecorder (event log).

Invariants enforced:
    Dense ids: the locked counter row is the sole source of truth for the
        next value.  The aggregate-max-plus-one pattern is never used.
    Transactional: an increment is only visible after the caller's
        transaction commits.  A rolled-back savepoint returns the value, so a
        rejected ``create_invoice`` never burns an invoice id.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from invoice_escrow.logging_config import get_logger
from invoice_escrow.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Usage:
        with session.begin_nested():
            invoice_id = sequences.next_value(SequenceService.INVOICE_ID)
            # If the savepoint rolls back, invoice_id is not consumed
    """

    # Well-known sequence names
    INVOICE_ID = "invoice_id"
    RIGHT_TRANSFER = "right_transfer"
    INVOICE_EVENT = "invoice_event"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Postconditions:
            - Returns an integer > 0 exactly one greater than the last value
              committed for this sequence name.
            - The counter row is locked until the transaction completes.
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use of this sequence; another writer might create it
            # at the same time, so isolate the insert in its own savepoint.
            savepoint = self._session.begin_nested()
            try:
                counter = SequenceCounter(name=sequence_name, current_value=1)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": 1},
                )
                return 1
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value += 1
        assert counter.current_value > 0, "sequence value must be strictly positive"
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """
        Get the current value of a sequence without incrementing.

        Returns:
            Current value, or None if sequence doesn't exist.
        """
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()

        return counter.current_value if counter else None

    def initialize_sequences(self) -> None:
        """
        Initialize all well-known sequences at zero.

        Called during database setup to ensure sequences exist.
        """
        for name in (self.INVOICE_ID, self.RIGHT_TRANSFER, self.INVOICE_EVENT):
            existing = self._session.get(SequenceCounter, name)
            if existing is None:
                self._session.add(SequenceCounter(name=name, current_value=0))

        self._session.flush()
