"""
EventRecorder -- append-only persistence of invoice notifications.

Responsibility:
    Assigns each emitted InvoiceEvent a monotonic ``seq``, writes it to the
    invoice_events table, and logs it as ``invoice_event_emitted``.

Architecture position:
    Escrow > Services.  Called by InvoiceLedger and RightToCollectRegistry
    inside their savepoints, so an aborted operation emits nothing.
"""

from sqlalchemy.orm import Session

from invoice_escrow.domain.clock import Clock, SystemClock
from invoice_escrow.domain.events import InvoiceEvent
from invoice_escrow.logging_config import get_logger
from invoice_escrow.models.invoice_event import InvoiceEventRecord
from invoice_escrow.services.base import BaseService
from invoice_escrow.services.sequence_service import SequenceService

logger = get_logger("services.events")


class EventRecorder(BaseService):
    """Writes InvoiceEvent instances to the event log."""

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        sequences: SequenceService | None = None,
    ):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = sequences or SequenceService(session)

    def record(self, event: InvoiceEvent) -> InvoiceEventRecord:
        """Persist ``event`` and return the stored row."""
        record = InvoiceEventRecord(
            seq=self._sequences.next_value(SequenceService.INVOICE_EVENT),
            invoice_id=event.invoice_id,
            event_name=event.event_name,
            payload=event.payload(),
            occurred_at=self._clock.now(),
        )
        self.session.add(record)
        self.session.flush()

        logger.info(
            "invoice_event_emitted",
            extra={
                "event_seq": record.seq,
                "event_name": record.event_name,
                "payload": record.payload,
            },
        )
        return record
