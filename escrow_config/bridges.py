"""
Bridges from EscrowConfig to the invoice_escrow kernel.

The kernel never imports escrow_config; these helpers translate a loaded
configuration into plain kernel arguments.
"""

from __future__ import annotations

import logging

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from escrow_config.schema import EscrowConfig
from invoice_escrow.db.engine import init_engine_from_url
from invoice_escrow.domain.clock import Clock
from invoice_escrow.logging_config import configure_logging
from invoice_escrow.services.invoice_ledger import InvoiceLedger
from invoice_escrow.services.payment_rail import PaymentRail


def configure_logging_from_config(config: EscrowConfig) -> None:
    configure_logging(level=getattr(logging, config.logging.level))


def init_engine_from_config(config: EscrowConfig) -> Engine:
    """Initialize the engine from the database section of ``config``."""
    db = config.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
    )


def build_ledger(
    session: Session,
    payment_rail: PaymentRail,
    config: EscrowConfig,
    clock: Clock | None = None,
) -> InvoiceLedger:
    """Construct an InvoiceLedger with the configured limits."""
    return InvoiceLedger(
        session,
        payment_rail,
        clock,
        max_reference_length=config.ledger.max_reference_length,
        max_amount=config.ledger.max_amount,
    )
