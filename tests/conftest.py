"""
Pytest fixtures for the invoice escrow test suite.

Provides:
- A session-scoped engine with all tables created once
- Per-test sessions isolated by an outer transaction that is rolled back
- Deterministic clock, in-memory payment rail, ledger and registry fixtures
- Captured structured logs

Environment Variables:
- DATABASE_URL: database to test against.  Defaults to in-memory SQLite;
  point it at PostgreSQL to run the same suite there.
"""

import json
import logging
import os
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from io import StringIO
from typing import Generator, Iterator

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from invoice_escrow.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from invoice_escrow.domain.clock import DeterministicClock
from invoice_escrow.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from invoice_escrow.selectors.invoice_selector import InvoiceSelector
from invoice_escrow.services.invoice_ledger import InvoiceLedger
from invoice_escrow.services.payment_rail import InMemoryPaymentRail
from invoice_escrow.services.right_to_collect_registry import RightToCollectRegistry

DEFAULT_TEST_URL = "sqlite://"

BUYER = "0xB0B0000000000000000000000000000000000001"
SUPPLIER = "0x5A5A000000000000000000000000000000000002"
OTHER = "0x0000000000000000000000000000000000000003"
FACTOR = "0xFAC7000000000000000000000000000000000004"
OWNER = "0x0000000000000000000000000000000000000005"


def get_database_url() -> str:
    return os.environ.get("DATABASE_URL", DEFAULT_TEST_URL)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture invoice_escrow logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, ledger):
            ledger.create_invoice(...)
            assert any(r["message"] == "invoice_created" for r in captured_logs())
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("invoice_escrow")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture(scope="session")
def db_engine() -> Generator[Engine, None, None]:
    """Single engine for the whole run, tables created once."""
    eng = init_engine_from_url(get_database_url())
    drop_tables()
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@contextmanager
def isolated_session(engine: Engine) -> Iterator[Session]:
    """
    Session joined to an outer transaction that is always rolled back.

    ``session.commit()`` inside only releases a savepoint; nothing reaches
    the database.
    """
    conn = engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    try:
        yield sess
    finally:
        try:
            sess.close()
        finally:
            try:
                trans.rollback()
            finally:
                conn.close()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    with isolated_session(db_engine) as sess:
        yield sess


@pytest.fixture(scope="session")
def fresh_session(db_engine):
    """Factory for isolated sessions, for tests that need one per example."""
    return lambda: isolated_session(db_engine)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(datetime(2024, 6, 1, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def due_date(clock) -> datetime:
    """One hour after the test clock's current time."""
    return clock.now() + timedelta(hours=1)


@pytest.fixture
def rail() -> InMemoryPaymentRail:
    return InMemoryPaymentRail()


@pytest.fixture
def ledger(session, rail, clock) -> InvoiceLedger:
    return InvoiceLedger(session, rail, clock)


@pytest.fixture
def registry(ledger) -> RightToCollectRegistry:
    return ledger.registry


@pytest.fixture
def selector(session) -> InvoiceSelector:
    return InvoiceSelector(session)


@pytest.fixture
def buyer() -> str:
    return BUYER


@pytest.fixture
def supplier() -> str:
    return SUPPLIER


@pytest.fixture
def other() -> str:
    return OTHER


@pytest.fixture
def factor() -> str:
    """A financier the supplier sells its right-to-collect to."""
    return FACTOR


@pytest.fixture
def owner() -> str:
    """The operator account that submits creations and releases."""
    return OWNER


@pytest.fixture
def create_invoice(ledger, buyer, supplier, due_date, owner):
    """Factory: create an invoice between the default parties."""

    def _create(amount: int = 10**16, reference: str = "INV-001", **overrides) -> int:
        return ledger.create_invoice(
            overrides.get("buyer", buyer),
            overrides.get("supplier", supplier),
            amount,
            overrides.get("due_date", due_date),
            reference,
            caller=overrides.get("caller", owner),
        )

    return _create
