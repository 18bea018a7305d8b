"""
BaseService -- abstract base for all escrow services.

Responsibility:
    Provides the common constructor, session-handling contract, and the
    savepoint-scoped ``atomic`` block every write operation runs in.

Architecture position:
    Escrow > Services -- imperative shell infrastructure.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or rollback it.  Each public write operation wraps its
    work in ``session.begin_nested()`` so that a failure undoes exactly that
    operation and nothing the caller did before it.

Failure modes:
    - A subclass calling ``session.commit()`` would break the caller's
      atomic multi-operation batches.
"""

from abc import ABC
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy.orm import Session

from invoice_escrow.exceptions import EscrowError
from invoice_escrow.logging_config import get_logger

logger = get_logger("services")


class BaseService(ABC):
    """
    Abstract base class for all escrow services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()`` on the outer transaction.
        - A failed ``atomic`` block leaves no trace in the session.
    """

    def __init__(self, session: Session):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
        """
        self.session = session

    @contextmanager
    def atomic(self, operation: str, **fields: Any) -> Iterator[None]:
        """
        Run a block all-or-nothing inside a SAVEPOINT.

        Domain rejections are logged at WARNING with their reason; anything
        else at ERROR with the traceback.  Both are re-raised unchanged.
        """
        savepoint = self.session.begin_nested()
        try:
            yield
        except EscrowError as exc:
            savepoint.rollback()
            logger.warning(
                "operation_rejected",
                extra={
                    "operation": operation,
                    "error_kind": exc.error_kind,
                    "error_code": exc.code,
                    "reason": exc.reason,
                    **fields,
                },
            )
            raise
        except Exception:
            savepoint.rollback()
            logger.error(
                "operation_failed",
                extra={"operation": operation, **fields},
                exc_info=True,
            )
            raise
        else:
            savepoint.commit()
