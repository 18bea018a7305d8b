"""
Module: invoice_escrow.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
Architecture position: Escrow > Selectors.  May import from db/, models/ and
    domain DTOs.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors never add, delete, flush, or commit.
    - DTO return convention: selectors return frozen dataclasses, never ORM
      instances.
    - Session ownership: the caller owns the session and its transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.
    """

    def __init__(self, session: Session):
        self.session = session
