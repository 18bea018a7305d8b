"""
Typed Exception Hierarchy for the Invoice Escrow Ledger.

===============================================================================
ERROR KINDS AND REASONS
===============================================================================

Every rejected operation surfaces as a typed exception carrying:

  1. A class-level CODE (machine-readable, API-safe)
  2. An ErrorKind (the category a caller reacts to)
  3. A Reason (the published, human-readable reason string)

Reason strings are part of the external contract. Once published their
wording never changes; code inside the ledger compares Reason members, never
message text.

    EscrowError (base)
    |
    +-- AuthorizationError      kind=AUTHORIZATION
    |       "only buyer", "only current holder"
    |
    +-- InvalidValueError       kind=VALUE
    |       "wrong amount", "amount must be an integer", "amount must be positive",
    |       "amount out of range", "invalid address", "buyer equals supplier",
    |       "reference too long", "due date must be timezone-aware"
    |
    +-- StateError              kind=STATE
    |       "not delivered", "already escrowed", "already paid",
    |       "nothing to release", "already delivered", "already minted"
    |
    +-- NotFoundError           kind=NOT_FOUND
    |       "invoice not found", "right not found"
    |
    +-- TransferFailedError     kind=TRANSFER
    |       "transfer failed"
    |
    +-- InvariantViolationError kind=INVARIANT
            raised only by the invariant checker; always a bug

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        ledger.escrow_payment(invoice_id, value, caller=sender)
    except AuthorizationError as e:
        reject(403, e.reason)
    except EscrowError as e:
        reject(409, e.code, e.reason)

InvalidValueError deliberately does NOT inherit from the built-in ValueError:
domain rejections must stay separable from programming errors.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a rejected operation."""

    AUTHORIZATION = "authorization"
    VALUE = "value"
    STATE = "state"
    NOT_FOUND = "not_found"
    TRANSFER = "transfer"
    INVARIANT = "invariant"


class Reason(str, Enum):
    """Published reason strings. Never reword an existing member."""

    # Authorization
    ONLY_BUYER = "only buyer"
    ONLY_CURRENT_HOLDER = "only current holder"

    # Value
    WRONG_AMOUNT = "wrong amount"
    AMOUNT_NOT_INTEGER = "amount must be an integer"
    AMOUNT_NOT_POSITIVE = "amount must be positive"
    AMOUNT_OUT_OF_RANGE = "amount out of range"
    INVALID_ADDRESS = "invalid address"
    SAME_PARTY = "buyer equals supplier"
    REFERENCE_TOO_LONG = "reference too long"
    NAIVE_DUE_DATE = "due date must be timezone-aware"

    # State
    NOT_DELIVERED = "not delivered"
    ALREADY_ESCROWED = "already escrowed"
    ALREADY_PAID = "already paid"
    NOTHING_TO_RELEASE = "nothing to release"
    ALREADY_DELIVERED = "already delivered"
    ALREADY_MINTED = "already minted"

    # Not found
    INVOICE_NOT_FOUND = "invoice not found"
    RIGHT_NOT_FOUND = "right not found"

    # Transfer
    TRANSFER_FAILED = "transfer failed"

    def __str__(self) -> str:
        return self.value


class EscrowError(Exception):
    """
    Base exception for all escrow ledger errors.

    All subclasses have a `code` class attribute and an `error_kind`.
    """

    code: str = "ESCROW_ERROR"
    error_kind: ErrorKind

    def __init__(self, reason: Reason, invoice_id: int | None = None):
        self.reason = reason
        self.invoice_id = invoice_id
        super().__init__(reason.value)


class AuthorizationError(EscrowError):
    """Caller is not the party the operation requires."""

    code: str = "UNAUTHORIZED"
    error_kind = ErrorKind.AUTHORIZATION

    def __init__(
        self,
        reason: Reason,
        invoice_id: int | None = None,
        caller: str | None = None,
    ):
        self.caller = caller
        super().__init__(reason, invoice_id)


class InvalidValueError(EscrowError):
    """Submitted value or argument is not acceptable."""

    code: str = "INVALID_VALUE"
    error_kind = ErrorKind.VALUE


class StateError(EscrowError):
    """Operation is not valid in the invoice's current lifecycle state."""

    code: str = "INVALID_STATE"
    error_kind = ErrorKind.STATE


class NotFoundError(EscrowError):
    """Referenced invoice or right does not exist."""

    code: str = "NOT_FOUND"
    error_kind = ErrorKind.NOT_FOUND


class TransferFailedError(EscrowError):
    """
    The external value transfer on release failed.

    The release is rolled back in full; the invoice stays escrowed and unpaid.
    """

    code: str = "TRANSFER_FAILED"
    error_kind = ErrorKind.TRANSFER

    def __init__(
        self,
        invoice_id: int | None = None,
        recipient: str | None = None,
        amount: int | None = None,
        detail: str | None = None,
    ):
        self.recipient = recipient
        self.amount = amount
        self.detail = detail
        super().__init__(Reason.TRANSFER_FAILED, invoice_id)


class InvariantViolationError(EscrowError):
    """A structural invariant does not hold. Indicates a defect, not bad input."""

    code: str = "INVARIANT_VIOLATION"
    error_kind = ErrorKind.INVARIANT

    def __init__(self, invariant: str, invoice_id: int | None, detail: str):
        self.invariant = invariant
        self.invoice_id = invoice_id
        self.detail = detail
        self.reason = None
        Exception.__init__(
            self, f"Invariant {invariant} violated for invoice {invoice_id}: {detail}"
        )
