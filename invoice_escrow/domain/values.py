"""
Value rules for addresses and amounts.

Pure functions; no ORM, no I/O.  Addresses are opaque identities resolved by
the execution environment; the ledger only requires them to be non-empty
strings.  Surrounding whitespace is not part of an address: it is stripped
before storage and before a caller is compared with a stored address.
"""

from datetime import datetime

from invoice_escrow.exceptions import InvalidValueError, Reason

# Upper bound of a signed 64-bit column.
MAX_STORABLE_AMOUNT = 2**63 - 1


def normalize_address(value: object, invoice_id: int | None = None) -> str:
    """Return the address stripped of surrounding whitespace.

    Raises:
        InvalidValueError: ``invalid address`` for None, non-strings, or blanks.
    """
    if not isinstance(value, str) or not value.strip():
        raise InvalidValueError(Reason.INVALID_ADDRESS, invoice_id)
    return value.strip()


def same_address(caller: object, address: str | None) -> bool:
    """True if ``caller`` names the stored ``address``.

    Never raises: a missing or non-string caller simply does not match.
    """
    return isinstance(caller, str) and address is not None and caller.strip() == address


def validate_amount(amount: object, max_amount: int = MAX_STORABLE_AMOUNT) -> int:
    """Validate an invoice amount in integer minor units.

    bool is rejected even though it subclasses int.
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidValueError(Reason.AMOUNT_NOT_INTEGER)
    if amount <= 0:
        raise InvalidValueError(Reason.AMOUNT_NOT_POSITIVE)
    if amount > min(max_amount, MAX_STORABLE_AMOUNT):
        raise InvalidValueError(Reason.AMOUNT_OUT_OF_RANGE)
    return amount


def validate_due_date(due_date: datetime) -> datetime:
    if not isinstance(due_date, datetime) or due_date.utcoffset() is None:
        raise InvalidValueError(Reason.NAIVE_DUE_DATE)
    return due_date
