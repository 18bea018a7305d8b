"""Tests for the typed exception hierarchy and its published reasons."""

import pytest

from invoice_escrow.exceptions import (
    AuthorizationError,
    ErrorKind,
    EscrowError,
    InvalidValueError,
    InvariantViolationError,
    NotFoundError,
    Reason,
    StateError,
    TransferFailedError,
)


class TestReasons:
    @pytest.mark.parametrize(
        "reason, text",
        [
            (Reason.ONLY_BUYER, "only buyer"),
            (Reason.ONLY_CURRENT_HOLDER, "only current holder"),
            (Reason.WRONG_AMOUNT, "wrong amount"),
            (Reason.AMOUNT_NOT_INTEGER, "amount must be an integer"),
            (Reason.NOT_DELIVERED, "not delivered"),
            (Reason.ALREADY_ESCROWED, "already escrowed"),
            (Reason.ALREADY_PAID, "already paid"),
            (Reason.NOTHING_TO_RELEASE, "nothing to release"),
            (Reason.INVOICE_NOT_FOUND, "invoice not found"),
        ],
    )
    def test_published_wording(self, reason, text):
        assert reason == text
        assert str(reason) == text

    def test_reasons_are_unique(self):
        values = [r.value for r in Reason]
        assert len(values) == len(set(values))


class TestHierarchy:
    @pytest.mark.parametrize(
        "cls, code, kind",
        [
            (AuthorizationError, "UNAUTHORIZED", ErrorKind.AUTHORIZATION),
            (InvalidValueError, "INVALID_VALUE", ErrorKind.VALUE),
            (StateError, "INVALID_STATE", ErrorKind.STATE),
            (NotFoundError, "NOT_FOUND", ErrorKind.NOT_FOUND),
            (TransferFailedError, "TRANSFER_FAILED", ErrorKind.TRANSFER),
            (InvariantViolationError, "INVARIANT_VIOLATION", ErrorKind.INVARIANT),
        ],
    )
    def test_codes_and_kinds(self, cls, code, kind):
        assert issubclass(cls, EscrowError)
        assert cls.code == code
        assert cls.error_kind == kind

    def test_invalid_value_is_not_builtin_value_error(self):
        assert not issubclass(InvalidValueError, ValueError)

    def test_message_is_reason(self):
        err = StateError(Reason.ALREADY_PAID, 4)
        assert str(err) == "already paid"
        assert err.invoice_id == 4

    def test_authorization_keeps_caller(self):
        err = AuthorizationError(Reason.ONLY_BUYER, 1, "0xBAD")
        assert err.caller == "0xBAD"

    def test_transfer_failed_fields(self):
        err = TransferFailedError(2, "0xSUP", 500, "rejected")
        assert err.reason == Reason.TRANSFER_FAILED
        assert (err.invoice_id, err.recipient, err.amount, err.detail) == (
            2,
            "0xSUP",
            500,
            "rejected",
        )

    def test_invariant_violation_message(self):
        err = InvariantViolationError("paid_implies_empty", 9, "escrowed=5")
        assert err.reason is None
        assert "paid_implies_empty" in str(err)
        assert "9" in str(err)
