"""Tests for the in-memory payment rail."""

import pytest

from invoice_escrow.services.payment_rail import (
    InMemoryPaymentRail,
    PaymentRailError,
    RailTransfer,
)


class TestInMemoryPaymentRail:
    def test_transfer_credits_recipient(self):
        rail = InMemoryPaymentRail()
        rail.transfer("0xS", 100)
        rail.transfer("0xS", 50)
        assert rail.balance_of("0xS") == 150
        assert rail.transfers == [RailTransfer("0xS", 100), RailTransfer("0xS", 50)]

    def test_unknown_address_has_zero_balance(self):
        assert InMemoryPaymentRail().balance_of("0xNOBODY") == 0

    def test_rejected_recipient(self):
        rail = InMemoryPaymentRail()
        rail.reject("0xS")
        with pytest.raises(PaymentRailError) as exc_info:
            rail.transfer("0xS", 100)
        assert exc_info.value.recipient == "0xS"
        assert exc_info.value.amount == 100
        assert rail.balance_of("0xS") == 0
        assert rail.transfers == []

        rail.accept("0xS")
        rail.transfer("0xS", 100)
        assert rail.balance_of("0xS") == 100

    def test_hook_runs_before_credit(self):
        seen = []
        rail = InMemoryPaymentRail(on_receive=lambda r, a: seen.append(rail.balance_of(r)))
        rail.transfer("0xS", 100)
        assert seen == [0]

    def test_failing_hook_fails_transfer(self):
        def explode(recipient, amount):
            raise RuntimeError("no thanks")

        rail = InMemoryPaymentRail(on_receive=explode)
        with pytest.raises(PaymentRailError) as exc_info:
            rail.transfer("0xS", 100)
        assert "no thanks" in exc_info.value.detail
        assert rail.balance_of("0xS") == 0
