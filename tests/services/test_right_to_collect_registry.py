"""
Tests for RightToCollectRegistry.

Covers minting, holder resolution, holder and operator transfers,
approval clearing, holdings queries and the transfer history.
"""

import pytest

from invoice_escrow.exceptions import (
    AuthorizationError,
    InvalidValueError,
    NotFoundError,
    Reason,
    StateError,
)


class TestMint:
    def test_create_invoice_mints_to_supplier(self, registry, create_invoice, supplier):
        invoice_id = create_invoice()
        assert registry.current_holder(invoice_id) == supplier
        assert registry.approved_operator(invoice_id) is None

    def test_second_mint_rejected(self, registry, create_invoice, factor, supplier):
        invoice_id = create_invoice()
        with pytest.raises(StateError) as exc_info:
            registry._mint(invoice_id, factor)
        assert exc_info.value.reason == Reason.ALREADY_MINTED
        assert registry.current_holder(invoice_id) == supplier

    def test_mint_for_missing_invoice_rejected(
        self, registry, selector, create_invoice, supplier, other
    ):
        """A right can never exist ahead of its invoice."""
        create_invoice(reference="INV-1")
        with pytest.raises(NotFoundError) as exc_info:
            registry._mint(2, other)
        assert exc_info.value.reason == Reason.INVOICE_NOT_FOUND
        assert exc_info.value.invoice_id == 2

        with pytest.raises(NotFoundError):
            registry.current_holder(2)
        assert selector.events(event_name="RightTransferred")[-1].invoice_id == 1

        assert create_invoice(reference="INV-2") == 2
        assert registry.current_holder(2) == supplier

    def test_unknown_right(self, registry):
        with pytest.raises(NotFoundError) as exc_info:
            registry.current_holder(404)
        assert str(exc_info.value) == "right not found"


class TestTransfer:
    def test_holder_transfers(self, registry, create_invoice, supplier, factor):
        invoice_id = create_invoice()
        registry.transfer(invoice_id, factor, caller=supplier)
        assert registry.current_holder(invoice_id) == factor

    def test_non_holder_cannot_transfer(self, registry, create_invoice, supplier, other):
        invoice_id = create_invoice()
        with pytest.raises(AuthorizationError) as exc_info:
            registry.transfer(invoice_id, other, caller=other)
        assert exc_info.value.reason == Reason.ONLY_CURRENT_HOLDER
        assert registry.current_holder(invoice_id) == supplier

    def test_previous_holder_loses_control(self, registry, create_invoice, supplier, factor):
        invoice_id = create_invoice()
        registry.transfer(invoice_id, factor, caller=supplier)
        with pytest.raises(AuthorizationError):
            registry.transfer(invoice_id, supplier, caller=supplier)

    def test_blank_recipient_rejected(self, registry, create_invoice, supplier):
        invoice_id = create_invoice()
        with pytest.raises(InvalidValueError) as exc_info:
            registry.transfer(invoice_id, "  ", caller=supplier)
        assert exc_info.value.reason == Reason.INVALID_ADDRESS

    def test_transfer_of_unknown_right(self, registry, supplier, factor):
        with pytest.raises(NotFoundError):
            registry.transfer(5, factor, caller=supplier)

    def test_right_moves_after_payment(
        self, ledger, registry, create_invoice, buyer, supplier, factor
    ):
        """A paid invoice's right stays transferable; payouts already happened."""
        invoice_id = create_invoice(1000)
        ledger.escrow_payment(invoice_id, 1000, caller=buyer)
        ledger.confirm_delivery(invoice_id, caller=supplier)
        ledger.release_funds(invoice_id)

        registry.transfer(invoice_id, factor, caller=supplier)
        assert registry.current_holder(invoice_id) == factor


class TestApproval:
    def test_approved_operator_may_transfer(
        self, registry, create_invoice, supplier, factor, other
    ):
        invoice_id = create_invoice()
        registry.approve(invoice_id, other, caller=supplier)
        assert registry.approved_operator(invoice_id) == other

        registry.transfer(invoice_id, factor, caller=other)

        assert registry.current_holder(invoice_id) == factor
        assert registry.approved_operator(invoice_id) is None

    def test_approval_cleared_by_transfer(
        self, registry, create_invoice, supplier, factor, other
    ):
        invoice_id = create_invoice()
        registry.approve(invoice_id, other, caller=supplier)
        registry.transfer(invoice_id, factor, caller=supplier)

        with pytest.raises(AuthorizationError):
            registry.transfer(invoice_id, other, caller=other)

    def test_only_holder_approves(self, registry, create_invoice, other):
        invoice_id = create_invoice()
        with pytest.raises(AuthorizationError):
            registry.approve(invoice_id, other, caller=other)
        assert registry.approved_operator(invoice_id) is None

    def test_operator_cannot_approve(self, registry, create_invoice, supplier, factor, other):
        invoice_id = create_invoice()
        registry.approve(invoice_id, other, caller=supplier)
        with pytest.raises(AuthorizationError):
            registry.approve(invoice_id, factor, caller=other)

    def test_clear_approval(self, registry, create_invoice, supplier, other):
        invoice_id = create_invoice()
        registry.approve(invoice_id, other, caller=supplier)
        registry.approve(invoice_id, None, caller=supplier)
        assert registry.approved_operator(invoice_id) is None

    def test_operator_cannot_confirm_delivery(
        self, ledger, registry, create_invoice, supplier, other
    ):
        """Approval covers transfers only, not delivery attestation."""
        invoice_id = create_invoice()
        registry.approve(invoice_id, other, caller=supplier)
        with pytest.raises(AuthorizationError):
            ledger.confirm_delivery(invoice_id, caller=other)

    def test_approval_event(self, registry, selector, create_invoice, supplier, other):
        invoice_id = create_invoice()
        registry.approve(invoice_id, other, caller=supplier)

        (approved,) = selector.events(invoice_id, event_name="RightApproved")
        assert approved.payload == {
            "invoice_id": invoice_id,
            "holder": supplier,
            "operator": other,
        }


class TestHoldings:
    def test_balance_and_holdings(self, registry, create_invoice, supplier, factor):
        first = create_invoice(reference="INV-A")
        second = create_invoice(reference="INV-B")
        third = create_invoice(reference="INV-C")
        registry.transfer(second, factor, caller=supplier)

        assert registry.balance_of(supplier) == 2
        assert registry.holdings_of(supplier) == [first, third]
        assert registry.balance_of(factor) == 1
        assert registry.holdings_of(factor) == [second]

    def test_unknown_holder(self, registry, other):
        assert registry.balance_of(other) == 0
        assert registry.holdings_of(other) == []


class TestHistory:
    def test_history_starts_with_mint(self, registry, create_invoice, supplier, factor, other):
        invoice_id = create_invoice()
        registry.transfer(invoice_id, factor, caller=supplier)
        registry.transfer(invoice_id, other, caller=factor)

        history = registry.history(invoice_id)

        assert [(h.from_holder, h.to_holder) for h in history] == [
            (None, supplier),
            (supplier, factor),
            (factor, other),
        ]
        assert [h.seq for h in history] == sorted(h.seq for h in history)

    def test_history_records_clock_time(self, registry, clock, create_invoice, supplier, factor):
        invoice_id = create_invoice()
        clock.advance(60)
        registry.transfer(invoice_id, factor, caller=supplier)

        minted, moved = registry.history(invoice_id)
        assert (moved.occurred_at - minted.occurred_at).total_seconds() == 60

    def test_rejected_transfer_leaves_no_history(self, registry, selector, create_invoice, other):
        invoice_id = create_invoice()
        with pytest.raises(AuthorizationError):
            registry.transfer(invoice_id, other, caller=other)

        assert len(registry.history(invoice_id)) == 1
        assert len(selector.events(invoice_id, event_name="RightTransferred")) == 1

    def test_history_of_unknown_right(self, registry):
        with pytest.raises(NotFoundError):
            registry.history(12)


class TestCallerNormalization:
    def test_padded_holder_transfers(self, registry, create_invoice, supplier, factor):
        invoice_id = create_invoice()
        registry.transfer(invoice_id, factor, caller=f"  {supplier} ")
        assert registry.current_holder(invoice_id) == factor

    def test_padded_operator_transfers(
        self, registry, create_invoice, supplier, factor, other
    ):
        invoice_id = create_invoice()
        registry.approve(invoice_id, f" {other}", caller=f"{supplier}\n")
        registry.transfer(invoice_id, factor, caller=f"{other} ")
        assert registry.current_holder(invoice_id) == factor

    @pytest.mark.parametrize("caller", [None, "", "   "])
    def test_missing_caller_is_not_the_holder(self, registry, create_invoice, factor, caller):
        invoice_id = create_invoice()
        with pytest.raises(AuthorizationError) as exc_info:
            registry.transfer(invoice_id, factor, caller=caller)
        assert exc_info.value.reason == Reason.ONLY_CURRENT_HOLDER
