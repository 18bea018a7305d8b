"""Tests for event payload rendering."""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from invoice_escrow.domain.events import (
    DeliveryConfirmed,
    FundsReleased,
    InvoiceCreated,
    RightTransferred,
)


class TestEventPayloads:
    def test_created_payload_is_json_safe(self):
        due = datetime(2025, 3, 1, 17, 0, tzinfo=timezone.utc)
        event = InvoiceCreated(
            invoice_id=1,
            buyer="0xB",
            supplier="0xS",
            amount=5 * 10**16,
            due_date=due,
            reference="INV-003",
        )
        assert event.event_name == "InvoiceCreated"
        assert event.payload() == {
            "invoice_id": 1,
            "buyer": "0xB",
            "supplier": "0xS",
            "amount": 5 * 10**16,
            "due_date": "2025-03-01T17:00:00+00:00",
            "reference": "INV-003",
        }

    def test_minimal_event(self):
        assert DeliveryConfirmed(invoice_id=4).payload() == {"invoice_id": 4}

    def test_mint_has_no_previous_holder(self):
        event = RightTransferred(invoice_id=2, from_holder=None, to_holder="0xS")
        assert event.payload()["from_holder"] is None

    def test_events_are_immutable(self):
        event = FundsReleased(invoice_id=1, amount=10, recipient="0xS")
        with pytest.raises(FrozenInstanceError):
            event.amount = 20

    def test_event_name_not_in_payload(self):
        event = FundsReleased(invoice_id=1, amount=10, recipient="0xS")
        assert "event_name" not in event.payload()
