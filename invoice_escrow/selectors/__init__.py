"""Read-only selectors for the invoice escrow ledger."""

from invoice_escrow.selectors.invoice_selector import InvoiceSelector

__all__ = ["InvoiceSelector"]
