"""
Invoice Escrow - single-ledger escrow for invoices.

A buyer and supplier agree on an amount and due date; the supplier receives a
transferable right-to-collect; the buyer locks funds; funds release only after
a delivery attestation by the current right holder.

- Sequential, never-reused invoice ids
- Atomic (savepoint-scoped) lifecycle operations
- Effects-before-interactions on fund release
- Typed errors with stable reason strings
"""

__version__ = "0.1.0"
