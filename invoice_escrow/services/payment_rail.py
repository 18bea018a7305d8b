"""
Payment rail -- the external value-transfer boundary.

Responsibility:
    Moves released funds from the ledger's custody to a recipient.  The real
    rail (chain, bank, PSP) is an external collaborator; the ledger only
    depends on the ``PaymentRail`` interface.

Contract:
    ``transfer`` either moves exactly ``amount`` to ``recipient`` and
    returns, or raises ``PaymentRailError`` having moved nothing.  It is the
    last step of a release and is never retried by the ledger.

InMemoryPaymentRail is a complete in-process rail: it keeps balances,
records transfers, can be told to reject recipients, and can invoke a hook
on the recipient's behalf before crediting (how a receiving contract would
run code on receipt).
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import dataclass
from typing import Callable

from invoice_escrow.logging_config import get_logger

logger = get_logger("services.payment_rail")


class PaymentRailError(Exception):
    """The rail could not complete a transfer. Nothing was moved."""

    def __init__(self, recipient: str, amount: int, detail: str):
        self.recipient = recipient
        self.amount = amount
        self.detail = detail
        super().__init__(f"Transfer of {amount} to {recipient} failed: {detail}")


class PaymentRail(ABC):
    """Interface the ledger uses to pay out released escrow."""

    @abstractmethod
    def transfer(self, recipient: str, amount: int) -> None:
        """Move ``amount`` minor units to ``recipient``.

        Raises:
            PaymentRailError: if the transfer did not happen.
        """
        ...


@dataclass(frozen=True)
class RailTransfer:
    recipient: str
    amount: int


class InMemoryPaymentRail(PaymentRail):
    """
    Process-local rail.

    Args:
        on_receive: Optional hook ``(recipient, amount)`` run before the
            credit, on behalf of the recipient.  An exception from the hook
            fails the transfer.
    """

    def __init__(self, on_receive: Callable[[str, int], None] | None = None):
        self.balances: dict[str, int] = defaultdict(int)
        self.transfers: list[RailTransfer] = []
        self.on_receive = on_receive
        self._rejected: set[str] = set()

    def reject(self, recipient: str) -> None:
        """Make every future transfer to ``recipient`` fail."""
        self._rejected.add(recipient)

    def accept(self, recipient: str) -> None:
        self._rejected.discard(recipient)

    def balance_of(self, address: str) -> int:
        return self.balances.get(address, 0)

    def transfer(self, recipient: str, amount: int) -> None:
        if recipient in self._rejected:
            raise PaymentRailError(recipient, amount, "recipient rejected transfer")
        if self.on_receive is not None:
            try:
                self.on_receive(recipient, amount)
            except Exception as exc:
                raise PaymentRailError(recipient, amount, f"receive hook failed: {exc}") from exc

        self.balances[recipient] += amount
        self.transfers.append(RailTransfer(recipient=recipient, amount=amount))
        logger.debug(
            "rail_transfer_completed",
            extra={"recipient": recipient, "amount": amount},
        )
