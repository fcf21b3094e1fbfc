"""
events.py - Purchase Notification Sinks

EventSink implementations that receive PurchaseReceipts from a Wall.

- EventLog: keeps every receipt in memory, in publication order
- CallbackSink: fans each receipt out to registered handler functions

Delivery is fire-and-forget from the wall's point of view: a sink that
raises is reported by the wall and the purchase stands.
"""

from __future__ import annotations
from typing import Callable, Dict, List

from .core import PurchaseReceipt


# Handler type: receipt -> None
PurchaseHandler = Callable[[PurchaseReceipt], None]


class EventLog:
    """In-memory sink recording every published receipt."""

    def __init__(self):
        self.receipts: List[PurchaseReceipt] = []

    def publish(self, receipt: PurchaseReceipt) -> None:
        self.receipts.append(receipt)

    def for_buyer(self, buyer: str) -> List[PurchaseReceipt]:
        """Receipts of one buyer, in publication order."""
        return [r for r in self.receipts if r.buyer == buyer]

    def __len__(self) -> int:
        return len(self.receipts)


class CallbackSink:
    """
    Sink dispatching each receipt to named handler functions.

    Handlers run in registration order. The first handler that raises stops
    dispatch for that receipt and the exception reaches the wall.
    """

    def __init__(self):
        self._handlers: Dict[str, PurchaseHandler] = {}

    def register(self, name: str, handler: PurchaseHandler) -> None:
        """Register or replace a handler under name."""
        self._handlers[name] = handler

    def unregister(self, name: str) -> None:
        self._handlers.pop(name, None)

    def publish(self, receipt: PurchaseReceipt) -> None:
        for handler in list(self._handlers.values()):
            handler(receipt)
