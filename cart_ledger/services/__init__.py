"""Cart services."""
from __future__ import annotations

from cart_ledger.services.cart_events import CartEvent, CartEventNotifier
from cart_ledger.services.cart_ledger import CartLedger

__all__ = ["CartEvent", "CartEventNotifier", "CartLedger"]
