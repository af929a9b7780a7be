"""In-session shopping cart ledger."""
from __future__ import annotations

from cart_ledger.core.exceptions import (
    CartException,
    InvalidAssociation,
    InvalidAttribute,
    InvalidItemDescriptor,
    InvalidPrice,
    InvalidQuantity,
    RowNotFound,
)
from cart_ledger.domain import CartRow, identify
from cart_ledger.integrations import MemorySessionStore, RedisSessionStore, SessionStore
from cart_ledger.services import CartEvent, CartEventNotifier, CartLedger

__version__ = "1.0.0"

__all__ = [
    "CartEvent",
    "CartEventNotifier",
    "CartException",
    "CartLedger",
    "CartRow",
    "InvalidAssociation",
    "InvalidAttribute",
    "InvalidItemDescriptor",
    "InvalidPrice",
    "InvalidQuantity",
    "MemorySessionStore",
    "RedisSessionStore",
    "RowNotFound",
    "SessionStore",
    "identify",
]
