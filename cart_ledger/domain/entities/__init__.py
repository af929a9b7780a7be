"""Domain entities."""
from __future__ import annotations

from cart_ledger.domain.entities.cart_row import ROW_FIELDS, CartRow

__all__ = ["CartRow", "ROW_FIELDS"]
