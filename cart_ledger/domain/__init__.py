"""Domain layer: row identity, entities and model associations."""
from __future__ import annotations

from cart_ledger.domain.associations import resolve_model
from cart_ledger.domain.entities import CartRow
from cart_ledger.domain.row_identity import identify

__all__ = ["CartRow", "identify", "resolve_model"]
