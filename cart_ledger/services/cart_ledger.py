"""Cart ledger: keyed collection of rows persisted in a session store."""
from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import ValidationError

from cart_ledger.core.config import Settings
from cart_ledger.core.exceptions import (
    InvalidAttribute,
    InvalidItemDescriptor,
    InvalidPrice,
    InvalidQuantity,
    RowNotFound,
)
from cart_ledger.domain.associations import resolve_model
from cart_ledger.domain.entities import CartRow
from cart_ledger.domain.row_identity import identify
from cart_ledger.integrations.session_store import SessionStore
from cart_ledger.logging_config import logger
from cart_ledger.services.cart_events import (
    CART_ADD,
    CART_ADDED,
    CART_BATCH,
    CART_BATCHED,
    CART_DESTROY,
    CART_DESTROYED,
    CART_REMOVE,
    CART_REMOVED,
    CART_UPDATE,
    CART_UPDATED,
    CartEventNotifier,
)

UPDATABLE_ATTRIBUTES = frozenset({"name", "quantity", "unit_price", "options", "associated_model"})
ATTRIBUTE_ALIASES = {"price": "unit_price", "qty": "quantity"}
SEARCH_ALIASES = {**ATTRIBUTE_ALIASES, "id": "item_id"}

_MISSING = object()


def _to_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, (int, float, str)):
        try:
            number = Decimal(str(value).strip())
        except InvalidOperation:
            return None
    else:
        return None
    return number if number.is_finite() else None


def coerce_quantity(value: Any) -> int:
    """Integral quantity from an int, float, Decimal or numeric string."""
    number = _to_decimal(value)
    if number is None or number != number.to_integral_value():
        raise InvalidQuantity(value)
    return int(number)


def coerce_price(value: Any) -> Decimal:
    """Non-negative Decimal price from a numeric value or string."""
    number = _to_decimal(value)
    if number is None or number < 0:
        raise InvalidPrice(value)
    return number


def _coerce_options(options: Any) -> dict[str, Any]:
    if options is None:
        return {}
    if not isinstance(options, Mapping):
        raise InvalidItemDescriptor(f"Options must be a mapping, got {type(options).__name__}")
    return {str(key): value for key, value in options.items()}


def _coerce_item_id(item_id: Any) -> str | int:
    """Item id as a str or int; other hashable scalars (UUID, Decimal, float) become str."""
    if item_id is None or isinstance(item_id, bool) or item_id == "":
        raise InvalidItemDescriptor(f"Item id must be a non-empty scalar, got {item_id!r}")
    if isinstance(item_id, (str, int)):
        return item_id
    if isinstance(item_id, (Mapping, list, tuple, set, frozenset, bytes, bytearray)):
        raise InvalidItemDescriptor(f"Item id must be a scalar, got {type(item_id).__name__}")
    try:
        hash(item_id)
    except TypeError:
        raise InvalidItemDescriptor(f"Item id must be hashable, got {type(item_id).__name__}") from None
    return str(item_id)


def _first_present(item: Mapping[str, Any], *keys: str, default: Any = _MISSING) -> Any:
    for key in keys:
        if key in item:
            return item[key]
    return default


class CartLedger:
    """
    Named cart of rows kept in a session store.

    Every public operation reads the current snapshot from the store, works
    on it in memory and writes it back once. Business-rule violations raise
    (InvalidQuantity, InvalidPrice, RowNotFound, ...); a store that refuses a
    write is reported through the return value (False / None) instead.

    Usage:
        ledger = CartLedger(MemorySessionStore())
        row_id = ledger.add_one("sku1", "Shirt", 1, Decimal("20.00"), {"size": "M"})
        ledger.update(row_id, 3)
        ledger.total()
    """

    def __init__(
        self,
        store: SessionStore,
        name: str | None = None,
        notifier: CartEventNotifier | None = None,
        settings: Settings | None = None,
        associated_model: str | None = None,
    ):
        self._store = store
        self._settings = settings or Settings()
        self._notifier = notifier
        self._associated_model = associated_model
        self.name = name or self._settings.default_cart_name

    @property
    def key(self) -> str:
        return self._settings.cart_key(self.name)

    @property
    def notifier(self) -> CartEventNotifier | None:
        return self._notifier

    @property
    def associated_model(self) -> str | None:
        return self._associated_model

    def for_cart(self, name: str) -> CartLedger:
        """Ledger for another named cart sharing this store and notifier."""
        return CartLedger(
            self._store,
            name=name,
            notifier=self._notifier,
            settings=self._settings,
            associated_model=self._associated_model,
        )

    def associate(self, model: Any) -> CartLedger:
        """Ledger whose new rows are tagged with ``model`` (class or dotted path)."""
        return CartLedger(
            self._store,
            name=self.name,
            notifier=self._notifier,
            settings=self._settings,
            associated_model=resolve_model(model),
        )

    # ========== SNAPSHOT I/O ==========

    def _load_rows(self) -> dict[str, CartRow]:
        raw = self._store.get(self.key)
        if not isinstance(raw, Mapping):
            if raw is not None:
                logger.warning("Cart %s holds %s, treating as empty", self.key, type(raw).__name__)
            return {}

        rows: dict[str, CartRow] = {}
        for row_id, data in raw.items():
            if not isinstance(data, Mapping):
                logger.warning("Skipping malformed row %s in %s", row_id, self.key)
                continue
            try:
                row = CartRow.from_dict(dict(data))
            except ValidationError as exc:
                logger.warning("Skipping invalid row %s in %s: %s", row_id, self.key, exc)
                continue
            rows[row.row_id] = row
        return rows

    def _save_rows(self, rows: dict[str, CartRow]) -> bool:
        saved = self._store.put(self.key, {row_id: row.to_dict() for row_id, row in rows.items()})
        if not saved:
            logger.warning("Session store rejected write of %s", self.key)
        return saved

    def _notify(self, event: str, payload: dict[str, Any] | None = None) -> None:
        if self._notifier is not None:
            self._notifier.fire(event, self.name, payload)

    # ========== QUERIES ==========

    def all(self) -> list[CartRow]:
        return list(self._load_rows().values())

    def get(self, row_id: str) -> CartRow | None:
        return self._load_rows().get(row_id)

    def has(self, row_id: str) -> bool:
        return row_id in self._load_rows()

    def total(self) -> Decimal:
        """Sum of row totals; Decimal("0") for an empty cart."""
        return sum((row.total for row in self._load_rows().values()), Decimal("0"))

    def count(self, aggregate_quantities: bool = True) -> int:
        """Total units when ``aggregate_quantities``, else number of rows."""
        rows = self._load_rows()
        if not aggregate_quantities:
            return len(rows)
        return sum(row.quantity for row in rows.values())

    def count_rows(self) -> int:
        return self.count(False)

    def search(self, criteria: Mapping[str, Any]) -> list[CartRow]:
        """Rows matching every key/value in ``criteria``.

        A key names a row field (``item_id``, ``name``, ...; descriptor keys
        ``id``, ``qty`` and ``price`` are accepted too) or, failing that, an
        option. ``{"options": {...}}`` matches a subset of options.
        Empty criteria match nothing.
        """
        if not criteria:
            return []
        return [row for row in self._load_rows().values() if self._matches(row, criteria)]

    @staticmethod
    def _matches(row: CartRow, criteria: Mapping[str, Any]) -> bool:
        for raw_key, expected in criteria.items():
            key = SEARCH_ALIASES.get(raw_key, raw_key)
            if key == "options" and isinstance(expected, Mapping):
                if not all(row.has_option(name, value) for name, value in expected.items()):
                    return False
            elif row.get_field(key, _MISSING) != expected:
                return False
        return True

    def summary(self) -> dict[str, Any]:
        rows = self._load_rows()
        total = sum((row.total for row in rows.values()), Decimal("0"))
        return {
            "name": self.name,
            "rows": [row.to_dict() for row in rows.values()],
            "count": sum(row.quantity for row in rows.values()),
            "count_rows": len(rows),
            "total": str(total),
        }

    def __iter__(self) -> Iterator[CartRow]:
        return iter(self.all())

    def __len__(self) -> int:
        return self.count_rows()

    def __contains__(self, row_id: object) -> bool:
        return isinstance(row_id, str) and self.has(row_id)

    # ========== ADD ==========

    @staticmethod
    def _validate_item(
        item_id: Any, name: Any, quantity: Any, unit_price: Any, options: Any
    ) -> dict[str, Any]:
        item_id = _coerce_item_id(item_id)
        qty = coerce_quantity(quantity)
        if qty <= 0:
            raise InvalidQuantity(quantity)
        return {
            "item_id": item_id,
            "name": "" if name is None else str(name),
            "quantity": qty,
            "unit_price": coerce_price(unit_price),
            "options": _coerce_options(options),
        }

    def _apply_add(
        self,
        rows: dict[str, CartRow],
        item_id: Any,
        name: str,
        quantity: int,
        unit_price: Decimal,
        options: dict[str, Any],
    ) -> str:
        row_id = identify(item_id, options)
        existing = rows.get(row_id)
        if existing is not None:
            rows[row_id] = existing.with_changes(quantity=existing.quantity + quantity)
            logger.debug(
                "Row %s in %s aggregated: %s -> %s",
                row_id,
                self.name,
                existing.quantity,
                existing.quantity + quantity,
            )
        else:
            rows[row_id] = CartRow.create(
                row_id=row_id,
                item_id=item_id,
                name=name,
                quantity=quantity,
                unit_price=unit_price,
                options=options,
                associated_model=self._associated_model,
            )
            logger.info("Row %s inserted into cart %s", row_id, self.name)
        return row_id

    def add_one(
        self,
        item_id: str | int,
        name: str,
        quantity: Any,
        unit_price: Any,
        options: Mapping[str, Any] | None = None,
    ) -> str | None:
        """Add ``quantity`` units of an item, merging into an identical row.

        Args:
            item_id: Caller product identifier
            name: Display name (kept from the first add of a row)
            quantity: Positive integral quantity
            unit_price: Non-negative price of one unit
            options: Option name -> value (size, color, ...)

        Returns:
            Row id, or None when the session store rejected the write

        Raises:
            InvalidQuantity: quantity is not a positive integral number
            InvalidPrice: price is not a non-negative number
        """
        payload = self._validate_item(item_id, name, quantity, unit_price, options)
        self._notify(CART_ADD, payload)

        rows = self._load_rows()
        row_id = self._apply_add(rows, **payload)
        if not self._save_rows(rows):
            return None

        self._notify(CART_ADDED, {**payload, "row_id": row_id})
        return row_id

    def _parse_descriptor(self, item: Any, position: int | None = None) -> dict[str, Any]:
        where = f"item {position}" if position is not None else "item"
        if not isinstance(item, Mapping):
            raise InvalidItemDescriptor(f"{where} must be a mapping, got {type(item).__name__}")

        item_id = _first_present(item, "id", "item_id")
        if item_id is _MISSING or item_id is None:
            raise InvalidItemDescriptor(f"{where} has no id")
        price = _first_present(item, "price", "unit_price")
        if price is _MISSING:
            raise InvalidItemDescriptor(f"{where} has no price")

        quantity = _first_present(item, "qty", "quantity", default=1)
        return self._validate_item(item_id, item.get("name"), quantity, price, item.get("options"))

    def add(self, item: Mapping[str, Any]) -> str | None:
        """Add a flat item descriptor: ``{"id", "name", "qty", "price", "options"}``.

        ``qty`` (or ``quantity``) defaults to 1 and ``name`` to "".
        """
        fields = self._parse_descriptor(item)
        return self.add_one(**fields)

    def add_batch(self, items: Sequence[Mapping[str, Any]]) -> list[str] | None:
        """Add several descriptors as one change.

        The whole payload is validated before anything is applied, then every
        item is merged into one snapshot and written once, so a batch either
        lands completely or not at all.

        Returns:
            Row ids in input order, or None when the store rejected the write
        """
        if isinstance(items, (str, bytes, Mapping)) or not isinstance(items, Sequence):
            raise InvalidItemDescriptor("Batch payload must be a sequence of item descriptors")

        parsed = [self._parse_descriptor(item, position) for position, item in enumerate(items)]
        if not parsed:
            return []

        self._notify(CART_BATCH, {"items": parsed})

        rows = self._load_rows()
        row_ids = [self._apply_add(rows, **fields) for fields in parsed]
        if not self._save_rows(rows):
            return None

        self._notify(CART_BATCHED, {"items": parsed, "row_ids": row_ids})
        return row_ids

    # ========== UPDATE / REMOVE ==========

    @staticmethod
    def _normalize_changes(delta: Any) -> dict[str, Any]:
        if not isinstance(delta, Mapping):
            return {"quantity": coerce_quantity(delta)}

        changes: dict[str, Any] = {}
        for raw_key, value in delta.items():
            key = ATTRIBUTE_ALIASES.get(raw_key, raw_key)
            if key not in UPDATABLE_ATTRIBUTES:
                raise InvalidAttribute(str(raw_key))
            if key == "quantity":
                changes[key] = coerce_quantity(value)
            elif key == "unit_price":
                changes[key] = coerce_price(value)
            elif key == "options":
                changes[key] = _coerce_options(value)
            elif key == "associated_model":
                changes[key] = resolve_model(value) if value is not None else None
            else:
                changes[key] = "" if value is None else str(value)
        return changes

    def update(self, row_id: str, delta: Any) -> CartRow | bool:
        """Set a new quantity (int) or change attributes (mapping) of a row.

        A resulting quantity <= 0 removes the row. Changing ``options`` moves
        the row to the id of its new options, merging quantities into a row
        that already has that id.

        Returns:
            The updated row; for a removal, the removal status.
            False when the session store rejected the write.

        Raises:
            RowNotFound: no row with ``row_id``
            InvalidAttribute: attribute is unknown or derived
        """
        rows = self._load_rows()
        row = rows.get(row_id)
        if row is None:
            raise RowNotFound(row_id)

        changes = self._normalize_changes(delta)
        self._notify(CART_UPDATE, {"row_id": row_id, "changes": changes})

        if changes.get("quantity", row.quantity) <= 0:
            removed = self._remove_row(rows, row_id)
            if removed:
                self._notify(CART_UPDATED, {"row_id": row_id, "changes": changes, "removed": True})
            return removed

        updated = self._apply_update(rows, row, changes)
        if not self._save_rows(rows):
            return False

        self._notify(
            CART_UPDATED,
            {"row_id": row_id, "new_row_id": updated.row_id, "changes": changes, "removed": False},
        )
        return updated

    def _apply_update(
        self, rows: dict[str, CartRow], row: CartRow, changes: dict[str, Any]
    ) -> CartRow:
        if "options" not in changes:
            updated = row.with_changes(**changes)
            rows[row.row_id] = updated
            return updated

        # New options mean a new identity; fold into a row that already has it
        new_id = identify(row.item_id, changes["options"])
        updated = row.with_changes(**changes, row_id=new_id)
        del rows[row.row_id]
        existing = rows.get(new_id)
        if existing is not None:
            updated = existing.with_changes(quantity=existing.quantity + updated.quantity)
        rows[new_id] = updated
        if new_id != row.row_id:
            logger.info("Row %s in cart %s re-keyed to %s", row.row_id, self.name, new_id)
        return updated

    def _remove_row(self, rows: dict[str, CartRow], row_id: str) -> bool:
        self._notify(CART_REMOVE, {"row_id": row_id})
        del rows[row_id]
        if not self._save_rows(rows):
            return False
        logger.info("Row %s removed from cart %s", row_id, self.name)
        self._notify(CART_REMOVED, {"row_id": row_id})
        return True

    def remove(self, row_id: str) -> bool:
        """Remove a row. Removing an absent row is a successful no-op."""
        rows = self._load_rows()
        if row_id not in rows:
            return True
        return self._remove_row(rows, row_id)

    def destroy(self) -> bool:
        """Clear the cart and drop its store entry."""
        self._notify(CART_DESTROY, {})
        destroyed = self._store.forget(self.key)
        if not destroyed:
            logger.warning("Session store failed to drop %s", self.key)
            return False
        logger.info("Cart %s destroyed", self.name)
        self._notify(CART_DESTROYED, {})
        return True

    def __repr__(self) -> str:
        return f"CartLedger(name={self.name!r}, key={self.key!r})"


__all__ = ["CartLedger", "coerce_price", "coerce_quantity"]
