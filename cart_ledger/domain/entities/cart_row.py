"""Cart row entity model."""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field

# Fixed record fields; anything else a caller asks about is looked up in options
ROW_FIELDS = frozenset(
    {"row_id", "item_id", "name", "quantity", "unit_price", "total", "options", "associated_model"}
)

_MISSING = object()


class CartRow(BaseModel):
    """One line item in a cart."""

    model_config = ConfigDict(frozen=True)

    row_id: str = Field(..., min_length=1, description="Hash of item id + sorted options")
    item_id: Union[str, int] = Field(..., description="Caller product identifier")
    name: str = Field("", description="Display name")
    quantity: int = Field(..., gt=0, description="Units in the row")
    unit_price: Decimal = Field(..., ge=0, description="Price of one unit")
    options: dict[str, Any] = Field(default_factory=dict, description="Size, color, ...")
    associated_model: Optional[str] = Field(None, description="Dotted name of associated type")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total(self) -> Decimal:
        """Line total (quantity x unit price)."""
        return self.unit_price * self.quantity

    @classmethod
    def create(
        cls,
        row_id: str,
        item_id: str | int,
        name: str,
        quantity: int,
        unit_price: Decimal,
        options: dict[str, Any] | None = None,
        associated_model: str | None = None,
    ) -> CartRow:
        return cls(
            row_id=row_id,
            item_id=item_id,
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            options=dict(options or {}),
            associated_model=associated_model,
        )

    def with_changes(self, **changes: Any) -> CartRow:
        """Return a validated copy with ``changes`` applied."""
        data = self.model_dump(exclude={"total"})
        data.update(changes)
        return CartRow.model_validate(data)

    def get_field(self, key: str, default: Any = None) -> Any:
        """Fixed field value, or the option of that name."""
        if key in ROW_FIELDS:
            return getattr(self, key)
        return self.options.get(key, default)

    def has_option(self, key: str, value: Any) -> bool:
        return self.options.get(key, _MISSING) == value

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-safe dict for session storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CartRow:
        """Create from a stored dict; a stored ``total`` is ignored and recomputed."""
        payload = {key: value for key, value in data.items() if key != "total"}
        return cls.model_validate(payload)


__all__ = ["CartRow", "ROW_FIELDS"]
