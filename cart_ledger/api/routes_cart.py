from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Union

from fastapi import APIRouter, Depends, HTTPException, Path
from pydantic import BaseModel, Field

from cart_ledger.core.cart_storage import get_cart_ledger
from cart_ledger.core.exceptions import RowNotFound, ValidationException
from cart_ledger.logging_config import logger
from cart_ledger.services.cart_ledger import CartLedger

router = APIRouter(prefix="/api/v1", tags=["cart"])


class CartItemRequest(BaseModel):
    id: Union[str, int]
    name: str = ""
    qty: Any = 1
    price: Any
    options: dict[str, Any] = Field(default_factory=dict)


class CartBatchRequest(BaseModel):
    items: list[CartItemRequest]


class CartUpdateRequest(BaseModel):
    quantity: Optional[Any] = None
    price: Optional[Any] = None
    name: Optional[str] = None
    options: Optional[dict[str, Any]] = None

    def to_delta(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class CartRowResponse(BaseModel):
    row_id: str
    item_id: Union[str, int]
    name: str
    quantity: int
    unit_price: Decimal
    total: Decimal
    options: dict[str, Any]
    associated_model: Optional[str] = None


class CartResponse(BaseModel):
    name: str
    rows: list[CartRowResponse]
    count: int
    count_rows: int
    total: Decimal


def get_ledger(cart_name: str = Path(..., min_length=1, max_length=64)) -> CartLedger:
    return get_cart_ledger(cart_name)


def _summary(ledger: CartLedger) -> CartResponse:
    return CartResponse.model_validate(ledger.summary())


def _store_unavailable(ledger: CartLedger) -> HTTPException:
    logger.error("Cart %s could not be persisted", ledger.name)
    return HTTPException(status_code=503, detail="Cart storage unavailable")


@router.get("/cart/{cart_name}")
async def get_cart(ledger: CartLedger = Depends(get_ledger)) -> CartResponse:
    """Rows, counts and total of the cart."""
    return _summary(ledger)


@router.post("/cart/{cart_name}/items")
async def add_item(
    body: CartItemRequest, ledger: CartLedger = Depends(get_ledger)
) -> CartResponse:
    try:
        row_id = ledger.add(body.model_dump())
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    if row_id is None:
        raise _store_unavailable(ledger)
    return _summary(ledger)


@router.post("/cart/{cart_name}/batch")
async def add_batch(
    body: CartBatchRequest, ledger: CartLedger = Depends(get_ledger)
) -> CartResponse:
    try:
        row_ids = ledger.add_batch([item.model_dump() for item in body.items])
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    if row_ids is None:
        raise _store_unavailable(ledger)
    return _summary(ledger)


@router.patch("/cart/{cart_name}/rows/{row_id}")
async def update_row(
    row_id: str, body: CartUpdateRequest, ledger: CartLedger = Depends(get_ledger)
) -> CartResponse:
    delta = body.to_delta()
    if not delta:
        raise HTTPException(status_code=400, detail="Nothing to update")
    try:
        result = ledger.update(row_id, delta)
    except RowNotFound as e:
        raise HTTPException(status_code=404, detail=e.message) from e
    except ValidationException as e:
        raise HTTPException(status_code=400, detail=e.message) from e
    if result is False:
        raise _store_unavailable(ledger)
    return _summary(ledger)


@router.delete("/cart/{cart_name}/rows/{row_id}")
async def remove_row(row_id: str, ledger: CartLedger = Depends(get_ledger)) -> CartResponse:
    if not ledger.remove(row_id):
        raise _store_unavailable(ledger)
    return _summary(ledger)


@router.delete("/cart/{cart_name}")
async def destroy_cart(ledger: CartLedger = Depends(get_ledger)) -> dict[str, Any]:
    if not ledger.destroy():
        raise _store_unavailable(ledger)
    return {"name": ledger.name, "destroyed": True}


@router.post("/cart/{cart_name}/search")
async def search_cart(
    criteria: dict[str, Any], ledger: CartLedger = Depends(get_ledger)
) -> list[CartRowResponse]:
    """Rows matching every criterion; an empty body matches nothing."""
    return [CartRowResponse.model_validate(row.to_dict()) for row in ledger.search(criteria)]
