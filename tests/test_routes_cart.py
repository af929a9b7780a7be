"""Tests for the cart HTTP routes (handlers called directly)."""
from __future__ import annotations

from decimal import Decimal

import pytest
from fastapi import HTTPException

from cart_ledger.api import create_app, routes_cart
from cart_ledger.api.routes_cart import (
    CartBatchRequest,
    CartItemRequest,
    CartUpdateRequest,
)
from cart_ledger.core.config import Settings
from cart_ledger.services.cart_ledger import CartLedger


@pytest.fixture
def route_ledger(shared_ledger) -> CartLedger:
    return routes_cart.get_ledger("default")


def _shirt(**overrides) -> CartItemRequest:
    data = {"id": "sku1", "name": "Shirt", "qty": 1, "price": "20.00", "options": {"size": "M"}}
    data.update(overrides)
    return CartItemRequest(**data)


@pytest.mark.asyncio
async def test_get_empty_cart(route_ledger):
    result = await routes_cart.get_cart(ledger=route_ledger)

    assert result.name == "default"
    assert result.rows == []
    assert result.total == 0


@pytest.mark.asyncio
async def test_add_item_aggregates(route_ledger):
    await routes_cart.add_item(body=_shirt(), ledger=route_ledger)
    result = await routes_cart.add_item(body=_shirt(qty=2), ledger=route_ledger)

    assert result.count == 3
    assert result.count_rows == 1
    assert result.total == Decimal("60.00")


@pytest.mark.asyncio
async def test_add_item_rejects_bad_quantity(route_ledger):
    with pytest.raises(HTTPException) as exc:
        await routes_cart.add_item(body=_shirt(qty=0), ledger=route_ledger)

    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_add_batch(route_ledger):
    body = CartBatchRequest(items=[_shirt(), _shirt(id="sku2", options={})])

    result = await routes_cart.add_batch(body=body, ledger=route_ledger)

    assert result.count_rows == 2


@pytest.mark.asyncio
async def test_update_and_remove_row(route_ledger):
    row_id = route_ledger.add_one("sku1", "Shirt", 1, 20)

    updated = await routes_cart.update_row(
        row_id=row_id, body=CartUpdateRequest(quantity=4), ledger=route_ledger
    )
    assert updated.rows[0].quantity == 4

    removed = await routes_cart.update_row(
        row_id=row_id, body=CartUpdateRequest(quantity=0), ledger=route_ledger
    )
    assert removed.rows == []


@pytest.mark.asyncio
async def test_update_missing_row_is_404(route_ledger):
    with pytest.raises(HTTPException) as exc:
        await routes_cart.update_row(
            row_id="missing", body=CartUpdateRequest(quantity=1), ledger=route_ledger
        )

    assert exc.value.status_code == 404


@pytest.mark.asyncio
async def test_empty_update_is_400(route_ledger):
    row_id = route_ledger.add_one("sku1", "Shirt", 1, 20)
    with pytest.raises(HTTPException) as exc:
        await routes_cart.update_row(row_id=row_id, body=CartUpdateRequest(), ledger=route_ledger)

    assert exc.value.status_code == 400


@pytest.mark.asyncio
async def test_remove_missing_row_succeeds(route_ledger):
    result = await routes_cart.remove_row(row_id="missing", ledger=route_ledger)
    assert result.count_rows == 0


@pytest.mark.asyncio
async def test_destroy_cart(route_ledger):
    route_ledger.add_one("sku1", "Shirt", 1, 20)

    result = await routes_cart.destroy_cart(ledger=route_ledger)

    assert result == {"name": "default", "destroyed": True}
    assert route_ledger.count_rows() == 0


@pytest.mark.asyncio
async def test_search(route_ledger):
    red = route_ledger.add_one("sku1", "Shirt", 1, 20, {"color": "red"})
    route_ledger.add_one("sku1", "Shirt", 1, 20, {"color": "blue"})

    found = await routes_cart.search_cart(criteria={"color": "red"}, ledger=route_ledger)
    nothing = await routes_cart.search_cart(criteria={}, ledger=route_ledger)

    assert [row.row_id for row in found] == [red]
    assert nothing == []


@pytest.mark.asyncio
async def test_store_failure_is_503(rejecting_store):
    ledger = CartLedger(rejecting_store, settings=Settings())
    rejecting_store.accept_writes = False

    with pytest.raises(HTTPException) as exc:
        await routes_cart.add_item(body=_shirt(), ledger=ledger)

    assert exc.value.status_code == 503


def test_app_registers_cart_routes():
    paths = {route.path for route in create_app().routes}
    assert "/api/v1/cart/{cart_name}" in paths
    assert "/api/v1/cart/{cart_name}/rows/{row_id}" in paths
