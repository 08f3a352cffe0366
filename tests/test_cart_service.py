"""
Tests for CartService (fetch-then-mutate)
"""

import pytest

from cartcore.cart import CartService, CartStatus
from cartcore.errors import CatalogFetchError


@pytest.mark.asyncio
async def test_add_product_fetches_then_adds(store, catalog):
    service = CartService(store, catalog)

    result = await service.add_product("p1", 7)

    assert catalog.calls == ["p1"]
    assert result.status is CartStatus.ADDED
    assert result.clamped is True
    assert store.get_cart_item("p1").quantity == 5


@pytest.mark.asyncio
async def test_catalog_failure_propagates_and_cart_untouched(store, catalog):
    service = CartService(store, catalog)

    with pytest.raises(CatalogFetchError):
        await service.add_product("unknown")

    assert len(store.cart) == 0


@pytest.mark.asyncio
async def test_logout_during_fetch_drops_late_write(store, catalog):
    service = CartService(store, catalog)
    await service.add_product("p2", 1)
    catalog.before_return = lambda product_id: store.clear()

    result = await service.add_product("p1", 1)

    assert result.status is CartStatus.STALE
    assert len(store.cart) == 0


@pytest.mark.asyncio
async def test_set_quantity_uses_fresh_stock(store, catalog):
    service = CartService(store, catalog)
    await service.add_product("p3", 1)
    catalog.products["p3"]["availableQuantity"] = 2

    result = await service.set_quantity("p3", 3)

    assert result.clamped is True
    assert store.get_cart_item("p3").quantity == 2


@pytest.mark.asyncio
async def test_set_quantity_zero_removes_without_fetch(store, catalog):
    service = CartService(store, catalog)
    await service.add_product("p1", 1)
    catalog.calls.clear()

    result = await service.set_quantity("p1", 0)

    assert result.status is CartStatus.REMOVED
    assert catalog.calls == []


@pytest.mark.asyncio
async def test_set_quantity_missing_product_is_noop(store, catalog):
    service = CartService(store, catalog)

    result = await service.set_quantity("p2", 4)

    assert result.status is CartStatus.NOT_IN_CART
    assert store.is_in_cart("p2") is False


@pytest.mark.asyncio
async def test_refresh_empty_cart_does_not_fetch(store, catalog):
    report = await CartService(store, catalog).refresh_cart_items()

    assert report.updated == ()
    assert catalog.calls == []


@pytest.mark.asyncio
async def test_refresh_reconciles_and_keeps_failed_lines(store, catalog):
    service = CartService(store, catalog)
    await service.add_product("p1", 5)
    await service.add_product("p2", 10)
    await service.add_product("p3", 3)

    catalog.products["p1"]["availableQuantity"] = 2
    catalog.products["p1"]["price"] = 11
    catalog.products["p2"]["availableQuantity"] = 0
    catalog.failing.add("p3")
    seen = []
    store.subscribe(seen.append)

    report = await service.refresh_cart_items()

    assert report.updated == ("p1",)
    assert report.removed == ("p2",)
    assert report.failed == ("p3",)
    assert report.stale is False
    assert store.get_cart_item("p1").quantity == 2
    assert str(store.get_cart_item("p1").unit_price) == "11"
    assert store.is_in_cart("p2") is False
    assert store.get_cart_item("p3").quantity == 3
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_refresh_after_logout_is_stale(store, catalog):
    service = CartService(store, catalog)
    await service.add_product("p1", 1)
    catalog.before_return = lambda product_id: store.clear()

    report = await service.refresh_cart_items()

    assert report.stale is True
    assert len(store.cart) == 0


@pytest.mark.asyncio
async def test_summary(store, catalog):
    service = CartService(store, catalog)
    assert service.get_summary()["is_empty"] is True

    await service.add_product("p1", 2)
    await service.add_product("p2", 4)
    summary = service.get_summary()

    assert summary["is_empty"] is False
    assert summary["item_count"] == 2
    assert summary["total_items"] == 6
    assert summary["total_price"] == 30.0
    assert summary["items"][0]["name"] == "Hex Bolt M8"
