"""
Tests for cart models
"""

from decimal import Decimal

import pytest

from cartcore.cart import Cart, CartLineItem, CartStatus, MutationResult, ProductSnapshot


class TestCartLineItem:
    """Tests for CartLineItem dataclass."""

    def test_create_line_item(self):
        """Test creating a line item."""
        item = CartLineItem(product_id="prod-123", quantity=2, unit_price=299.0)

        assert item.product_id == "prod-123"
        assert item.quantity == 2
        assert item.unit_price == Decimal("299.0")
        assert item.added_at != ""

    def test_total_price_calculation(self):
        """Test total price for quantity."""
        item = CartLineItem(product_id="prod-123", quantity=3, unit_price="10.10")

        assert item.total_price == Decimal("30.30")

    def test_line_item_is_immutable(self):
        item = CartLineItem(product_id="prod-123", quantity=1, unit_price=1)

        with pytest.raises(AttributeError):
            item.quantity = 5

    def test_with_quantity_keeps_snapshot(self):
        item = CartLineItem(
            product_id="prod-123",
            quantity=1,
            unit_price=5,
            product=ProductSnapshot(name="Washer", unit="pcs"),
        )

        bumped = item.with_quantity(4)

        assert bumped.quantity == 4
        assert bumped.product.name == "Washer"
        assert bumped.added_at == item.added_at
        assert item.quantity == 1

    def test_to_dict(self):
        """Test serialization to dict."""
        item = CartLineItem(product_id="prod-123", quantity=1, unit_price=100.0)

        data = item.to_dict()
        assert data["product_id"] == "prod-123"
        assert data["unit_price"] == "100.0"
        assert "added_at" in data

    def test_from_dict(self):
        """Test deserialization from dict."""
        data = {
            "product_id": "prod-123",
            "quantity": 1,
            "unit_price": "100.00",
            "product": {"name": "Test", "unit": "kg"},
            "added_at": "2024-01-01T00:00:00+00:00",
        }

        item = CartLineItem.from_dict(data)
        assert item.product_id == "prod-123"
        assert item.product.unit == "kg"
        assert item.added_at == "2024-01-01T00:00:00+00:00"


class TestCart:
    """Tests for Cart dataclass."""

    def test_create_empty_cart(self):
        cart = Cart()

        assert len(cart) == 0
        assert cart.version == 0
        assert cart.generation == 0

    def test_items_are_read_only(self):
        cart = Cart(items={"p1": CartLineItem(product_id="p1", quantity=1, unit_price=1)})

        with pytest.raises(TypeError):
            cart.items["p2"] = CartLineItem(product_id="p2", quantity=1, unit_price=1)

    def test_source_dict_changes_do_not_leak(self):
        source = {"p1": CartLineItem(product_id="p1", quantity=1, unit_price=1)}
        cart = Cart(items=source)

        source["p2"] = CartLineItem(product_id="p2", quantity=1, unit_price=1)

        assert "p2" not in cart
        assert "p1" in cart

    def test_cart_serialization(self):
        """Test cart serialization and deserialization."""
        items = {
            "p2": CartLineItem(product_id="p2", quantity=2, unit_price="2.50",
                               product=ProductSnapshot(name="Washer")),
            "p1": CartLineItem(product_id="p1", quantity=1, unit_price="10"),
        }
        cart = Cart(items=items)

        restored = Cart.from_dict(cart.to_dict())

        assert restored.items == cart.items
        assert list(restored.items) == ["p2", "p1"]

    def test_from_dict_drops_non_positive_lines(self):
        data = {"items": [
            {"product_id": "p1", "quantity": 0, "unit_price": "1"},
            {"product_id": "p2", "quantity": 3, "unit_price": "1"},
        ]}

        cart = Cart.from_dict(data)

        assert list(cart.items) == ["p2"]


class TestMutationResult:

    @pytest.mark.parametrize("status,ok", [
        (CartStatus.ADDED, True),
        (CartStatus.UNCHANGED, True),
        (CartStatus.OUT_OF_STOCK, False),
        (CartStatus.NOT_IN_CART, False),
        (CartStatus.STALE, False),
    ])
    def test_ok(self, status, ok):
        assert MutationResult(status).ok is ok
