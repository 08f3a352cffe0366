"""Derived, read-only views over a cart snapshot."""
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from cartcore.services.money import round_money
from .models import Cart, CartLineItem

if TYPE_CHECKING:
    from .store import CartStore


def total_items(cart: Cart) -> int:
    """Sum of quantities across all lines."""
    return sum(item.quantity for item in cart.items.values())


def total_price(cart: Cart) -> Decimal:
    """Sum of line totals (unit price snapshot times quantity)."""
    return round_money(sum((item.total_price for item in cart.items.values()), Decimal("0")))


def item_count(cart: Cart) -> int:
    """Number of distinct products in the cart."""
    return len(cart.items)


def line_items(cart: Cart) -> Tuple[CartLineItem, ...]:
    """Lines in insertion order."""
    return cart.lines()


def quantity_of(cart: Cart, product_id: str) -> int:
    item = cart.items.get(product_id)
    return item.quantity if item else 0


class CartSelectors:
    """
    Memoized projections bound to a store.

    Each projection is computed at most once per cart snapshot, so
    consumers that compare results by identity only re-render when the
    cart actually changed.
    """

    def __init__(self, store: "CartStore"):
        self._store = store
        self._cart: Optional[Cart] = None
        self._cache: Dict[str, Any] = {}

    def _select(self, name: str, compute: Callable[[Cart], Any]) -> Any:
        cart = self._store.cart
        if cart is not self._cart:
            self._cart = cart
            self._cache = {}
        if name not in self._cache:
            self._cache[name] = compute(cart)
        return self._cache[name]

    @property
    def total_items(self) -> int:
        return self._select("total_items", total_items)

    @property
    def total_price(self) -> Decimal:
        return self._select("total_price", total_price)

    @property
    def item_count(self) -> int:
        return self._select("item_count", item_count)

    @property
    def items(self) -> Tuple[CartLineItem, ...]:
        return self._select("items", line_items)

    @property
    def is_empty(self) -> bool:
        return self.item_count == 0

    def quantity_of(self, product_id: str) -> int:
        return quantity_of(self._store.cart, product_id)
