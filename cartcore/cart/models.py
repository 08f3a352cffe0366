"""Cart models with Decimal-based pricing."""
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from cartcore.services.models import ProductRecord
from cartcore.services.money import multiply, round_money, to_decimal


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class InventorySnapshot:
    """Last observed stock figures for a product (owned by the catalog)."""
    product_id: str
    available_quantity: int
    min_stock_quantity: int = 0
    price: Decimal = Decimal("0")

    @property
    def is_low_stock(self) -> bool:
        return 0 < self.available_quantity <= self.min_stock_quantity


@dataclass(frozen=True)
class ProductSnapshot:
    """Display fields captured when the product entered the cart."""
    name: str = ""
    image_url: Optional[str] = None
    unit: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    currency: Optional[str] = None

    @classmethod
    def from_record(cls, record: ProductRecord) -> "ProductSnapshot":
        return cls(
            name=record.name,
            image_url=record.image_url,
            unit=record.unit,
            category=record.category,
            sku=record.sku,
            currency=record.currency,
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "image_url": self.image_url,
            "unit": self.unit,
            "category": self.category,
            "sku": self.sku,
            "currency": self.currency,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "ProductSnapshot":
        return cls(
            name=data.get("name", ""),
            image_url=data.get("image_url"),
            unit=data.get("unit"),
            category=data.get("category"),
            sku=data.get("sku"),
            currency=data.get("currency"),
        )


@dataclass(frozen=True)
class CartLineItem:
    """Single line in the cart."""
    product_id: str
    quantity: int
    unit_price: Decimal
    product: ProductSnapshot = field(default_factory=ProductSnapshot)
    added_at: str = ""

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__
        if not self.added_at:
            object.__setattr__(self, "added_at", _utcnow_iso())
        object.__setattr__(self, "unit_price", to_decimal(self.unit_price))

    @property
    def total_price(self) -> Decimal:
        """Total price for all units."""
        return round_money(multiply(self.unit_price, self.quantity))

    def with_quantity(self, quantity: int) -> "CartLineItem":
        return replace(self, quantity=quantity)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "product_id": self.product_id,
            "quantity": self.quantity,
            "unit_price": str(self.unit_price),
            "product": self.product.to_dict(),
            "added_at": self.added_at,
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "CartLineItem":
        """Create from dictionary."""
        return cls(
            product_id=str(data["product_id"]),
            quantity=int(data["quantity"]),
            unit_price=to_decimal(data["unit_price"]),
            product=ProductSnapshot.from_dict(data.get("product") or {}),
            added_at=data.get("added_at", ""),
        )


def _freeze(items: Mapping[str, CartLineItem]) -> Mapping[str, CartLineItem]:
    return MappingProxyType(dict(items))


@dataclass(frozen=True)
class Cart:
    """
    Immutable cart snapshot.

    ``items`` is a read-only mapping in insertion order. Every committed
    mutation produces a new Cart with ``version`` bumped; ``clear()``
    also bumps ``generation`` so in-flight requests can detect a reset.
    """
    items: Mapping[str, CartLineItem] = field(default_factory=lambda: _freeze({}))
    version: int = 0
    generation: int = 0

    def __post_init__(self):
        if not isinstance(self.items, MappingProxyType):
            object.__setattr__(self, "items", _freeze(self.items))

    def __len__(self) -> int:
        return len(self.items)

    def __contains__(self, product_id: object) -> bool:
        return product_id in self.items

    def lines(self) -> Tuple[CartLineItem, ...]:
        return tuple(self.items.values())

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "items": [item.to_dict() for item in self.items.values()],
        }

    @classmethod
    def from_dict(cls, data: Mapping) -> "Cart":
        """Create from dictionary; later duplicates of a product id win."""
        items = {}
        for raw in data.get("items", []):
            item = CartLineItem.from_dict(raw)
            if item.quantity <= 0:
                continue
            items[item.product_id] = item
        return cls(items=items)


class CartStatus(str, Enum):
    """Outcome of a cart mutation."""
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"
    UNCHANGED = "unchanged"
    OUT_OF_STOCK = "out_of_stock"
    NOT_IN_CART = "not_in_cart"
    STALE = "stale"


_OK_STATUSES = frozenset({
    CartStatus.ADDED,
    CartStatus.UPDATED,
    CartStatus.REMOVED,
    CartStatus.UNCHANGED,
})


@dataclass(frozen=True)
class MutationResult:
    """What a single mutation did, for the caller to decide on UI feedback."""
    status: CartStatus
    item: Optional[CartLineItem] = None
    clamped: bool = False

    @property
    def ok(self) -> bool:
        return self.status in _OK_STATUSES


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of applying fresh product records to the cart."""
    status: CartStatus
    updated: Tuple[str, ...] = ()
    clamped: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
