"""Cart package: models, store, selectors, publisher, persistence and service."""
from .models import (
    Cart,
    CartLineItem,
    CartStatus,
    InventorySnapshot,
    MutationResult,
    ProductSnapshot,
    ReconcileResult,
)
from .persistence import CartPersistence
from .publisher import CartPublisher
from .selectors import CartSelectors
from .service import CartService, RefreshReport
from .store import CartStore

__all__ = [
    "Cart",
    "CartLineItem",
    "CartStatus",
    "InventorySnapshot",
    "MutationResult",
    "ProductSnapshot",
    "ReconcileResult",
    "CartPersistence",
    "CartPublisher",
    "CartSelectors",
    "CartService",
    "RefreshReport",
    "CartStore",
]
