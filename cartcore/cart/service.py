"""Fetch-then-mutate helpers joining the async catalog to the synchronous store."""
import asyncio
from dataclasses import dataclass
from typing import List, Tuple

from cartcore.logging import get_logger, sanitize_id_for_logging
from cartcore.services.catalog import ProductCatalog
from cartcore.services.models import ProductRecord
from cartcore.services.money import to_float
from .models import CartStatus, MutationResult
from .selectors import total_items, total_price
from .store import CartStore

logger = get_logger(__name__)


@dataclass(frozen=True)
class RefreshReport:
    """Result of re-validating every cart line against the catalog."""
    updated: Tuple[str, ...] = ()
    clamped: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()
    failed: Tuple[str, ...] = ()
    stale: bool = False


class CartService:
    """
    Screen-facing cart operations that need fresh catalog data.

    Each operation first awaits the catalog (which may suspend and may
    raise CatalogFetchError), then makes one synchronous store call. The
    store generation is captured before the fetch so a cart cleared in
    the meantime (logout) is not written to.
    """

    def __init__(self, store: CartStore, catalog: ProductCatalog):
        self.store = store
        self.catalog = catalog

    async def add_product(self, product_id: str, quantity: int = 1) -> MutationResult:
        generation = self.store.generation
        record = await self.catalog.get_by_id(product_id)
        return self.store.add_to_cart(record, quantity, generation=generation)

    async def set_quantity(self, product_id: str, quantity: int) -> MutationResult:
        if quantity <= 0:
            return self.store.remove_from_cart(product_id)
        generation = self.store.generation
        record = await self.catalog.get_by_id(product_id)
        return self.store.update_quantity(product_id, quantity, product=record, generation=generation)

    async def refresh_cart_items(self) -> RefreshReport:
        """
        Re-fetch every line and reconcile quantities with current stock.

        A line whose fetch fails keeps its previous data; its id is listed
        in ``failed``.
        """
        cart = self.store.cart
        if not cart.items:
            return RefreshReport()

        generation = cart.generation
        product_ids = list(cart.items)
        results = await asyncio.gather(
            *(self.catalog.get_by_id(product_id) for product_id in product_ids),
            return_exceptions=True,
        )

        records: List[ProductRecord] = []
        failed: List[str] = []
        for product_id, result in zip(product_ids, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Cart refresh could not fetch {sanitize_id_for_logging(product_id)}: {result}")
                failed.append(product_id)
            else:
                records.append(result)

        outcome = self.store.reconcile(records, generation=generation)
        if outcome.status is CartStatus.STALE:
            return RefreshReport(failed=tuple(failed), stale=True)

        return RefreshReport(
            updated=outcome.updated,
            clamped=outcome.clamped,
            removed=outcome.removed,
            failed=tuple(failed),
        )

    def get_summary(self) -> dict:
        """Plain summary for display layers."""
        cart = self.store.cart
        if not cart.items:
            return {
                "is_empty": True,
                "item_count": 0,
                "total_items": 0,
                "total_price": 0.0,
            }

        return {
            "is_empty": False,
            "item_count": len(cart.items),
            "total_items": total_items(cart),
            "items": [
                {
                    "product_id": item.product_id,
                    "name": item.product.name,
                    "quantity": item.quantity,
                    "unit": item.product.unit,
                    "unit_price": to_float(item.unit_price),
                    "total": to_float(item.total_price),
                }
                for item in cart.items.values()
            ],
            "total_price": to_float(total_price(cart)),
        }
