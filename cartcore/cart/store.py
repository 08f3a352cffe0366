"""Cart store: sole owner of cart state and its quantity invariants."""
import threading
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from cartcore.errors import (
    ERROR_INVALID_PRODUCT,
    ERROR_INVALID_PRODUCT_ID,
    ERROR_INVALID_QUANTITY,
    ERROR_INVALID_QUANTITY_TYPE,
    ERROR_NOT_IN_CART,
    ERROR_PRODUCT_OUT_OF_STOCK,
    ERROR_STALE_CART,
    InvalidCartInput,
)
from cartcore.logging import get_logger, sanitize_id_for_logging
from cartcore.services.models import ProductRecord
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
from .publisher import CartListener, CartPublisher

logger = get_logger(__name__)

ProductInput = Union[ProductRecord, Mapping[str, Any]]
CartEvent = Dict[str, Any]
EventLogger = Callable[[CartEvent], None]


def _coerce_product(product: ProductInput) -> ProductRecord:
    if isinstance(product, ProductRecord):
        return product
    if isinstance(product, Mapping):
        try:
            return ProductRecord.model_validate(dict(product))
        except ValidationError as e:
            raise InvalidCartInput(f"{ERROR_INVALID_PRODUCT}: {e}") from e
    raise InvalidCartInput(ERROR_INVALID_PRODUCT)


def _require_product_id(product_id: Any) -> str:
    if not isinstance(product_id, str) or not product_id:
        raise InvalidCartInput(ERROR_INVALID_PRODUCT_ID)
    return product_id


def _require_int(quantity: Any) -> int:
    # bool is an int subclass; a stray True must not mean "1"
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidCartInput(ERROR_INVALID_QUANTITY_TYPE)
    return quantity


def _require_positive(quantity: Any) -> int:
    quantity = _require_int(quantity)
    if quantity < 1:
        raise InvalidCartInput(ERROR_INVALID_QUANTITY)
    return quantity


class CartStore:
    """
    In-memory cart with optional persistence and change notification.

    All mutations are synchronous. State transitions happen under a lock
    and produce a new immutable ``Cart``; persistence, listeners and the
    preference event logger run after the lock is released. Saves are
    serialized separately and never write an older snapshot over a newer one.

    Quantities are clamped against the most recently observed stock for
    each product. Stock is learned from the product records passed into
    ``add_to_cart``, ``update_quantity``, ``update_cart_item`` and
    ``reconcile``; a product whose stock was never observed is not
    clamped by ``update_quantity``.

    Passing ``generation`` (read from ``store.generation`` before an async
    catalog call) turns the mutation into a no-op with status ``stale``
    if the cart was cleared in between.

    Usage:
        store = CartStore(persistence=CartPersistence(kv, RedisKeys.cart_key(session_id)))
        store.hydrate()
        unsubscribe = store.subscribe(lambda cart: render(cart))
        result = store.add_to_cart(product, 2)
        if result.status is CartStatus.OUT_OF_STOCK:
            show_toast("Out of stock")
    """

    def __init__(
        self,
        publisher: Optional[CartPublisher] = None,
        persistence: Optional[CartPersistence] = None,
        event_logger: Optional[EventLogger] = None,
    ):
        self.publisher = publisher if publisher is not None else CartPublisher()
        self.persistence = persistence
        self.event_logger = event_logger
        self._cart = Cart()
        self._stock: Dict[str, InventorySnapshot] = {}
        self._lock = threading.RLock()
        self._save_lock = threading.Lock()
        self._saved_version = -1

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def generation(self) -> int:
        return self._cart.generation

    def is_in_cart(self, product_id: str) -> bool:
        return product_id in self._cart.items

    def get_cart_item(self, product_id: str) -> Optional[CartLineItem]:
        return self._cart.items.get(product_id)

    def known_stock(self, product_id: str) -> Optional[InventorySnapshot]:
        return self._stock.get(product_id)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        return self.publisher.subscribe(listener)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_to_cart(
        self,
        product: ProductInput,
        quantity: int = 1,
        *,
        generation: Optional[int] = None,
    ) -> MutationResult:
        """
        Add units of a product, clamped to its available stock.

        Returns status ``out_of_stock`` when the record reports no stock.
        Nothing is added then, and a line already in the cart is removed
        since it can no longer be fulfilled.
        """
        record = _coerce_product(product)
        quantity = _require_positive(quantity)

        with self._lock:
            if self._is_stale(generation):
                return MutationResult(CartStatus.STALE, self.get_cart_item(record.id))

            snapshot = record.to_snapshot()
            self._stock[record.id] = snapshot
            existing = self._cart.items.get(record.id)
            available = snapshot.available_quantity
            items = dict(self._cart.items)

            if available <= 0:
                logger.info(f"{ERROR_PRODUCT_OUT_OF_STOCK}: {sanitize_id_for_logging(record.id)}")
                if existing is None:
                    return MutationResult(CartStatus.OUT_OF_STOCK)
                del items[record.id]
                cart = self._commit(items)
                status, item, clamped, events = CartStatus.OUT_OF_STOCK, None, True, []
            else:
                current = existing.quantity if existing else 0
                requested = current + quantity
                new_quantity = min(requested, available)
                clamped = new_quantity < requested

                if existing is not None:
                    if new_quantity == existing.quantity:
                        return MutationResult(CartStatus.UNCHANGED, existing, clamped)
                    item = existing.with_quantity(new_quantity)
                    status = CartStatus.UPDATED
                else:
                    item = CartLineItem(
                        product_id=record.id,
                        quantity=new_quantity,
                        unit_price=record.price,
                        product=ProductSnapshot.from_record(record),
                    )
                    status = CartStatus.ADDED

                items[record.id] = item
                cart = self._commit(items)
                events = [{
                    "type": "add_to_cart",
                    "productId": record.id,
                    "category": record.category,
                    "quantity": quantity,
                }]

        self._after_commit(cart, events)
        return MutationResult(status, item, clamped)

    def update_quantity(
        self,
        product_id: str,
        quantity: int,
        *,
        product: Optional[ProductInput] = None,
        generation: Optional[int] = None,
    ) -> MutationResult:
        """
        Set the quantity of a line already in the cart.

        ``quantity <= 0`` removes the line. A product that is not in the
        cart is left alone and reported as ``not_in_cart``; no line is
        created. When ``product`` is given its stock is recorded first.
        """
        product_id = _require_product_id(product_id)
        quantity = _require_int(quantity)
        record = _coerce_product(product) if product is not None else None
        if record is not None and record.id != product_id:
            raise InvalidCartInput(f"product record {record.id!r} does not match {product_id!r}")

        if quantity <= 0:
            if record is not None:
                with self._lock:
                    if generation is None or generation == self._cart.generation:
                        self._stock[product_id] = record.to_snapshot()
            return self.remove_from_cart(product_id, generation=generation)

        with self._lock:
            if self._is_stale(generation):
                return MutationResult(CartStatus.STALE, self.get_cart_item(product_id))

            if record is not None:
                self._stock[product_id] = record.to_snapshot()

            existing = self._cart.items.get(product_id)
            if existing is None:
                logger.debug(f"{ERROR_NOT_IN_CART}: {sanitize_id_for_logging(product_id)}")
                return MutationResult(CartStatus.NOT_IN_CART)

            target = quantity
            known = self._stock.get(product_id)
            if known is not None and target > known.available_quantity:
                target = max(known.available_quantity, 0)
            clamped = target < quantity

            items = dict(self._cart.items)
            if target <= 0:
                del items[product_id]
                item = None
                status = CartStatus.REMOVED
            elif target == existing.quantity:
                return MutationResult(CartStatus.UNCHANGED, existing, clamped)
            else:
                item = existing.with_quantity(target)
                items[product_id] = item
                status = CartStatus.UPDATED
            cart = self._commit(items)

        self._after_commit(cart)
        return MutationResult(status, item, clamped)

    def update_cart_item(
        self,
        product_id: str,
        product: ProductInput,
        *,
        generation: Optional[int] = None,
    ) -> MutationResult:
        """Refresh a line's display snapshot, price and stock from a fresh record."""
        product_id = _require_product_id(product_id)
        record = _coerce_product(product)
        if record.id != product_id:
            raise InvalidCartInput(f"product record {record.id!r} does not match {product_id!r}")

        with self._lock:
            if self._is_stale(generation):
                return MutationResult(CartStatus.STALE, self.get_cart_item(product_id))

            items = dict(self._cart.items)
            status, item, clamped = self._apply_record(items, record)
            if status not in (CartStatus.UPDATED, CartStatus.REMOVED):
                return MutationResult(status, item, clamped)
            cart = self._commit(items)

        self._after_commit(cart)
        return MutationResult(status, item, clamped)

    def reconcile(
        self,
        products: Iterable[ProductInput],
        *,
        generation: Optional[int] = None,
    ) -> ReconcileResult:
        """
        Apply fresh product records to every matching line in one commit.

        Records for products not in the cart only update stock knowledge.
        Lines whose fresh stock is zero are removed.
        """
        records = [_coerce_product(p) for p in products]

        updated: List[str] = []
        clamped: List[str] = []
        removed: List[str] = []

        with self._lock:
            if self._is_stale(generation):
                return ReconcileResult(CartStatus.STALE)

            items = dict(self._cart.items)
            for record in records:
                status, _, was_clamped = self._apply_record(items, record)
                if status is CartStatus.UPDATED:
                    updated.append(record.id)
                elif status is CartStatus.REMOVED:
                    removed.append(record.id)
                if was_clamped:
                    clamped.append(record.id)

            if not updated and not removed:
                return ReconcileResult(CartStatus.UNCHANGED)
            cart = self._commit(items)

        if removed:
            logger.info(f"Reconcile removed {len(removed)} sold-out cart line(s)")
        self._after_commit(cart)
        return ReconcileResult(CartStatus.UPDATED, tuple(updated), tuple(clamped), tuple(removed))

    def remove_from_cart(self, product_id: str, *, generation: Optional[int] = None) -> MutationResult:
        """Remove a line entirely; removing an absent product is a no-op."""
        product_id = _require_product_id(product_id)

        with self._lock:
            if self._is_stale(generation):
                return MutationResult(CartStatus.STALE, self.get_cart_item(product_id))

            existing = self._cart.items.get(product_id)
            if existing is None:
                return MutationResult(CartStatus.NOT_IN_CART)

            items = dict(self._cart.items)
            del items[product_id]
            cart = self._commit(items)

        self._after_commit(cart, [{
            "type": "remove_from_cart",
            "productId": product_id,
            "category": existing.product.category,
        }])
        return MutationResult(CartStatus.REMOVED)

    def clear(self) -> None:
        """Empty the cart and forget observed stock (logout, checkout complete)."""
        with self._lock:
            self._stock.clear()
            cart = Cart(
                version=self._cart.version + 1,
                generation=self._cart.generation + 1,
            )
            self._cart = cart

        self._after_commit(cart)

    def hydrate(self) -> Cart:
        """Replace the in-memory cart with the persisted one and notify."""
        if self.persistence is None:
            return self._cart

        loaded = self.persistence.load()
        with self._lock:
            cart = Cart(
                items=loaded.items,
                version=self._cart.version + 1,
                generation=self._cart.generation,
            )
            self._cart = cart

        logger.info(f"Cart hydrated with {len(cart)} line(s)")
        self.publisher.publish(cart)
        return cart

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_stale(self, generation: Optional[int]) -> bool:
        if generation is None or generation == self._cart.generation:
            return False
        logger.info(f"{ERROR_STALE_CART}, dropping write (generation {generation} != {self._cart.generation})")
        return True

    def _apply_record(
        self,
        items: Dict[str, CartLineItem],
        record: ProductRecord,
    ) -> Tuple[CartStatus, Optional[CartLineItem], bool]:
        """Apply one fresh record to ``items`` in place. Caller holds the lock."""
        self._stock[record.id] = record.to_snapshot()

        existing = items.get(record.id)
        if existing is None:
            return CartStatus.NOT_IN_CART, None, False

        quantity = min(existing.quantity, max(record.available_quantity, 0))
        clamped = quantity < existing.quantity
        if quantity <= 0:
            del items[record.id]
            return CartStatus.REMOVED, None, True

        item = replace(
            existing,
            quantity=quantity,
            unit_price=record.price,
            product=ProductSnapshot.from_record(record),
        )
        if item == existing:
            return CartStatus.UNCHANGED, existing, False
        items[record.id] = item
        return CartStatus.UPDATED, item, clamped

    def _commit(self, items: Dict[str, CartLineItem]) -> Cart:
        cart = Cart(
            items=items,
            version=self._cart.version + 1,
            generation=self._cart.generation,
        )
        self._cart = cart
        return cart

    def _after_commit(self, cart: Cart, events: Iterable[CartEvent] = ()) -> None:
        if self.persistence is not None:
            self._persist(cart)
        self.publisher.publish(cart)
        for event in events:
            self._emit(event)

    def _emit(self, event: CartEvent) -> None:
        if self.event_logger is None:
            return
        try:
            self.event_logger(event)
        except Exception as e:
            logger.warning(f"Preference log failed: {e}")

    def _persist(self, cart: Cart) -> None:
        # Saves from racing threads must land in commit order; a snapshot
        # older than the last one written is skipped.
        with self._save_lock:
            if cart.version <= self._saved_version:
                return
            self.persistence.save(cart)
            self._saved_version = cart.version
