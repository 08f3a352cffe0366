"""Session lifecycle hooks for the cart."""
from typing import Optional

from cartcore.cart.persistence import CartPersistence
from cartcore.cart.store import CartStore
from cartcore.db import InMemoryKeyValueStore, KeyValueStore, RedisKeys
from cartcore.logging import get_logger, sanitize_string_for_logging

logger = get_logger(__name__)


class CartSession:
    """
    Binds a cart store to a signed-in session.

    The host app calls ``start()`` after login / app launch and
    ``on_logout()`` or ``on_checkout_complete()`` when the session's cart
    must be emptied.
    """

    def __init__(self, store: CartStore):
        self.store = store

    @classmethod
    def create(cls, session_id: str, kv: Optional[KeyValueStore] = None, **store_kwargs) -> "CartSession":
        """Build a persisted store keyed by session id."""
        persistence = CartPersistence(kv if kv is not None else InMemoryKeyValueStore(), RedisKeys.cart_key(session_id))
        return cls(CartStore(persistence=persistence, **store_kwargs))

    def start(self) -> None:
        cart = self.store.hydrate()
        key = self.store.persistence.key if self.store.persistence else None
        logger.info(f"Cart session started ({sanitize_string_for_logging(key)}), {len(cart)} line(s)")

    def on_logout(self) -> None:
        logger.info("Clearing cart on logout")
        self.store.clear()

    def on_checkout_complete(self) -> None:
        logger.info("Clearing cart after checkout")
        self.store.clear()
