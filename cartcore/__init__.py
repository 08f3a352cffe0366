"""
Cartcore Module

Client-held shopping cart for the marketplace app:
- cart: store, selectors, publisher, persistence, fetch-then-mutate service
- services: product catalog client, preference events, money helpers
- db: key-value backends (in-memory, Upstash Redis)
- session: logout / checkout-complete lifecycle

Note: Imports are lazy so that importing a leaf module does not pull
in httpx or upstash_redis.
"""

__all__ = [
    "CartStore",
    "CartSelectors",
    "CartService",
    "CartSession",
]


def __getattr__(name):
    """Lazy attribute access for the public entry points."""
    if name == "CartStore":
        from cartcore.cart.store import CartStore
        return CartStore
    if name == "CartSelectors":
        from cartcore.cart.selectors import CartSelectors
        return CartSelectors
    if name == "CartService":
        from cartcore.cart.service import CartService
        return CartService
    if name == "CartSession":
        from cartcore.session import CartSession
        return CartSession
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
