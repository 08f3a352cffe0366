"""Change notification for cart consumers."""
import threading
from typing import Callable, List

from cartcore.logging import get_logger
from .models import Cart

logger = get_logger(__name__)

CartListener = Callable[[Cart], None]


class _Subscription:
    __slots__ = ("listener", "active")

    def __init__(self, listener: CartListener):
        self.listener = listener
        self.active = True


class CartPublisher:
    """
    Ordered listener registry.

    - Listeners run in subscription order, synchronously.
    - A listener subscribed during a notification only sees later ones.
    - A listener unsubscribed during a notification is not called again.
    - A failing listener is logged and the rest still run.
    """

    def __init__(self):
        self._subscriptions: List[_Subscription] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def subscribe(self, listener: CartListener) -> Callable[[], None]:
        """Register a listener; returns an idempotent disposer."""
        if not callable(listener):
            raise TypeError("listener must be callable")

        subscription = _Subscription(listener)
        with self._lock:
            self._subscriptions.append(subscription)

        def unsubscribe() -> None:
            with self._lock:
                if not subscription.active:
                    return
                subscription.active = False
                self._subscriptions.remove(subscription)

        return unsubscribe

    def publish(self, cart: Cart) -> None:
        with self._lock:
            snapshot = tuple(self._subscriptions)

        for subscription in snapshot:
            if not subscription.active:
                continue
            try:
                subscription.listener(cart)
            except Exception as e:
                logger.error(f"Cart listener {subscription.listener!r} failed: {e}", exc_info=True)
