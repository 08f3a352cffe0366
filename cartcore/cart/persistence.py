"""Best-effort cart persistence over a key-value byte store."""
import json

from cartcore.db import KeyValueStore
from cartcore.logging import get_logger, sanitize_string_for_logging
from .models import Cart

logger = get_logger(__name__)


class CartPersistence:
    """
    Serializes the cart as JSON under a single key.

    Never raises: a failed write returns False, an unreadable or corrupt
    value loads as an empty cart.
    """

    def __init__(self, kv: KeyValueStore, key: str):
        self.kv = kv
        self.key = key

    @staticmethod
    def encode(cart: Cart) -> bytes:
        return json.dumps(cart.to_dict(), separators=(",", ":")).encode("utf-8")

    @staticmethod
    def decode(raw: bytes) -> Cart:
        return Cart.from_dict(json.loads(raw.decode("utf-8")))

    def save(self, cart: Cart) -> bool:
        try:
            self.kv.set(self.key, self.encode(cart))
            return True
        except Exception as e:
            logger.error(f"Failed to persist cart {sanitize_string_for_logging(self.key)}: {e}")
            return False

    def load(self) -> Cart:
        try:
            raw = self.kv.get(self.key)
        except Exception as e:
            logger.error(f"Failed to read cart {sanitize_string_for_logging(self.key)}: {e}")
            return Cart()

        if not raw:
            return Cart()

        try:
            return self.decode(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            # Corrupted data - start from an empty cart
            logger.warning(f"Corrupted cart data for {sanitize_string_for_logging(self.key)}: {e}")
            return Cart()
