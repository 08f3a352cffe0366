"""
Storage Module - Key-value backends for cart persistence

Provides:
- KeyValueStore protocol (get/set of bytes), identical on every platform
- InMemoryKeyValueStore for tests and ephemeral sessions
- RedisKeyValueStore backed by Upstash Redis (REST)
- Key prefixes and TTL constants
"""

import threading
from typing import Dict, Optional, Protocol

from upstash_redis import Redis

from cartcore import config
from cartcore.errors import ERROR_REDIS_NOT_CONFIGURED, ERROR_STORAGE_UNAVAILABLE, PersistenceError


class KeyValueStore(Protocol):
    """Byte store the persistence adapter writes to."""

    def get(self, key: str) -> Optional[bytes]:
        ...

    def set(self, key: str, value: bytes) -> None:
        ...


class InMemoryKeyValueStore:
    """Process-local store; contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        self._data: Dict[str, bytes] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)


class TTL:
    """Time-to-live constants (in seconds)."""

    CART = config.CART_TTL_SECONDS


class RedisKeyValueStore:
    """
    Upstash Redis store.

    Values are stored as UTF-8 text since the REST API is string based.
    Carts expire after ``TTL.CART`` seconds unless ``ttl_seconds`` says
    otherwise; a falsy value keeps them forever. Client errors are
    re-raised as PersistenceError.
    """

    def __init__(self, client: Optional[Redis] = None, ttl_seconds: Optional[int] = TTL.CART):
        self._client = client
        self.ttl_seconds = ttl_seconds

    @property
    def client(self) -> Redis:
        """Get Redis client (lazy initialization)."""
        if self._client is None:
            self._client = get_redis_sync()
        return self._client

    def get(self, key: str) -> Optional[bytes]:
        try:
            value = self.client.get(key)
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e
        if value is None:
            return None
        if isinstance(value, bytes):
            return value
        return str(value).encode("utf-8")

    def set(self, key: str, value: bytes) -> None:
        try:
            if self.ttl_seconds:
                self.client.set(key, value.decode("utf-8"), ex=self.ttl_seconds)
            else:
                self.client.set(key, value.decode("utf-8"))
        except PersistenceError:
            raise
        except Exception as e:
            raise PersistenceError(f"{ERROR_STORAGE_UNAVAILABLE}: {e}") from e


_sync_redis_client: Optional[Redis] = None


def get_redis_sync() -> Redis:
    """
    Get sync Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _sync_redis_client

    if _sync_redis_client is None:
        if not config.UPSTASH_REDIS_REST_URL or not config.UPSTASH_REDIS_REST_TOKEN:
            raise PersistenceError(ERROR_REDIS_NOT_CONFIGURED)
        _sync_redis_client = Redis(url=config.UPSTASH_REDIS_REST_URL, token=config.UPSTASH_REDIS_REST_TOKEN)

    return _sync_redis_client


class RedisKeys:
    """Key prefixes for persisted cart data."""

    CART = "cart:"  # cart:{session_id}

    @staticmethod
    def cart_key(session_id: str) -> str:
        return f"{RedisKeys.CART}{session_id}"
