"""Pytest configuration and fixtures"""
import os
from typing import Dict, List, Optional

import pytest

# Set test environment variables
os.environ.setdefault("CATALOG_API_URL", "https://api.test.local")
os.environ.setdefault("CATALOG_API_TOKEN", "test_token")
os.environ.setdefault("UPSTASH_REDIS_REST_URL", "https://redis.test.local")
os.environ.setdefault("UPSTASH_REDIS_REST_TOKEN", "test_redis_token")

from cartcore.cart import CartPersistence, CartSelectors, CartStore  # noqa: E402
from cartcore.db import InMemoryKeyValueStore  # noqa: E402
from cartcore.errors import CatalogFetchError, PersistenceError  # noqa: E402
from cartcore.services.models import ProductRecord  # noqa: E402


class FakeCatalog:
    """In-memory ProductCatalog; ids listed in ``failing`` raise CatalogFetchError."""

    def __init__(self, products: Optional[Dict[str, dict]] = None):
        self.products: Dict[str, dict] = dict(products or {})
        self.failing: set = set()
        self.calls: List[str] = []
        self.before_return = None

    async def get_by_id(self, product_id: str) -> ProductRecord:
        self.calls.append(product_id)
        if self.before_return is not None:
            self.before_return(product_id)
        if product_id in self.failing or product_id not in self.products:
            raise CatalogFetchError("Product not found", product_id, 404)
        return ProductRecord.model_validate(self.products[product_id])

    async def get_all(self, filters=None) -> List[ProductRecord]:
        return [ProductRecord.model_validate(p) for p in self.products.values()]


class FailingKeyValueStore:
    """Key-value store whose every call fails."""

    def get(self, key: str):
        raise PersistenceError("storage offline")

    def set(self, key: str, value: bytes) -> None:
        raise PersistenceError("storage offline")


@pytest.fixture
def sample_product():
    """Product payload as served by the catalog API"""
    return {
        "_id": "prod-123",
        "name": "MS Round Bar 12mm",
        "sku": "MS-RB-12",
        "category": "raw-material",
        "price": {"amount": 250.5, "currency": "INR", "unit": "kg"},
        "availableQuantity": 40,
        "minStockQuantity": 10,
        "images": [{"url": "https://cdn.test.local/rb12.png"}],
        "visibility": "public",
        "status": "active",
    }


@pytest.fixture
def kv():
    return InMemoryKeyValueStore()


@pytest.fixture
def persistence(kv):
    return CartPersistence(kv, "cart:session-1")


@pytest.fixture
def store():
    return CartStore()


@pytest.fixture
def persisted_store(persistence):
    return CartStore(persistence=persistence)


@pytest.fixture
def selectors(store):
    return CartSelectors(store)


@pytest.fixture
def catalog():
    return FakeCatalog({
        "p1": {"id": "p1", "name": "Hex Bolt M8", "price": 10, "availableQuantity": 5},
        "p2": {"id": "p2", "name": "Washer", "price": 2.5, "availableQuantity": 100},
        "p3": {"id": "p3", "name": "Bearing 6204", "price": 180, "availableQuantity": 3},
    })


@pytest.fixture
def failing_kv():
    return FailingKeyValueStore()
