"""
Common Error Constants and Exceptions

Centralized error messages to avoid string duplication (SonarQube S1192).
Benign cart conditions (out of stock, not in cart) are reported through
mutation statuses, not exceptions.
"""

# Input errors
ERROR_INVALID_PRODUCT = "product must be a ProductRecord or a product mapping"
ERROR_INVALID_PRODUCT_ID = "product_id must be a non-empty string"
ERROR_INVALID_QUANTITY = "quantity must be a positive integer"
ERROR_INVALID_QUANTITY_TYPE = "quantity must be an integer"

# Cart conditions
ERROR_PRODUCT_OUT_OF_STOCK = "Product out of stock"
ERROR_NOT_IN_CART = "Product not in cart"
ERROR_STALE_CART = "Cart was cleared while the request was in flight"

# Catalog errors
ERROR_PRODUCT_NOT_FOUND = "Product not found"
ERROR_CATALOG_UNAVAILABLE = "Catalog service unavailable"
ERROR_CATALOG_NOT_CONFIGURED = "CATALOG_API_URL must be set"

# Storage errors
ERROR_STORAGE_UNAVAILABLE = "Cart storage unavailable"
ERROR_REDIS_NOT_CONFIGURED = "UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set"


class CartError(Exception):
    """Base class for cartcore errors."""


class InvalidCartInput(CartError, ValueError):
    """Raised when a cart method receives malformed arguments."""


class CatalogFetchError(CartError):
    """Raised by the catalog client when a product cannot be fetched."""

    def __init__(self, message: str, product_id: str | None = None, status_code: int | None = None):
        super().__init__(message)
        self.product_id = product_id
        self.status_code = status_code


class PersistenceError(CartError):
    """Raised by key-value backends; never escapes a cart mutation."""
