"""
Product Catalog Client

Read-only access to authoritative product and stock records:
- get_by_id: GET /products/{id} -> {"product": {...}}
- get_all:   GET /products?...  -> {"products": [...], "pagination": {...}}

Transport errors and 5xx responses are retried with tenacity; anything
that still fails surfaces as CatalogFetchError. The cart never retries.
"""

from typing import Any, Dict, List, Mapping, Optional, Protocol

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from cartcore import config
from cartcore.errors import (
    ERROR_CATALOG_NOT_CONFIGURED,
    ERROR_CATALOG_UNAVAILABLE,
    ERROR_PRODUCT_NOT_FOUND,
    CatalogFetchError,
)
from cartcore.logging import get_logger, sanitize_id_for_logging
from cartcore.services.models import ProductRecord

logger = get_logger(__name__)


class ProductCatalog(Protocol):
    """Catalog lookup the cart service depends on."""

    async def get_by_id(self, product_id: str) -> ProductRecord:
        ...

    async def get_all(self, filters: Optional[Mapping[str, Any]] = None) -> List[ProductRecord]:
        ...


class _ServerError(Exception):
    """5xx response; retried."""

    def __init__(self, status_code: int):
        super().__init__(f"catalog returned {status_code}")
        self.status_code = status_code


def _clean_params(filters: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if not filters:
        return {}
    params = {}
    for key, value in filters.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        params[key] = value
    return params


class HttpProductCatalog:
    """
    httpx-based catalog client.

    Usage:
        async with HttpProductCatalog() as catalog:
            product = await catalog.get_by_id("p1")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
        wait: Optional[wait_base] = None,
    ):
        self.base_url = (base_url if base_url is not None else config.CATALOG_API_URL).rstrip("/")
        self.token = token if token is not None else config.CATALOG_API_TOKEN
        self.timeout = timeout if timeout is not None else config.CATALOG_TIMEOUT_SECONDS
        self.max_retries = max(1, max_retries if max_retries is not None else config.CATALOG_MAX_RETRIES)
        self.wait = wait if wait is not None else wait_exponential(multiplier=0.5, min=0.5, max=5)
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "HttpProductCatalog":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        """Get HTTP client (lazy initialization)."""
        if self._client is None:
            if not self.base_url:
                raise CatalogFetchError(ERROR_CATALOG_NOT_CONFIGURED)
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None, product_id: Optional[str] = None) -> Any:
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=self.wait,
                retry=retry_if_exception_type((httpx.TransportError, _ServerError)),
                reraise=True,
            ):
                with attempt:
                    response = await self.client.get(path, params=params)
                    if response.status_code >= 500:
                        raise _ServerError(response.status_code)
        except _ServerError as e:
            logger.error(f"Catalog request {path} failed with {e.status_code}")
            raise CatalogFetchError(ERROR_CATALOG_UNAVAILABLE, product_id, e.status_code) from e
        except httpx.TransportError as e:
            logger.error(f"Catalog request {path} failed: {e}")
            raise CatalogFetchError(f"{ERROR_CATALOG_UNAVAILABLE}: {e}", product_id) from e

        if response.status_code == 404:
            raise CatalogFetchError(ERROR_PRODUCT_NOT_FOUND, product_id, 404)
        if response.status_code >= 400:
            raise CatalogFetchError(f"Catalog request failed ({response.status_code})", product_id, response.status_code)

        try:
            return response.json()
        except ValueError as e:
            raise CatalogFetchError(f"Invalid catalog response: {e}", product_id, response.status_code) from e

    async def get_by_id(self, product_id: str) -> ProductRecord:
        """Fetch a single product with its current stock."""
        data = await self._get_json(f"/products/{product_id}", product_id=product_id)
        payload = data.get("product", data) if isinstance(data, dict) else data
        try:
            return ProductRecord.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Malformed product payload for {sanitize_id_for_logging(product_id)}: {e}")
            raise CatalogFetchError(f"Invalid product payload: {e}", product_id) from e

    async def get_all(self, filters: Optional[Mapping[str, Any]] = None) -> List[ProductRecord]:
        """List products; filters map to query parameters (None values dropped)."""
        data = await self._get_json("/products", params=_clean_params(filters))
        rows = data.get("products", []) if isinstance(data, dict) else data
        products = []
        for row in rows or []:
            try:
                products.append(ProductRecord.model_validate(row))
            except ValidationError as e:
                logger.warning(f"Skipping malformed product in listing: {e}")
        return products
