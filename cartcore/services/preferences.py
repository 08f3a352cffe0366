"""
Preference Events - fire-and-forget cart analytics.

The cart store calls the logger synchronously with an event dict such as
{"type": "add_to_cart", "productId": "...", "category": "...", "quantity": 2}.
Delivery is scheduled on the running event loop; failures are logged
and never reach the cart.
"""

import asyncio
from typing import Any, Dict, Optional, Set

import httpx

from cartcore import config
from cartcore.logging import get_logger

logger = get_logger(__name__)


class PreferenceEventLogger:
    """POSTs cart events to /preferences/events in the background."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url if base_url is not None else config.CATALOG_API_URL).rstrip("/")
        self.token = token if token is not None else config.CATALOG_API_TOKEN
        self._client = client
        self._pending: Set[asyncio.Task] = set()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._client = httpx.AsyncClient(base_url=self.base_url, headers=headers, timeout=5.0)
        return self._client

    async def log_event(self, event: Dict[str, Any]) -> bool:
        """Send one event; returns False instead of raising on failure."""
        payload = {k: v for k, v in event.items() if v is not None}
        try:
            response = await self.client.post("/preferences/events", json=payload)
            response.raise_for_status()
            return True
        except httpx.HTTPError as e:
            logger.warning(f"Preference log failed: {e}")
            return False

    def __call__(self, event: Dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug(f"No running event loop, dropping preference event {event.get('type')}")
            return
        task = loop.create_task(self.log_event(event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for in-flight events (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._client is not None:
            await self._client.aclose()
            self._client = None
