"""
Tests for preference event logging
"""

import json

import httpx
import pytest

from cartcore.cart import CartStore
from cartcore.services.preferences import PreferenceEventLogger


def make_logger(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://api.test.local")
    return PreferenceEventLogger(base_url="https://api.test.local", client=client)


@pytest.mark.asyncio
async def test_cart_events_posted_in_background():
    posted = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/preferences/events"
        posted.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    event_logger = make_logger(handler)
    store = CartStore(event_logger=event_logger)

    store.add_to_cart({"id": "p1", "price": 1, "availableQuantity": 5}, 2)
    store.remove_from_cart("p1")
    await event_logger.drain()

    assert sorted(posted, key=lambda event: event["type"]) == [
        {"type": "add_to_cart", "productId": "p1", "quantity": 2},
        {"type": "remove_from_cart", "productId": "p1"},
    ]


@pytest.mark.asyncio
async def test_failed_post_returns_false():
    event_logger = make_logger(lambda request: httpx.Response(500))

    assert await event_logger.log_event({"type": "add_to_cart", "productId": "p1"}) is False


def test_without_event_loop_events_are_dropped():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200)

    event_logger = make_logger(handler)
    store = CartStore(event_logger=event_logger)

    result = store.add_to_cart({"id": "p1", "price": 1, "availableQuantity": 5}, 1)

    assert result.ok
    assert calls == []
