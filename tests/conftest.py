"""Pytest configuration and fixtures for the Handoff Verify test suite.

Provides:
- Sample Shopify order payloads
- Fake Shopify / Roblox clients (AsyncMock with the real client's spec)
- An in-memory registration recorder
- An ASGI test client with the injected collaborators overridden
- httpx.AsyncClient patches for client unit tests
"""

import asyncio
import copy
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from handoff.core.deps import get_recorder, get_roblox_client, get_shopify_client
from handoff.integrations.roblox.client import RobloxClient
from handoff.integrations.shopify.client import ShopifyClient
from handoff.integrations.sinks.base import RegistrationRecorder
from handoff.main import app
from handoff.schemas.registration import RegistrationRecord

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
TEST_SHOP = "test-store.myshopify.com"
TEST_EMAIL = "test@shop.com"
ROBLOX_WEB_URL = "https://www.roblox.com"


# ---------------------------------------------------------------------------
# Shopify order payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_shopify_order() -> dict[str, Any]:
    """A paid, unfulfilled, unrefunded order as returned by the Admin API."""
    return {
        "id": 5550001222,
        "name": "#1222",
        "order_number": 1222,
        "email": TEST_EMAIL,
        "contact_email": TEST_EMAIL,
        "customer": {"first_name": "Test", "last_name": "Buyer", "email": TEST_EMAIL},
        "financial_status": "paid",
        "fulfillment_status": None,
        "cancelled_at": None,
        "created_at": "2024-05-01T12:00:00-04:00",
        "total_price": "100.00",
        "currency": "USD",
        "line_items": [
            {"title": "Robux Pack", "variant_title": "10,000 Robux", "quantity": 1},
            {"title": "Gift Note", "variant_title": "", "quantity": 2},
        ],
        "refunds": [],
    }


@pytest.fixture
def order_factory(sample_shopify_order: dict[str, Any]) -> Callable[..., dict[str, Any]]:
    """Build order payloads from the sample with overridden fields."""

    def _create(**overrides: Any) -> dict[str, Any]:
        order = copy.deepcopy(sample_shopify_order)
        order.update(overrides)
        return order

    return _create


# ---------------------------------------------------------------------------
# Fake outbound clients
# ---------------------------------------------------------------------------


@pytest.fixture
def orders_by_name() -> dict[str, dict[str, Any]]:
    """Orders the fake Shopify store answers for ``find_order_by_name``, keyed by name."""
    return {}


@pytest.fixture
def orders_by_email() -> dict[str, list[dict[str, Any]]]:
    """Orders the fake Shopify store answers for ``get_orders_by_email``."""
    return {}


@pytest.fixture
def fake_shopify(
    orders_by_name: dict[str, dict[str, Any]],
    orders_by_email: dict[str, list[dict[str, Any]]],
) -> AsyncMock:
    """ShopifyClient stand-in backed by the two dicts above."""
    client = AsyncMock(spec=ShopifyClient)

    async def _find(name: str, *, timeout: float | None = None) -> dict[str, Any] | None:
        return orders_by_name.get(name)

    async def _by_email(
        email: str, *, limit: int = 50, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        return orders_by_email.get(email, [])

    client.find_order_by_name.side_effect = _find
    client.get_orders_by_email.side_effect = _by_email
    return client


@pytest.fixture
def fake_roblox() -> AsyncMock:
    """RobloxClient stand-in; tests set return values per method."""
    client = AsyncMock(spec=RobloxClient)
    client.web_url = ROBLOX_WEB_URL
    client.get_users_by_usernames.return_value = []
    client.search_users.return_value = []
    client.get_avatar_headshot.return_value = None
    return client


class MemoryRecorder(RegistrationRecorder):
    """Recorder keeping registrations in a list, with an optional artificial delay."""

    name = "memory"

    def __init__(self, delay: float = 0.0, error: Exception | None = None) -> None:
        self.delay = delay
        self.error = error
        self.records: list[RegistrationRecord] = []

    async def _write(self, record: RegistrationRecord) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.records.append(record)


@pytest.fixture
def recorder() -> MemoryRecorder:
    return MemoryRecorder()


# ---------------------------------------------------------------------------
# ASGI client with injected collaborators overridden
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def client(
    fake_shopify: AsyncMock,
    fake_roblox: AsyncMock,
    recorder: MemoryRecorder,
) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; no request leaves the process."""
    app.dependency_overrides[get_shopify_client] = lambda: fake_shopify
    app.dependency_overrides[get_roblox_client] = lambda: fake_roblox
    app.dependency_overrides[get_recorder] = lambda: recorder

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def plain_client() -> AsyncGenerator[AsyncClient, None]:
    """Minimal async test client with NO dependency overrides."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ---------------------------------------------------------------------------
# httpx patches for client unit tests
# ---------------------------------------------------------------------------


def make_response(
    status_code: int = 200,
    json_data: Any = None,
    text: str = "",
) -> MagicMock:
    """A MagicMock shaped like an httpx.Response."""
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.json.return_value = json_data if json_data is not None else {}
    response.text = text
    if response.is_success:
        response.raise_for_status = MagicMock()
    else:
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            f"HTTP {status_code}", request=MagicMock(), response=response
        )
    return response


def _patch_async_client(target: str) -> Generator[AsyncMock, None, None]:
    with patch(target) as mock_class:
        mock_client = AsyncMock()
        mock_class.return_value.__aenter__.return_value = mock_client
        mock_client.get.return_value = make_response(json_data={})
        mock_client.post.return_value = make_response(json_data={})
        mock_client.constructor = mock_class
        yield mock_client


@pytest.fixture
def mock_shopify_http() -> Generator[AsyncMock, None, None]:
    """Patch httpx.AsyncClient inside the Shopify client module."""
    yield from _patch_async_client("handoff.integrations.shopify.client.httpx.AsyncClient")


@pytest.fixture
def mock_roblox_http() -> Generator[AsyncMock, None, None]:
    """Patch httpx.AsyncClient inside the Roblox client module."""
    yield from _patch_async_client("handoff.integrations.roblox.client.httpx.AsyncClient")


@pytest.fixture
def mock_sink_http() -> Generator[AsyncMock, None, None]:
    """Patch httpx.AsyncClient used by the HTTP-based registration sinks."""
    yield from _patch_async_client("handoff.integrations.sinks.base.httpx.AsyncClient")
