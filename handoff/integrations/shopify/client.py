"""Shopify Admin API client using httpx."""

import logging
from typing import Any

import httpx

from handoff.core.config import settings

logger = logging.getLogger(__name__)

ORDER_FIELDS = ",".join(
    [
        "id",
        "name",
        "order_number",
        "email",
        "contact_email",
        "customer",
        "financial_status",
        "fulfillment_status",
        "cancelled_at",
        "created_at",
        "total_price",
        "currency",
        "line_items",
        "refunds",
    ]
)


def _orders(response: httpx.Response) -> list[dict[str, Any]]:
    payload = response.json()
    if not isinstance(payload, dict):
        raise ValueError("Unexpected Shopify response: body is not a JSON object")
    orders = payload.get("orders") or []
    if not isinstance(orders, list):
        raise ValueError("Unexpected Shopify response: orders is not a list")
    return [order for order in orders if isinstance(order, dict)]


class ShopifyClient:
    """Async client for the Shopify Admin REST API (read-only order queries).

    Each call opens its own ``httpx.AsyncClient``; errors are raised to the
    caller (``httpx.HTTPStatusError`` for non-2xx, ``httpx.TransportError``
    for network failures and timeouts).
    """

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        *,
        api_version: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.shop_domain = shop_domain
        self.base_url = (
            f"https://{shop_domain}/admin/api/{api_version or settings.shopify_api_version}"
        )
        self.headers = {
            "X-Shopify-Access-Token": access_token,
            "Content-Type": "application/json",
        }
        self.timeout = timeout or settings.http_timeout_seconds

    async def find_order_by_name(
        self, name: str, *, timeout: float | None = None
    ) -> dict[str, Any] | None:
        """Return the best order whose display name matches ``name``, if any."""
        params = {"name": name, "status": "any", "limit": 1, "fields": ORDER_FIELDS}
        async with httpx.AsyncClient(
            headers=self.headers, timeout=timeout or self.timeout
        ) as client:
            response = await client.get(f"{self.base_url}/orders.json", params=params)
            response.raise_for_status()
            orders = _orders(response)
            return orders[0] if orders else None

    async def get_orders_by_email(
        self, email: str, *, limit: int = 50, timeout: float | None = None
    ) -> list[dict[str, Any]]:
        """Fetch the most recent orders placed with ``email`` (one page)."""
        params = {
            "email": email,
            "status": "any",
            "limit": min(limit, 250),
            "fields": ORDER_FIELDS,
        }
        async with httpx.AsyncClient(
            headers=self.headers, timeout=timeout or self.timeout
        ) as client:
            response = await client.get(f"{self.base_url}/orders.json", params=params)
            response.raise_for_status()
            return _orders(response)


def build_shopify_client() -> ShopifyClient | None:
    """Client for the configured shop, or None when credentials are missing."""
    if not settings.shopify_configured:
        logger.warning("Shopify credentials not configured; order verification disabled")
        return None
    return ShopifyClient(settings.shopify_shop_domain, settings.shopify_access_token)
