"""Tests for OrderLocator.

Covers short-circuiting on an email match, the wrong-owner fallback, the
email scan, failure tolerance and the request time budget.
"""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from handoff.core.deadline import Deadline
from handoff.core.exceptions import ConfigurationError, OrderStoreUnavailableError
from handoff.services.order_locator import (
    LocateStatus,
    OrderLocator,
    emails_match,
    order_email,
)
from handoff.services.order_reference import candidate_order_keys
from tests.conftest import TEST_EMAIL

PREFIXES = ["RBX-", "ORD-"]


def _locator(client: AsyncMock) -> OrderLocator:
    return OrderLocator(
        client,
        prefixes=PREFIXES,
        email_scan_limit=50,
        call_timeout=2.0,
        min_call_budget=0.5,
    )


def _status_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://test-store.myshopify.com/admin/api/orders.json")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class TestEmailHelpers:
    """Tests for emails_match() and order_email()."""

    def test_case_and_whitespace_insensitive(self) -> None:
        assert emails_match(" Test@Shop.com ", "test@shop.com")

    def test_blank_never_matches(self) -> None:
        assert not emails_match("", "")
        assert not emails_match(None, "test@shop.com")

    def test_order_email_falls_back_to_customer(self) -> None:
        order = {"email": None, "contact_email": "", "customer": {"email": "c@shop.com"}}
        assert order_email(order) == "c@shop.com"


class TestLocate:
    """Tests for OrderLocator.locate()."""

    @pytest.mark.asyncio
    async def test_match_short_circuits(
        self,
        fake_shopify: AsyncMock,
        orders_by_name: dict[str, dict[str, Any]],
        sample_shopify_order: dict[str, Any],
    ) -> None:
        """The first candidate with a matching email ends the search."""
        orders_by_name["1222"] = sample_shopify_order

        result = await _locator(fake_shopify).locate(
            candidate_order_keys("1222", PREFIXES), TEST_EMAIL, Deadline(10)
        )

        assert result.status is LocateStatus.MATCH
        assert result.order == sample_shopify_order
        fake_shopify.find_order_by_name.assert_awaited_once()
        fake_shopify.get_orders_by_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_later_candidate_matches(
        self,
        fake_shopify: AsyncMock,
        orders_by_name: dict[str, dict[str, Any]],
        sample_shopify_order: dict[str, Any],
    ) -> None:
        orders_by_name["#1222"] = sample_shopify_order

        result = await _locator(fake_shopify).locate(
            candidate_order_keys("1222", PREFIXES), "TEST@shop.com", Deadline(10)
        )

        assert result.status is LocateStatus.MATCH
        assert fake_shopify.find_order_by_name.await_count == 2

    @pytest.mark.asyncio
    async def test_match_wins_over_earlier_wrong_owner(
        self,
        fake_shopify: AsyncMock,
        orders_by_name: dict[str, dict[str, Any]],
        order_factory: Callable[..., dict[str, Any]],
    ) -> None:
        """A wrong-owner hit on one candidate does not hide a later match."""
        orders_by_name["1222"] = order_factory(name="1222", email="someone@else.com")
        orders_by_name["RBX-1222"] = order_factory(name="RBX-1222")

        result = await _locator(fake_shopify).locate(
            candidate_order_keys("1222", PREFIXES), TEST_EMAIL, Deadline(10)
        )

        assert result.status is LocateStatus.MATCH
        assert result.order is not None
        assert result.order["name"] == "RBX-1222"

    @pytest.mark.asyncio
    async def test_wrong_owner(
        self,
        fake_shopify: AsyncMock,
        orders_by_name: dict[str, dict[str, Any]],
        sample_shopify_order: dict[str, Any],
    ) -> None:
        """Found under another email only: wrong owner, after trying the email scan."""
        orders_by_name["#1222"] = sample_shopify_order

        result = await _locator(fake_shopify).locate(
            candidate_order_keys("1222", PREFIXES), "other@x.com", Deadline(10)
        )

        assert result.status is LocateStatus.WRONG_OWNER
        assert result.order == sample_shopify_order
        fake_shopify.get_orders_by_email.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_email_scan_match(
        self,
        fake_shopify: AsyncMock,
        orders_by_email: dict[str, list[dict[str, Any]]],
        order_factory: Callable[..., dict[str, Any]],
    ) -> None:
        """An order the name search missed is found among the caller's orders."""
        orders_by_email[TEST_EMAIL] = [
            order_factory(name="#ORD-5", order_number=5),
            order_factory(name="#ORD-1222", order_number=1222),
        ]

        result = await _locator(fake_shopify).locate(
            candidate_order_keys("1222", PREFIXES), TEST_EMAIL, Deadline(10)
        )

        assert result.status is LocateStatus.MATCH
        assert result.order is not None
        assert result.order["name"] == "#ORD-1222"
        fake_shopify.get_orders_by_email.assert_awaited_once_with(
            TEST_EMAIL, limit=50, timeout=2.0
        )

    @pytest.mark.asyncio
    async def test_email_scan_without_matching_number(
        self,
        fake_shopify: AsyncMock,
        orders_by_email: dict[str, list[dict[str, Any]]],
        order_factory: Callable[..., dict[str, Any]],
    ) -> None:
        orders_by_email[TEST_EMAIL] = [order_factory(name="#77", order_number=77)]

        result = await _locator(fake_shopify).locate(
            candidate_order_keys("9999", PREFIXES), TEST_EMAIL, Deadline(10)
        )

        assert result.status is LocateStatus.NOT_FOUND

    @pytest.mark.asyncio
    async def test_not_found(self, fake_shopify: AsyncMock) -> None:
        result = await _locator(fake_shopify).locate(
            candidate_order_keys("9999", PREFIXES), "a@b.com", Deadline(10)
        )
        assert result.status is LocateStatus.NOT_FOUND
        assert result.order is None

    @pytest.mark.asyncio
    async def test_failed_call_does_not_stop_search(
        self,
        fake_shopify: AsyncMock,
        sample_shopify_order: dict[str, Any],
    ) -> None:
        """A 5xx or malformed answer counts as no result; later candidates still run."""
        fake_shopify.find_order_by_name.side_effect = [
            _status_error(502),
            ValueError("bad json"),
            sample_shopify_order,
        ]

        result = await _locator(fake_shopify).locate(
            ["1222", "#1222", "RBX-1222"], TEST_EMAIL, Deadline(10)
        )

        assert result.status is LocateStatus.MATCH

    @pytest.mark.asyncio
    async def test_all_transport_failures(self, fake_shopify: AsyncMock) -> None:
        """Every call failing before a response means the store is unreachable."""
        fake_shopify.find_order_by_name.side_effect = httpx.ConnectError("refused")
        fake_shopify.get_orders_by_email.side_effect = httpx.ReadTimeout("slow")

        with pytest.raises(OrderStoreUnavailableError):
            await _locator(fake_shopify).locate(["1222", "#1222"], TEST_EMAIL, Deadline(10))

    @pytest.mark.asyncio
    async def test_some_transport_failures_is_not_found(self, fake_shopify: AsyncMock) -> None:
        fake_shopify.find_order_by_name.side_effect = [httpx.ConnectError("refused"), None]

        result = await _locator(fake_shopify).locate(["1222", "#1222"], TEST_EMAIL, Deadline(10))

        assert result.status is LocateStatus.NOT_FOUND

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_rejected_credentials(self, fake_shopify: AsyncMock, status: int) -> None:
        fake_shopify.find_order_by_name.side_effect = _status_error(status)

        with pytest.raises(ConfigurationError):
            await _locator(fake_shopify).locate(["1222"], TEST_EMAIL, Deadline(10))

    @pytest.mark.asyncio
    async def test_exhausted_budget_makes_no_calls(self, fake_shopify: AsyncMock) -> None:
        result = await _locator(fake_shopify).locate(["1222", "#1222"], TEST_EMAIL, Deadline(0))

        assert result.status is LocateStatus.NOT_FOUND
        fake_shopify.find_order_by_name.assert_not_awaited()
        fake_shopify.get_orders_by_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_budget_runs_out_mid_search(
        self,
        fake_shopify: AsyncMock,
        order_factory: Callable[..., dict[str, Any]],
    ) -> None:
        """Remaining candidates are skipped once the budget drops below the minimum."""
        now = [0.0]
        deadline = Deadline(3.0, clock=lambda: now[0])

        async def _slow_find(name: str, *, timeout: float | None = None) -> dict[str, Any]:
            now[0] += 2.8
            return order_factory(email="other@x.com")

        fake_shopify.find_order_by_name.side_effect = _slow_find

        result = await _locator(fake_shopify).locate(
            ["1222", "#1222", "RBX-1222"], TEST_EMAIL, deadline
        )

        assert result.status is LocateStatus.WRONG_OWNER
        fake_shopify.find_order_by_name.assert_awaited_once()
        fake_shopify.get_orders_by_email.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_call_timeout_capped_by_remaining_budget(self, fake_shopify: AsyncMock) -> None:
        deadline = Deadline(1.0, clock=lambda: 0.0)

        await _locator(fake_shopify).locate(["1222"], TEST_EMAIL, deadline)

        fake_shopify.find_order_by_name.assert_awaited_once_with("1222", timeout=1.0)
