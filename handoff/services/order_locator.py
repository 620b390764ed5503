"""Locating an order in Shopify from candidate keys and a purchaser email."""

import enum
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx

from handoff.core.config import settings
from handoff.core.deadline import Deadline
from handoff.core.exceptions import ConfigurationError, OrderStoreUnavailableError
from handoff.integrations.shopify.client import ShopifyClient
from handoff.services.order_reference import order_key_core

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Status codes meaning the access token is missing, revoked or under-scoped.
_CREDENTIAL_STATUSES = {401, 403}


class LocateStatus(str, enum.Enum):
    NOT_FOUND = "not_found"
    WRONG_OWNER = "wrong_owner"
    MATCH = "match"


@dataclass(frozen=True)
class LocateResult:
    status: LocateStatus
    order: dict[str, Any] | None = None

    @classmethod
    def not_found(cls) -> "LocateResult":
        return cls(LocateStatus.NOT_FOUND)

    @classmethod
    def wrong_owner(cls, order: dict[str, Any]) -> "LocateResult":
        return cls(LocateStatus.WRONG_OWNER, order)

    @classmethod
    def match(cls, order: dict[str, Any]) -> "LocateResult":
        return cls(LocateStatus.MATCH, order)


def order_email(order: dict[str, Any]) -> str:
    """The purchaser email recorded on a Shopify order."""
    customer = order.get("customer") or {}
    return str(order.get("email") or order.get("contact_email") or customer.get("email") or "")


def emails_match(a: str | None, b: str | None) -> bool:
    """Case-insensitive, whitespace-trimmed equality; blank never matches."""
    left = (a or "").strip().casefold()
    right = (b or "").strip().casefold()
    return bool(left) and left == right


@dataclass
class _CallStats:
    attempted: int = 0
    transport_failures: int = 0
    errors: list[str] = field(default_factory=list)


class OrderLocator:
    """Sequential, failure-tolerant order search.

    Each candidate is probed by display name. An email match short-circuits;
    the first order found with another email is kept as the wrong-owner
    fallback while later candidates are still tried. Then the orders placed
    with the caller's email are scanned for one whose name or number matches a
    candidate.
    """

    def __init__(
        self,
        client: ShopifyClient,
        *,
        prefixes: Sequence[str] | None = None,
        email_scan_limit: int | None = None,
        call_timeout: float | None = None,
        min_call_budget: float | None = None,
    ) -> None:
        self.client = client
        self.prefixes = list(settings.order_name_prefixes if prefixes is None else prefixes)
        self.email_scan_limit = email_scan_limit or settings.order_email_scan_limit
        self.call_timeout = call_timeout or settings.http_timeout_seconds
        self.min_call_budget = min_call_budget or settings.min_call_budget_seconds

    async def locate(
        self,
        candidates: Sequence[str],
        email: str,
        deadline: Deadline,
    ) -> LocateResult:
        stats = _CallStats()
        wrong_owner: dict[str, Any] | None = None

        for key in candidates:
            if not deadline.allows(self.min_call_budget):
                logger.warning("Order lookup budget exhausted before candidate %r", key)
                return self._finish(wrong_owner, stats)

            order = await self._call(
                stats,
                f"name={key!r}",
                lambda timeout, key=key: self.client.find_order_by_name(key, timeout=timeout),
                deadline,
            )
            if order is None:
                continue
            if emails_match(order_email(order), email):
                logger.info("Order %s matched candidate %r", order.get("name"), key)
                return LocateResult.match(order)
            if wrong_owner is None:
                logger.info(
                    "Order %s found for candidate %r with another email", order.get("name"), key
                )
                wrong_owner = order

        if not deadline.allows(self.min_call_budget):
            logger.warning("Order lookup budget exhausted before email scan")
            return self._finish(wrong_owner, stats)

        orders = await self._call(
            stats,
            "email scan",
            lambda timeout: self.client.get_orders_by_email(
                email, limit=self.email_scan_limit, timeout=timeout
            ),
            deadline,
        )
        wanted = {order_key_core(c, self.prefixes) for c in candidates} - {""}
        for order in orders or []:
            keys = {
                order_key_core(order.get("name"), self.prefixes),
                order_key_core(order.get("order_number"), self.prefixes),
            }
            if keys & wanted and emails_match(order_email(order), email):
                logger.info("Order %s matched by email scan", order.get("name"))
                return LocateResult.match(order)

        return self._finish(wrong_owner, stats)

    def _finish(self, wrong_owner: dict[str, Any] | None, stats: _CallStats) -> LocateResult:
        if wrong_owner is not None:
            return LocateResult.wrong_owner(wrong_owner)
        if stats.attempted and stats.transport_failures == stats.attempted:
            logger.error(
                "Order store unreachable: %d of %d calls failed (%s)",
                stats.transport_failures,
                stats.attempted,
                "; ".join(stats.errors[-3:]),
            )
            raise OrderStoreUnavailableError("Order lookup is temporarily unavailable")
        return LocateResult.not_found()

    async def _call(
        self,
        stats: _CallStats,
        label: str,
        call: Callable[[float], Awaitable[T]],
        deadline: Deadline,
    ) -> T | None:
        """Run one store call; any failure except a credential error becomes None."""
        stats.attempted += 1
        try:
            return await call(deadline.timeout(self.call_timeout))
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in _CREDENTIAL_STATUSES:
                logger.error("Shopify rejected credentials (HTTP %s) during %s", status, label)
                raise ConfigurationError("Order lookup is not configured correctly") from exc
            logger.warning("Shopify returned HTTP %s for %s", status, label)
        except httpx.TransportError as exc:
            stats.transport_failures += 1
            stats.errors.append(f"{label}: {type(exc).__name__}")
            logger.warning("Shopify request failed for %s: %s", label, type(exc).__name__)
        except ValueError:
            logger.warning("Shopify returned a malformed response for %s", label)
        return None
