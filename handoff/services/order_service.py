"""Order service for purchase verification ahead of delivery."""

import logging
import re
from typing import Any

from handoff.core.config import settings
from handoff.core.deadline import Deadline
from handoff.core.exceptions import (
    ConfigurationError,
    InvalidRequestError,
    OrderIneligibleError,
    OrderNotFoundError,
    OrderOwnerMismatchError,
)
from handoff.integrations.shopify.client import ShopifyClient
from handoff.schemas.order import OrderLineItem, VerifiedOrder
from handoff.services.order_eligibility import evaluate_eligibility
from handoff.services.order_locator import LocateStatus, OrderLocator, order_email
from handoff.services.order_reference import candidate_order_keys

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_RE.match(email))


class OrderVerificationService:
    """Business logic for verifying that a caller owns a deliverable order."""

    def __init__(self, client: ShopifyClient | None, locator: OrderLocator | None = None) -> None:
        self.client = client
        self.locator = locator or (OrderLocator(client) if client else None)

    async def verify(
        self,
        order_number: str,
        email: str,
        deadline: Deadline | None = None,
    ) -> VerifiedOrder:
        """Locate the order, confirm ownership and eligibility, return its snapshot.

        Args:
            order_number: Order reference as typed by the customer ('1001', '#1001', ...).
            email: Purchaser email to verify against the order.
            deadline: Request budget; a fresh one is started when omitted.

        Raises:
            InvalidRequestError: Blank order number or malformed email.
            ConfigurationError: No store credentials configured.
            OrderNotFoundError: No order for any candidate key.
            OrderOwnerMismatchError: Order exists under a different email.
            OrderIneligibleError: Order is unpaid, cancelled, fulfilled or refunded.
        """
        reference = order_number.strip()
        email = email.strip()
        if not reference:
            raise InvalidRequestError("Order number is required")
        if not is_valid_email(email):
            raise InvalidRequestError("Invalid email format")

        if self.locator is None:
            logger.error("Order verification requested but Shopify is not configured")
            raise ConfigurationError("Order lookup is not available")

        deadline = deadline or Deadline(settings.request_budget_seconds)
        candidates = candidate_order_keys(order_number, self.locator.prefixes)
        logger.info("Verifying order %r with %d candidate keys", reference, len(candidates))

        result = await self.locator.locate(candidates, email, deadline)

        if result.status is LocateStatus.NOT_FOUND or result.order is None:
            raise OrderNotFoundError(
                "Order not found. Please check the order number and try again."
            )
        if result.status is LocateStatus.WRONG_OWNER:
            raise OrderOwnerMismatchError(
                "Order found, but the email does not match our records for this order.",
                detail="Use the email address the order was placed with.",
            )

        order_data = result.order
        decision = evaluate_eligibility(order_data)
        if not decision.eligible:
            reason = decision.reason.value if decision.reason else "unknown"
            logger.info("Order %s not eligible: %s", order_data.get("name"), reason)
            raise OrderIneligibleError(
                "This order is not eligible for delivery.",
                detail=decision.detail,
                extra={"reason": reason},
            )

        return self._build_verified_order(order_data)

    def _build_verified_order(self, order_data: dict[str, Any]) -> VerifiedOrder:
        """Parse Shopify order JSON into the verification response."""
        items = [
            OrderLineItem(
                title=item.get("title", ""),
                quantity=item.get("quantity", 0),
                variant=item.get("variant_title") or None,
            )
            for item in order_data.get("line_items", [])
        ]

        customer = order_data.get("customer") or {}
        customer_name = None
        first = customer.get("first_name") or ""
        last = customer.get("last_name") or ""
        if first or last:
            customer_name = f"{first} {last}".strip()

        return VerifiedOrder(
            order_number=order_data.get("name") or str(order_data.get("order_number", "")),
            email=order_email(order_data),
            order_id=str(order_data.get("id", "")),
            customer_name=customer_name,
            items=items,
            total=str(order_data.get("total_price", "0.00")),
            currency=order_data.get("currency", "USD"),
            order_date=order_data.get("created_at"),
            fulfilled=order_data.get("fulfillment_status") == "fulfilled",
        )
