"""Business rules deciding whether a located order may be delivered."""

import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

PAID_STATUSES = frozenset({"paid", "partially_paid"})
REFUNDED_STATUSES = frozenset({"refunded", "partially_refunded"})


class IneligibilityReason(str, enum.Enum):
    PAYMENT_NOT_CONFIRMED = "payment_not_confirmed"
    CANCELLED = "cancelled"
    ALREADY_FULFILLED = "already_fulfilled"
    REFUNDED = "refunded"


@dataclass(frozen=True)
class EligibilityDecision:
    eligible: bool
    reason: IneligibilityReason | None = None
    detail: str | None = None

    @classmethod
    def ok(cls) -> "EligibilityDecision":
        return cls(eligible=True)

    @classmethod
    def reject(cls, reason: IneligibilityReason, detail: str) -> "EligibilityDecision":
        return cls(eligible=False, reason=reason, detail=detail)


def _money(value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")


def refunded_amount(order: dict[str, Any]) -> Decimal:
    """Sum of successful refund transactions recorded on the order."""
    total = Decimal("0")
    for refund in order.get("refunds") or []:
        for transaction in refund.get("transactions") or []:
            if transaction.get("kind", "refund") != "refund":
                continue
            if transaction.get("status", "success") != "success":
                continue
            total += _money(transaction.get("amount"))
    return total


def evaluate_eligibility(order: dict[str, Any]) -> EligibilityDecision:
    """Decide delivery eligibility. Pure: depends only on ``order``.

    The first failing rule wins.
    """
    financial = (order.get("financial_status") or "").lower()

    if financial in REFUNDED_STATUSES:
        return EligibilityDecision.reject(
            IneligibilityReason.REFUNDED,
            f"This order has been {financial.replace('_', ' ')}.",
        )

    if financial not in PAID_STATUSES:
        return EligibilityDecision.reject(
            IneligibilityReason.PAYMENT_NOT_CONFIRMED,
            f"Payment for this order has not been confirmed (status: {financial or 'unknown'}).",
        )

    if order.get("cancelled_at"):
        return EligibilityDecision.reject(
            IneligibilityReason.CANCELLED,
            "This order has been cancelled.",
        )

    if (order.get("fulfillment_status") or "").lower() == "fulfilled":
        return EligibilityDecision.reject(
            IneligibilityReason.ALREADY_FULFILLED,
            "This order has already been delivered.",
        )

    refunded = refunded_amount(order)
    if refunded > 0 and refunded >= _money(order.get("total_price")):
        return EligibilityDecision.reject(
            IneligibilityReason.REFUNDED,
            f"This order has been fully refunded ({refunded} refunded).",
        )

    return EligibilityDecision.ok()
