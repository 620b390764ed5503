"""Order verification schemas."""

from pydantic import ConfigDict

from handoff.schemas.common import BaseSchema


class OrderVerificationRequest(BaseSchema):
    """Request to verify a purchase by order number and purchaser email."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    order_number: str
    email: str


class OrderLineItem(BaseSchema):
    """A single line item from an order."""

    title: str
    quantity: int
    variant: str | None = None


class VerifiedOrder(BaseSchema):
    """Order snapshot returned after a successful verification."""

    order_number: str
    email: str
    order_id: str
    customer_name: str | None = None
    items: list[OrderLineItem]
    total: str
    currency: str
    order_date: str | None = None
    fulfilled: bool
    verified: bool = True
