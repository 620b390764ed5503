"""Delivery registration schemas."""

import uuid
from datetime import UTC, datetime
from typing import Literal

from pydantic import ConfigDict, Field, field_validator

from handoff.schemas.common import BaseSchema
from handoff.schemas.order import OrderLineItem

RegistrationStatus = Literal["pending_delivery", "delivered", "cancelled"]


def generate_registration_id(prefix: str = "REG") -> str:
    """Generate a tracking id such as ``REG-3F9A1C0B7D2E``."""
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


class DeliveryOrder(BaseSchema):
    """Order snapshot submitted with a delivery registration."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    order_number: str
    email: str
    order_id: str | None = None
    customer_name: str | None = None
    items: list[OrderLineItem] = Field(default_factory=list)
    total: str | None = None
    currency: str | None = None
    order_date: str | None = None

    @field_validator("order_number", "email")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class DeliveryIdentity(BaseSchema):
    """Roblox identity snapshot submitted with a delivery registration."""

    model_config = ConfigDict(coerce_numbers_to_str=True)

    user_id: str
    username: str
    display_name: str | None = None
    avatar_url: str | None = None

    @field_validator("user_id", "username")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class DeliveryData(BaseSchema):
    order: DeliveryOrder
    roblox: DeliveryIdentity


class RegistrationRequest(BaseSchema):
    delivery_data: DeliveryData


class RegistrationRecord(BaseSchema):
    """A verified order/identity pair awaiting delivery.

    Created once per successful registration and never mutated here; staff
    update ``status`` in the sink out of band.
    """

    registration_id: str
    status: RegistrationStatus = "pending_delivery"
    created_at: datetime
    order: DeliveryOrder
    roblox: DeliveryIdentity

    @classmethod
    def create(cls, order: DeliveryOrder, identity: DeliveryIdentity) -> "RegistrationRecord":
        return cls(
            registration_id=generate_registration_id(),
            created_at=datetime.now(UTC),
            order=order,
            roblox=identity,
        )

    def flat_fields(self) -> dict[str, str]:
        """One-level view used by row/table oriented sinks."""
        items = ", ".join(
            f"{item.quantity}x {item.title}" + (f" ({item.variant})" if item.variant else "")
            for item in self.order.items
        )
        return {
            "Registration ID": self.registration_id,
            "Status": self.status,
            "Created At": self.created_at.isoformat(),
            "Order Number": self.order.order_number,
            "Order ID": self.order.order_id or "",
            "Email": self.order.email,
            "Customer Name": self.order.customer_name or "",
            "Items": items,
            "Total": self.order.total or "",
            "Currency": self.order.currency or "",
            "Roblox User ID": self.roblox.user_id,
            "Roblox Username": self.roblox.username,
            "Avatar URL": self.roblox.avatar_url or "",
        }


class RegistrationResult(BaseSchema):
    """Outcome of ``register_delivery``; ``synced`` is False when the sink timed out."""

    success: bool = True
    registration_id: str
    synced: bool = True
    data: RegistrationRecord | None = None
    warning: str | None = None
    can_continue: bool | None = None
