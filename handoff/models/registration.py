"""DeliveryRegistration model for the database sink."""

from typing import Any

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from handoff.models.base import Base, RecordMixin
from handoff.schemas.registration import RegistrationRecord


class DeliveryRegistration(RecordMixin, Base):
    """A verified order/Roblox account pair waiting for staff to deliver.

    Rows are inserted once by the API; ``status`` is updated by staff tooling.
    """

    __tablename__ = "delivery_registrations"

    registration_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    status: Mapped[str] = mapped_column(String(32), default="pending_delivery", nullable=False)

    # Order snapshot
    order_number: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    order_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    total: Mapped[str | None] = mapped_column(String(32), nullable=True)
    order_date: Mapped[str | None] = mapped_column(String(64), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(8), nullable=True)
    items: Mapped[list[dict[str, Any]]] = mapped_column(default=list, nullable=False)

    # Identity snapshot
    roblox_user_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    roblox_username: Mapped[str] = mapped_column(String(32), nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(64), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(String(512), nullable=True)

    @classmethod
    def from_record(cls, record: RegistrationRecord) -> "DeliveryRegistration":
        return cls(
            registration_id=record.registration_id,
            status=record.status,
            created_at=record.created_at,
            order_number=record.order.order_number,
            order_id=record.order.order_id,
            customer_email=record.order.email,
            customer_name=record.order.customer_name,
            total=record.order.total,
            order_date=record.order.order_date,
            currency=record.order.currency,
            items=[item.model_dump(mode="json", by_alias=True) for item in record.order.items],
            roblox_user_id=record.roblox.user_id,
            roblox_username=record.roblox.username,
            display_name=record.roblox.display_name,
            avatar_url=record.roblox.avatar_url,
        )

    def __repr__(self) -> str:
        return f"<DeliveryRegistration {self.registration_id} ({self.status})>"
