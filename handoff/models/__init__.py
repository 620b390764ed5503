"""SQLAlchemy models."""

from handoff.models.base import Base
from handoff.models.registration import DeliveryRegistration

__all__ = [
    "Base",
    "DeliveryRegistration",
]
