"""Recording completed verifications for staff delivery."""

import asyncio
import logging

from handoff.core.config import settings
from handoff.core.exceptions import RegistrationFailedError
from handoff.integrations.sinks.base import (
    RecorderError,
    RecorderTimeoutError,
    RegistrationRecorder,
)
from handoff.schemas.registration import (
    DeliveryData,
    RegistrationResult,
    generate_registration_id,
)

logger = logging.getLogger(__name__)


class RegistrationService:
    """Writes a registration to the configured sink within a fixed time budget.

    A slow sink never blocks the customer: on timeout the caller gets a
    locally generated tracking id and ``synced=False``.
    """

    def __init__(self, recorder: RegistrationRecorder, *, timeout: float | None = None) -> None:
        self.recorder = recorder
        self.timeout = timeout or settings.registration_timeout_seconds

    async def register(self, delivery: DeliveryData) -> RegistrationResult:
        try:
            record = await asyncio.wait_for(
                self.recorder.record(delivery.order, delivery.roblox),
                timeout=self.timeout,
            )
        except (TimeoutError, RecorderTimeoutError):
            fallback_id = generate_registration_id("LOCAL")
            logger.warning(
                "Registration sink %s timed out after %.1fs; order=%s fallback_id=%s",
                self.recorder.name,
                self.timeout,
                delivery.order.order_number,
                fallback_id,
            )
            return RegistrationResult(
                registration_id=fallback_id,
                synced=False,
                warning="Registration accepted but not yet synced; keep this ID for support.",
                can_continue=True,
            )
        except RecorderError as exc:
            fallback_id = generate_registration_id("LOCAL")
            logger.error(
                "Registration sink %s failed: %s; order=%s fallback_id=%s",
                self.recorder.name,
                exc,
                delivery.order.order_number,
                fallback_id,
            )
            raise RegistrationFailedError(
                "Failed to save registration. Please contact support with your order number.",
                extra={"canContinue": True, "registrationId": fallback_id},
            ) from exc

        return RegistrationResult(registration_id=record.registration_id, data=record)
