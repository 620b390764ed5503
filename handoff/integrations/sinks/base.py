"""Registration recorder interface shared by all sinks."""

import logging
from abc import ABC, abstractmethod
from typing import Any

import httpx

from handoff.core.config import settings
from handoff.schemas.registration import DeliveryIdentity, DeliveryOrder, RegistrationRecord

logger = logging.getLogger(__name__)


class RecorderError(Exception):
    """The sink rejected or failed to store a registration."""


class RecorderTimeoutError(RecorderError):
    """The sink did not answer within its timeout; the write may still land."""


class RegistrationRecorder(ABC):
    """Persists verified order/identity pairs under a generated tracking id."""

    name: str = "base"

    async def record(self, order: DeliveryOrder, identity: DeliveryIdentity) -> RegistrationRecord:
        record = RegistrationRecord.create(order, identity)
        await self._write(record)
        logger.info(
            "Registration %s stored in %s sink (order=%s, user=%s)",
            record.registration_id,
            self.name,
            record.order.order_number,
            record.roblox.user_id,
        )
        return record

    @abstractmethod
    async def _write(self, record: RegistrationRecord) -> None:
        """Store ``record``; raise ``RecorderError`` on failure."""

    async def aclose(self) -> None:
        """Release resources held by the sink."""
        return None


class LogRecorder(RegistrationRecorder):
    """Development sink: writes the registration to the log only."""

    name = "log"

    async def _write(self, record: RegistrationRecord) -> None:
        logger.info("Registration recorded: %s", record.model_dump_json(by_alias=True))


class HttpRecorder(RegistrationRecorder):
    """Base for sinks that store a registration with one HTTP POST."""

    def __init__(self, *, timeout: float | None = None) -> None:
        self.timeout = timeout or settings.http_timeout_seconds

    async def _post(self, url: str, *, headers: dict[str, str], **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, headers=headers, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s sink timed out after %.1fs", self.name, self.timeout)
            raise RecorderTimeoutError(f"{self.name} sink timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("%s sink request failed: %s", self.name, type(exc).__name__)
            raise RecorderError(f"{self.name} sink unreachable") from exc

        if not response.is_success:
            logger.error(
                "%s sink rejected registration: status=%s body=%s",
                self.name,
                response.status_code,
                response.text[:500],
            )
            raise RecorderError(f"{self.name} sink returned HTTP {response.status_code}")
        return response
