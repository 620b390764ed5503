"""Tests for RegistrationService: sink success, timeout and failure."""

from unittest.mock import AsyncMock

import httpx
import pytest

from handoff.core.exceptions import RegistrationFailedError
from handoff.integrations.sinks.base import RecorderError
from handoff.integrations.sinks.webhook import WebhookRecorder
from handoff.schemas.registration import DeliveryData
from handoff.services.registration_service import RegistrationService
from tests.conftest import TEST_EMAIL, MemoryRecorder


@pytest.fixture
def delivery() -> DeliveryData:
    return DeliveryData.model_validate(
        {
            "order": {"orderNumber": "#1222", "email": TEST_EMAIL, "total": 100},
            "roblox": {"userId": 156, "username": "Builderman"},
        }
    )


class TestRegister:
    """Tests for RegistrationService.register()."""

    @pytest.mark.asyncio
    async def test_synced(self, delivery: DeliveryData, recorder: MemoryRecorder) -> None:
        result = await RegistrationService(recorder, timeout=1.0).register(delivery)

        assert result.success is True
        assert result.synced is True
        assert result.registration_id.startswith("REG-")
        assert result.data is not None
        assert result.data.order.total == "100"
        assert result.data.roblox.user_id == "156"
        assert [r.registration_id for r in recorder.records] == [result.registration_id]

    @pytest.mark.asyncio
    async def test_timeout_returns_local_id(self, delivery: DeliveryData) -> None:
        """A slow sink yields an unsynced result instead of blocking the caller."""
        slow = MemoryRecorder(delay=1.0)

        result = await RegistrationService(slow, timeout=0.05).register(delivery)

        assert result.success is True
        assert result.synced is False
        assert result.can_continue is True
        assert result.registration_id.startswith("LOCAL-")
        assert result.warning
        assert slow.records == []

    @pytest.mark.asyncio
    async def test_sink_failure(self, delivery: DeliveryData) -> None:
        failing = MemoryRecorder(error=RecorderError("sheets sink returned HTTP 500"))

        with pytest.raises(RegistrationFailedError) as exc_info:
            await RegistrationService(failing, timeout=1.0).register(delivery)

        assert exc_info.value.status_code == 500
        assert exc_info.value.extra["canContinue"] is True
        assert exc_info.value.extra["registrationId"].startswith("LOCAL-")

    @pytest.mark.asyncio
    async def test_sink_http_timeout_returns_local_id(
        self, delivery: DeliveryData, mock_sink_http: AsyncMock
    ) -> None:
        """An HTTP sink that times out on its own is treated like a slow sink."""
        mock_sink_http.post.side_effect = httpx.ReadTimeout("slow")
        recorder = WebhookRecorder("https://hooks.example.com/delivery", timeout=2.0)

        result = await RegistrationService(recorder, timeout=4.0).register(delivery)

        assert result.synced is False
        assert result.can_continue is True
        assert result.registration_id.startswith("LOCAL-")
        mock_sink_http.post.assert_awaited_once()
