"""Health check endpoints."""

from fastapi import APIRouter, Depends

from handoff.core.config import settings
from handoff.core.deps import get_recorder, get_shopify_client
from handoff.integrations.shopify.client import ShopifyClient
from handoff.integrations.sinks import RegistrationRecorder, UnconfiguredRecorder
from handoff.schemas.common import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    shopify: ShopifyClient | None = Depends(get_shopify_client),
    recorder: RegistrationRecorder = Depends(get_recorder),
) -> HealthResponse:
    """
    Health check endpoint.

    Reports whether the order store and the registration sink are configured.
    No outbound calls are made.
    """
    checks = {
        "shopify": "configured" if shopify is not None else "not_configured",
        "registration_sink": (
            f"{recorder.name}: not_configured"
            if isinstance(recorder, UnconfiguredRecorder)
            else recorder.name
        ),
    }
    degraded = shopify is None or isinstance(recorder, UnconfiguredRecorder)
    return HealthResponse(
        status="degraded" if degraded else "healthy",
        version=settings.version,
        environment=settings.environment,
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    """
    Liveness probe for container orchestration.

    Simple check that the service is running.
    """
    return {"status": "alive"}
