"""Dependency injection for FastAPI routes.

Outbound clients and the registration recorder are built once in
``create_app()`` and kept on ``app.state``; routes receive them through these
dependencies, which tests replace via ``app.dependency_overrides``.
"""

from typing import Annotated

from fastapi import Depends, Request

from handoff.integrations.roblox.client import RobloxClient
from handoff.integrations.shopify.client import ShopifyClient
from handoff.integrations.sinks.base import RegistrationRecorder
from handoff.services.identity_resolver import IdentityResolver
from handoff.services.order_service import OrderVerificationService
from handoff.services.registration_service import RegistrationService


def get_shopify_client(request: Request) -> ShopifyClient | None:
    client: ShopifyClient | None = request.app.state.shopify_client
    return client


def get_roblox_client(request: Request) -> RobloxClient:
    client: RobloxClient = request.app.state.roblox_client
    return client


def get_recorder(request: Request) -> RegistrationRecorder:
    recorder: RegistrationRecorder = request.app.state.recorder
    return recorder


def get_order_service(
    client: ShopifyClient | None = Depends(get_shopify_client),
) -> OrderVerificationService:
    return OrderVerificationService(client)


def get_identity_resolver(client: RobloxClient = Depends(get_roblox_client)) -> IdentityResolver:
    return IdentityResolver(client)


def get_registration_service(
    recorder: RegistrationRecorder = Depends(get_recorder),
) -> RegistrationService:
    return RegistrationService(recorder)


OrderServiceDep = Annotated[OrderVerificationService, Depends(get_order_service)]
IdentityResolverDep = Annotated[IdentityResolver, Depends(get_identity_resolver)]
RegistrationServiceDep = Annotated[RegistrationService, Depends(get_registration_service)]

__all__ = [
    "IdentityResolverDep",
    "OrderServiceDep",
    "RegistrationServiceDep",
    "get_identity_resolver",
    "get_order_service",
    "get_recorder",
    "get_registration_service",
    "get_roblox_client",
    "get_shopify_client",
]
